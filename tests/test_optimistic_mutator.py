from __future__ import annotations

import asyncio
from typing import Any

import pytest

from cardadmin.cache.events import CacheEvent, CacheSource
from cardadmin.cache.keys import all_offers_key, offers_key
from cardadmin.cache.store import QueryCache
from cardadmin.exceptions import (
    CardAdminNotFoundError,
    CardAdminTransportError,
    CardAdminValidationError,
    MutationFailedError,
)
from cardadmin.models.offer import Offer
from cardadmin.mutations.optimistic import OptimisticMutator, apply_changes, find_item, replace_item
from cardadmin.mutations.result import (
    TRANSPORT_FAILURE_MESSAGE,
    UNEXPECTED_FAILURE_MESSAGE,
    MutationError,
    MutationErrorKind,
    MutationPhase,
    MutationResult,
)

_SUCCESS_PATH = (
    MutationPhase.IDLE,
    MutationPhase.CANCELLING_READS,
    MutationPhase.OPTIMISTIC_APPLIED,
    MutationPhase.AWAITING_SERVER,
    MutationPhase.COMMITTED,
    MutationPhase.RECONCILING,
    MutationPhase.DONE,
)

_FAILURE_PATH = (
    MutationPhase.IDLE,
    MutationPhase.CANCELLING_READS,
    MutationPhase.OPTIMISTIC_APPLIED,
    MutationPhase.AWAITING_SERVER,
    MutationPhase.ROLLED_BACK,
    MutationPhase.RECONCILING,
    MutationPhase.DONE,
)


def _offer(offer_id: str, *, card_id: str = "card-1", **fields: Any) -> Offer:
    fields.setdefault("sign_up_bonus", "60,000 points")
    return Offer(id=offer_id, card_id=card_id, **fields)


def _seed(cache: QueryCache) -> tuple[Offer, ...]:
    offers = (_offer("a", visible=True), _offer("b", visible=False))
    cache.set(offers_key("card-1"), offers)
    return offers


def _mutator(cache: QueryCache, **kwargs: Any) -> OptimisticMutator[Offer]:
    return OptimisticMutator(cache, Offer, immutable_fields=("id", "card_id"), **kwargs)


def test_apply_changes_returns_new_instance() -> None:
    original = _offer("a", visible=True)

    updated = apply_changes(original, {"visible": False, "internal_label": "Q3"})

    assert original.visible is True
    assert updated.visible is False
    assert updated.internal_label == "Q3"
    assert updated.sign_up_bonus == original.sign_up_bonus


def test_replace_item_preserves_order_and_ignores_unknown_ids() -> None:
    offers = (_offer("a"), _offer("b"), _offer("c"))

    replaced = replace_item(offers, _offer("b", internal_label="new"))
    untouched = replace_item(offers, _offer("zzz"))

    assert [o.id for o in replaced] == ["a", "b", "c"]
    assert replaced[1].internal_label == "new"
    assert untouched == offers


def test_find_item_handles_missing_collections() -> None:
    assert find_item(None, "a") is None
    assert find_item("not-a-collection", "a") is None
    assert find_item((_offer("a"),), "a") is not None


@pytest.mark.asyncio
async def test_successful_mutation_shows_optimistic_value_then_commits_server_copy() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    offer_a, _ = _seed(cache)
    server_b = _offer("b", visible=True, internal_label="set by server", is_current=True)
    seen_while_pending: list[Any] = []

    async def send() -> Offer:
        seen_while_pending.append(cache.get(key))
        return server_b

    result = await _mutator(cache).mutate(key, "b", {"visible": True}, send)

    pending = seen_while_pending[0]
    assert [(o.id, o.visible) for o in pending] == [("a", True), ("b", True)]
    assert pending[1].internal_label is None

    assert result.ok
    assert result.item == server_b
    assert cache.get(key) == (offer_a, server_b)
    assert result.phases == _SUCCESS_PATH


@pytest.mark.asyncio
async def test_failed_mutation_restores_exact_snapshot_and_reports_server_message() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)

    async def send() -> Offer:
        raise CardAdminNotFoundError("Offer not found", status_code=404, endpoint="/offers/b")

    result = await _mutator(cache).mutate(key, "b", {"visible": True}, send)

    assert not result.ok
    assert result.item is None
    assert result.error is not None
    assert result.error.kind is MutationErrorKind.NOT_FOUND
    assert result.error.message == "Offer not found"
    assert result.error.status_code == 404
    assert cache.get(key) == original
    assert result.phases == _FAILURE_PATH


@pytest.mark.asyncio
async def test_validation_rejection_keeps_server_message_verbatim() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)

    async def send() -> Offer:
        raise CardAdminValidationError("End date must be after start date", status_code=400)

    result = await _mutator(cache).mutate(key, "a", {"end_date": "2020-01-01"}, send)

    assert result.error is not None
    assert result.error.kind is MutationErrorKind.VALIDATION_REJECTED
    assert result.error.message == "End date must be after start date"
    assert cache.get(key) == original


@pytest.mark.asyncio
async def test_transport_failure_uses_generic_message() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)

    async def send() -> Offer:
        raise CardAdminTransportError("Failed to update offer: Connection refused", endpoint="/offers/a")

    result = await _mutator(cache).mutate(key, "a", {"visible": False}, send)

    assert result.error is not None
    assert result.error.kind is MutationErrorKind.TRANSPORT_FAILURE
    assert result.error.message == TRANSPORT_FAILURE_MESSAGE
    assert "Connection refused" in result.error.detail
    assert cache.get(key) == original


@pytest.mark.asyncio
@pytest.mark.parametrize("fail", [False, True])
async def test_mutation_always_leaves_key_stale(fail: bool) -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    fetches = 0

    async def send() -> Offer:
        if fail:
            raise CardAdminValidationError("nope")
        return _offer("a", visible=False)

    async def refetch() -> tuple[Offer, ...]:
        nonlocal fetches
        fetches += 1
        return (_offer("a", visible=False),)

    result = await _mutator(cache).mutate(key, "a", {"visible": False}, send)

    assert result.reconciled == (key,)
    assert cache.is_stale(key)
    await cache.query(key, refetch)
    assert fetches == 1


@pytest.mark.asyncio
async def test_readers_never_observe_a_partially_applied_change_set() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    observed: list[tuple[bool, str | None]] = []

    def on_event(event: CacheEvent) -> None:
        if event.value is None:
            return
        b = find_item(event.value, "b")
        observed.append((b.visible, b.internal_label))

    cache.subscribe(on_event, prefix=key)

    async def send() -> Offer:
        raise CardAdminValidationError("rejected")

    await _mutator(cache).mutate(key, "b", {"visible": True, "internal_label": "promo"}, send)

    assert observed == [(True, "promo"), (False, None)]


@pytest.mark.asyncio
async def test_overlapping_mutations_last_completion_wins() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    mutator = _mutator(cache)
    release_first = asyncio.Event()
    second_done = asyncio.Event()

    async def send_first() -> Offer:
        await release_first.wait()
        return _offer("b", visible=True, internal_label="first")

    async def send_second() -> Offer:
        return _offer("b", visible=True, internal_label="second")

    first = asyncio.create_task(mutator.mutate(key, "b", {"internal_label": "first"}, send_first))
    await asyncio.sleep(0)

    async def run_second() -> MutationResult[Offer]:
        try:
            return await mutator.mutate(key, "b", {"internal_label": "second"}, send_second)
        finally:
            second_done.set()

    second = asyncio.create_task(run_second())
    await second_done.wait()
    assert find_item(cache.get(key), "b").internal_label == "second"

    release_first.set()
    await asyncio.gather(first, second)

    assert find_item(cache.get(key), "b").internal_label == "first"


@pytest.mark.asyncio
async def test_read_cancelled_before_optimistic_write_cannot_clobber_it() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)
    gate = asyncio.Event()

    async def stale_read() -> tuple[Offer, ...]:
        await gate.wait()
        return original

    read_task = asyncio.create_task(cache.fetch(key, stale_read))
    await asyncio.sleep(0)
    snapshots: list[Any] = []

    async def send() -> Offer:
        gate.set()
        snapshots.append(await read_task)
        snapshots.append(cache.get(key))
        return _offer("b", visible=True)

    result = await _mutator(cache).mutate(key, "b", {"visible": True}, send)

    assert result.ok
    assert find_item(snapshots[0], "b").visible is True
    assert find_item(snapshots[1], "b").visible is True
    assert find_item(cache.get(key), "b").visible is True


@pytest.mark.asyncio
async def test_newer_read_completed_during_mutation_is_kept_over_rollback() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    fresh = (_offer("a", visible=True), _offer("b", visible=False, internal_label="edited elsewhere"))

    async def fresh_read() -> tuple[Offer, ...]:
        return fresh

    async def send() -> Offer:
        await cache.fetch(key, fresh_read)
        raise CardAdminValidationError("rejected")

    result = await _mutator(cache).mutate(key, "b", {"visible": True}, send)

    assert result.phases == _FAILURE_PATH
    assert cache.get(key) == fresh


@pytest.mark.asyncio
async def test_uncached_item_skips_optimistic_write_but_still_sends() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)
    sent: list[str] = []

    async def send() -> Offer:
        sent.append("zzz")
        return _offer("zzz", visible=False)

    result = await _mutator(cache).mutate(key, "zzz", {"visible": False}, send)

    assert sent == ["zzz"]
    assert result.ok
    assert result.phases == _SUCCESS_PATH
    assert cache.get(key) == original
    assert cache.is_stale(key)


@pytest.mark.asyncio
async def test_uncached_item_failure_leaves_cache_untouched() -> None:
    cache = QueryCache()
    key = all_offers_key()

    async def send() -> Offer:
        raise CardAdminNotFoundError("Offer not found", status_code=404)

    result = await _mutator(cache).mutate(key, "gone", {"visible": True}, send)

    assert result.error is not None
    assert key not in cache
    assert result.reconciled == (key,)


@pytest.mark.asyncio
@pytest.mark.parametrize("fail", [False, True])
async def test_secondary_key_is_reconciled(fail: bool) -> None:
    cache = QueryCache()
    key = all_offers_key()
    cache.set(key, (_offer("a", card_id="card-1"), _offer("b", card_id="card-2")))
    cache.set(offers_key("card-2"), (_offer("b", card_id="card-2"),))
    cache.set(offers_key("card-1"), (_offer("a", card_id="card-1"),))

    async def send() -> Offer:
        if fail:
            raise CardAdminTransportError("timeout")
        return _offer("b", card_id="card-2", visible=False)

    result = await _mutator(cache).mutate(
        key,
        "b",
        {"visible": False},
        send,
        secondary_key=lambda offer: offers_key(offer.card_id),
    )

    assert result.reconciled == (key, offers_key("card-2"))
    assert cache.is_stale(offers_key("card-2"))
    assert not cache.is_stale(offers_key("card-1"))


@pytest.mark.asyncio
async def test_also_invalidate_keys_are_deduplicated() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    cache.set(all_offers_key(), ())

    async def send() -> Offer:
        return _offer("a")

    result = await _mutator(cache).mutate(
        key,
        "a",
        {},
        send,
        also_invalidate=[all_offers_key(), key],
    )

    assert result.reconciled == (key, all_offers_key())
    assert cache.is_stale(all_offers_key())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("changes", "match"),
    [
        ({"no_such_field": 1}, "Unknown Offer field"),
        ({"card_id": "card-9"}, "identity field"),
        ({"id": "x"}, "identity field"),
        ({"visible": None}, "Invalid Offer change"),
        ({"is_current": None}, "Invalid Offer change"),
    ],
)
async def test_invalid_changes_raise_before_anything_happens(changes: dict[str, Any], match: str) -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)
    events: list[CacheEvent] = []
    cache.subscribe(events.append)

    async def send() -> Offer:
        raise AssertionError("send must not run")

    with pytest.raises(ValueError, match=match):
        await _mutator(cache).mutate(key, "a", changes, send)

    assert cache.get(key) == original
    assert events == []


@pytest.mark.asyncio
async def test_invalid_values_leave_in_flight_read_running() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    fresh = (_offer("a", visible=False), _offer("b", visible=True))
    gate = asyncio.Event()

    async def read() -> tuple[Offer, ...]:
        await gate.wait()
        return fresh

    read_task = asyncio.create_task(cache.fetch(key, read))
    await asyncio.sleep(0)

    async def send() -> Offer:
        raise AssertionError("send must not run")

    with pytest.raises(ValueError, match="Invalid Offer change"):
        await _mutator(cache).mutate(key, "b", {"visible": None}, send)

    assert cache.is_fetching(key)
    gate.set()
    assert await read_task == fresh
    assert cache.get(key) == fresh


@pytest.mark.asyncio
async def test_unexpected_send_failure_rolls_back_and_reconciles() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)

    async def send() -> Offer:
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    result = await _mutator(cache).mutate(key, "b", {"visible": True}, send)

    assert result.error is not None
    assert result.error.kind is MutationErrorKind.API_ERROR
    assert result.error.message == UNEXPECTED_FAILURE_MESSAGE
    assert "UnicodeDecodeError" in result.error.detail
    assert result.phases == _FAILURE_PATH
    assert cache.get(key) == original
    assert cache.is_stale(key)


@pytest.mark.asyncio
async def test_task_cancellation_rolls_back_and_propagates() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    original = _seed(cache)
    started = asyncio.Event()

    async def send() -> Offer:
        started.set()
        await asyncio.Event().wait()
        raise AssertionError("unreachable")

    task = asyncio.create_task(_mutator(cache).mutate(key, "b", {"visible": True}, send))
    await started.wait()
    assert find_item(cache.get(key), "b").visible is True
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert cache.get(key) == original
    assert cache.is_stale(key)


@pytest.mark.asyncio
async def test_on_settled_receives_result_and_its_errors_are_contained() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    settled: list[MutationResult[Offer]] = []

    def on_settled(result: MutationResult[Offer]) -> None:
        settled.append(result)
        raise RuntimeError("callback bug")

    async def send() -> Offer:
        return _offer("a", visible=False)

    result = await _mutator(cache, on_settled=on_settled).mutate(key, "a", {"visible": False}, send)

    assert settled == [result]
    assert result.ok


@pytest.mark.asyncio
async def test_cache_writes_are_tagged_with_their_source() -> None:
    cache = QueryCache()
    key = offers_key("card-1")
    _seed(cache)
    sources: list[CacheSource] = []
    cache.subscribe(lambda event: sources.append(event.source), prefix=key)

    async def send() -> Offer:
        return _offer("a", visible=False)

    await _mutator(cache).mutate(key, "a", {"visible": False}, send)

    assert sources == [CacheSource.OPTIMISTIC, CacheSource.COMMIT, CacheSource.INVALIDATE]


def test_unwrap_raises_for_failed_result() -> None:
    error = MutationError(kind=MutationErrorKind.NOT_FOUND, message="Offer not found")
    result: MutationResult[Offer] = MutationResult(error=error)

    with pytest.raises(MutationFailedError, match="Offer not found") as excinfo:
        result.unwrap()
    assert excinfo.value.error is error
    assert MutationResult(item=_offer("a")).unwrap().id == "a"
    assert MutationResult[None]().unwrap() is None
