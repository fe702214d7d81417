"""Optimistic list-cache mutator.

Applies an edit to one item of a cached collection before the server
confirms it, then commits the server's copy or restores the snapshot,
and in every case marks the affected collections stale.  Each call to
:meth:`OptimisticMutator.mutate` runs this fixed sequence::

    idle -> cancelling-reads -> optimistic-applied -> awaiting-server
         -> committed | rolled-back -> reconciling -> done

The network write is the only suspension point; every cache step in
between runs without yielding to the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from cardadmin.cache.events import CacheSource
from cardadmin.cache.keys import QueryKey
from cardadmin.cache.store import QueryCache
from cardadmin.exceptions import CardAdminError
from cardadmin.mutations.result import MutationError, MutationPhase, MutationResult

_logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_TRANSITIONS: dict[MutationPhase, frozenset[MutationPhase]] = {
    MutationPhase.IDLE: frozenset({MutationPhase.CANCELLING_READS}),
    MutationPhase.CANCELLING_READS: frozenset({MutationPhase.OPTIMISTIC_APPLIED}),
    MutationPhase.OPTIMISTIC_APPLIED: frozenset({MutationPhase.AWAITING_SERVER}),
    MutationPhase.AWAITING_SERVER: frozenset({MutationPhase.COMMITTED, MutationPhase.ROLLED_BACK}),
    MutationPhase.COMMITTED: frozenset({MutationPhase.RECONCILING}),
    MutationPhase.ROLLED_BACK: frozenset({MutationPhase.RECONCILING}),
    MutationPhase.RECONCILING: frozenset({MutationPhase.DONE}),
    MutationPhase.DONE: frozenset(),
}


def item_id(item: Any) -> str:
    return str(item.id)


def find_item(collection: Any, target_id: str) -> Any | None:
    """Return the item with *target_id* from a cached collection, if any."""
    if not isinstance(collection, Sequence) or isinstance(collection, str):
        return None
    for item in collection:
        if item_id(item) == target_id:
            return item
    return None


def apply_changes(item: T, changes: Mapping[str, Any]) -> T:
    """Return a validated copy of *item* with *changes* merged on top."""
    if not changes:
        return item
    data = item.model_dump()
    data.update(changes)
    return type(item).model_validate(data)


def replace_item(collection: Sequence[T], replacement: T) -> tuple[T, ...]:
    """Return a new tuple with the item sharing *replacement*'s id swapped in.

    Order is preserved; if no item matches the collection is returned
    unchanged (as a tuple).
    """
    target = item_id(replacement)
    return tuple(replacement if item_id(item) == target else item for item in collection)


class _MutationRun:
    """Phase tracker for a single mutation instance."""

    def __init__(self, key: QueryKey, target_id: str) -> None:
        self.key = key
        self.target_id = target_id
        self.phase = MutationPhase.IDLE
        self.phases: list[MutationPhase] = [MutationPhase.IDLE]

    def advance(self, phase: MutationPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f"Invalid mutation transition {self.phase} -> {phase}")
        self.phase = phase
        self.phases.append(phase)
        _logger.debug("Mutation key=%s id=%s phase=%s", self.key, self.target_id, phase)


class OptimisticMutator(Generic[T]):
    """Optimistic edits of items held in :class:`QueryCache` collections.

    Parameters
    ----------
    cache : QueryCache
        The shared cache.
    item_type : type
        Pydantic model of the collection items; ``changes`` are checked
        against its fields.
    immutable_fields : iterable of str
        Identity fields that an edit may never touch.
    on_settled : callable, optional
        Called with every :class:`MutationResult` once it is final.
    """

    def __init__(
        self,
        cache: QueryCache,
        item_type: type[T],
        *,
        immutable_fields: Iterable[str] = ("id",),
        on_settled: Callable[[MutationResult[T]], None] | None = None,
    ) -> None:
        self._cache = cache
        self._item_type = item_type
        self._immutable_fields = frozenset(immutable_fields)
        self._on_settled = on_settled

    def _check_changes(self, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - set(self._item_type.model_fields)
        if unknown:
            raise ValueError(f"Unknown {self._item_type.__name__} field(s): {', '.join(sorted(unknown))}")
        frozen = set(changes) & self._immutable_fields
        if frozen:
            raise ValueError(f"Cannot change identity field(s): {', '.join(sorted(frozen))}")

    def _merge(self, item: T, changes: Mapping[str, Any]) -> T:
        try:
            return apply_changes(item, changes)
        except ValidationError as exc:
            raise ValueError(
                f"Invalid {self._item_type.__name__} change(s): {exc.error_count()} validation error(s)"
            ) from exc

    async def mutate(
        self,
        key: QueryKey,
        target_id: str,
        changes: Mapping[str, Any],
        send: Callable[[], Awaitable[T]],
        *,
        secondary_key: Callable[[T], QueryKey | None] | None = None,
        also_invalidate: Iterable[QueryKey] = (),
    ) -> MutationResult[T]:
        """Apply *changes* to item *target_id* under *key*, then run *send*.

        Parameters
        ----------
        key : QueryKey
            Cached collection to edit optimistically.
        target_id : str
            Id of the item to edit.  If it is not cached the optimistic
            step is skipped but *send* still runs.
        changes : mapping
            Field values to merge onto the item (model attribute names).
        send : callable
            Performs the server write and returns the authoritative item.
        secondary_key : callable, optional
            Derives another cache key from the item (e.g. its parent
            card's offer list) to reconcile as well.
        also_invalidate : iterable of QueryKey
            Further keys to mark stale once the mutation settles.

        Returns
        -------
        MutationResult
            Failures of *send* are reported through ``result.error``;
            only task cancellation propagates.

        Raises
        ------
        ValueError
            If *changes* names unknown or identity fields, or would make
            the cached item invalid.  Nothing has touched the cache yet.
        """
        changes = dict(changes)
        self._check_changes(changes)
        # Nothing awaits before send(), so the item merged here is the one
        # the snapshot below holds.
        previous_item = find_item(self._cache.get(key), target_id)
        updated = self._merge(previous_item, changes) if previous_item is not None else None
        run = _MutationRun(key, target_id)

        run.advance(MutationPhase.CANCELLING_READS)
        self._cache.cancel_in_flight(key)

        # Cached collections are tuples of frozen models, so holding the
        # reference is a full snapshot.
        snapshot = self._cache.get(key)
        optimistic_revision: int | None = None
        if updated is not None:
            self._cache.set(key, replace_item(snapshot, updated), source=CacheSource.OPTIMISTIC)
            optimistic_revision = self._cache.revision(key)
        else:
            _logger.debug("Item id=%s not cached under %s; skipping optimistic write", target_id, key)
        run.advance(MutationPhase.OPTIMISTIC_APPLIED)

        run.advance(MutationPhase.AWAITING_SERVER)
        try:
            server_item = await send()
        except CardAdminError as exc:
            error = MutationError.from_exception(exc)
            _logger.debug("Mutation id=%s failed: %s", target_id, error.detail)
            self._rollback(run, snapshot, optimistic_revision)
            reconciled = self._reconcile(run, previous_item, secondary_key, also_invalidate)
            result: MutationResult[T] = MutationResult(
                error=error,
                phases=self._finish(run),
                reconciled=reconciled,
            )
        except asyncio.CancelledError:
            self._rollback(run, snapshot, optimistic_revision)
            self._reconcile(run, previous_item, secondary_key, also_invalidate)
            self._finish(run)
            raise
        except Exception as exc:
            error = MutationError.from_unexpected(exc)
            _logger.warning("Mutation id=%s failed unexpectedly", target_id, exc_info=True)
            self._rollback(run, snapshot, optimistic_revision)
            reconciled = self._reconcile(run, previous_item, secondary_key, also_invalidate)
            result = MutationResult(
                error=error,
                phases=self._finish(run),
                reconciled=reconciled,
            )
        else:
            self._commit(run, server_item)
            reconciled = self._reconcile(run, server_item, secondary_key, also_invalidate)
            result = MutationResult(
                item=server_item,
                phases=self._finish(run),
                reconciled=reconciled,
            )

        if self._on_settled is not None:
            try:
                self._on_settled(result)
            except Exception:
                _logger.debug("on_settled callback failed", exc_info=True)
        return result

    def _commit(self, run: _MutationRun, server_item: T) -> None:
        current = self._cache.get(run.key)
        if find_item(current, item_id(server_item)) is not None:
            self._cache.set(run.key, replace_item(current, server_item), source=CacheSource.COMMIT)
        run.advance(MutationPhase.COMMITTED)

    def _rollback(self, run: _MutationRun, snapshot: Any, optimistic_revision: int | None) -> None:
        # Nothing to undo when the optimistic step was skipped.
        if optimistic_revision is not None:
            if self._cache.fetch_revision(run.key) > optimistic_revision:
                # A read that started after our cancel finished first; it is newer than the snapshot.
                _logger.debug("Keeping newer fetch result for %s instead of rolling back", run.key)
            else:
                self._cache.set(run.key, snapshot, source=CacheSource.ROLLBACK)
        run.advance(MutationPhase.ROLLED_BACK)

    def _reconcile(
        self,
        run: _MutationRun,
        item: T | None,
        secondary_key: Callable[[T], QueryKey | None] | None,
        also_invalidate: Iterable[QueryKey],
    ) -> tuple[QueryKey, ...]:
        run.advance(MutationPhase.RECONCILING)
        keys: list[QueryKey] = [run.key]
        if secondary_key is not None and item is not None:
            extra = secondary_key(item)
            if extra is not None:
                keys.append(extra)
        keys.extend(also_invalidate)

        reconciled: list[QueryKey] = []
        for key in keys:
            if key in reconciled:
                continue
            self._cache.invalidate(key)
            reconciled.append(key)
        return tuple(reconciled)

    def _finish(self, run: _MutationRun) -> tuple[MutationPhase, ...]:
        run.advance(MutationPhase.DONE)
        return tuple(run.phases)
