"""In-memory query cache.

This is the only shared mutable state in the client.  It is never
locked: every write replaces a whole cached value, and cached
collections are tuples of frozen models, so a reader always sees a
complete old or new value.

Freshness rules:

* each :meth:`QueryCache.fetch` takes a new token for its key; a fetch
  result is written only while its token is still current, so a newer
  fetch or a :meth:`QueryCache.cancel_in_flight` call supersedes it;
* :meth:`QueryCache.invalidate` marks entries stale; a fetch that
  started before the invalidation may still write its result but does
  not make the entry fresh again.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

from cardadmin.cache.events import CacheEvent, CacheSource
from cardadmin.cache.keys import QueryKey, key_matches

_logger = logging.getLogger(__name__)

CacheListener = Callable[[CacheEvent], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclasses.dataclass(frozen=True, slots=True)
class CacheEntry:
    value: Any
    revision: int
    fetch_revision: int = 0
    invalidated_revision: int = 0
    stale: bool = False
    fetched_at: datetime | None = None


@dataclasses.dataclass(frozen=True, slots=True, eq=False)
class _Subscription:
    listener: CacheListener
    prefix: QueryKey | None


class QueryCache:
    """Keyed cache of query results with fetch supersession and invalidation."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._tokens: dict[QueryKey, int] = {}
        self._in_flight: dict[QueryKey, int] = {}
        # Invalidations of keys that were being fetched before their first write.
        self._pending_invalidations: dict[QueryKey, int] = {}
        self._subscriptions: list[_Subscription] = []
        # Monotonic across all keys; orders writes, fetch starts and invalidations.
        self._revision = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: QueryKey) -> Any | None:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def entry(self, key: QueryKey) -> CacheEntry | None:
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[QueryKey]:
        return iter(list(self._entries))

    def revision(self, key: QueryKey) -> int:
        """Revision of the last write to *key* (``0`` when absent)."""
        entry = self._entries.get(key)
        return entry.revision if entry is not None else 0

    def fetch_revision(self, key: QueryKey) -> int:
        """Revision of the last fetch result written to *key*."""
        entry = self._entries.get(key)
        return entry.fetch_revision if entry is not None else 0

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._in_flight

    def is_stale(self, key: QueryKey, *, stale_time: float | None = None) -> bool:
        """Whether the next :meth:`query` for *key* must go to the network.

        Parameters
        ----------
        stale_time : float or None
            Seconds a fetched value stays fresh.  ``None`` keeps it fresh
            until it is invalidated.
        """
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return True
        if stale_time is None:
            return False
        if entry.fetched_at is None:
            return True
        return self._clock() - entry.fetched_at >= timedelta(seconds=stale_time)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _next_revision(self) -> int:
        self._revision += 1
        return self._revision

    def _write(
        self,
        key: QueryKey,
        value: Any,
        source: CacheSource,
        *,
        started_revision: int | None = None,
    ) -> None:
        if isinstance(value, list):
            value = tuple(value)
        revision = self._next_revision()
        previous = self._entries.get(key)
        if previous is None:
            previous = CacheEntry(
                value=None,
                revision=0,
                invalidated_revision=self._pending_invalidations.pop(key, 0),
            )

        if source is CacheSource.FETCH:
            started = started_revision if started_revision is not None else revision
            entry = dataclasses.replace(
                previous,
                value=value,
                revision=revision,
                fetch_revision=revision,
                stale=previous.invalidated_revision > started,
                fetched_at=self._clock(),
            )
        else:
            entry = dataclasses.replace(previous, value=value, revision=revision)

        self._entries[key] = entry
        _logger.debug("Cache write key=%s source=%s revision=%d", key, source, revision)
        self._notify(CacheEvent(key=key, source=source, value=value))

    def set(self, key: QueryKey, value: Any, *, source: CacheSource = CacheSource.MANUAL) -> None:
        """Replace the cached value for *key*.

        Lists are stored as tuples so later edits cannot alias a
        snapshot held elsewhere.
        """
        if source in (CacheSource.INVALIDATE, CacheSource.REMOVE):
            raise ValueError(f"{source} is not a value-carrying source")
        self._write(key, value, source)

    def remove(self, key: QueryKey) -> None:
        if self._entries.pop(key, None) is None:
            return
        self._next_revision()
        self._notify(CacheEvent(key=key, source=CacheSource.REMOVE))

    def clear(self) -> None:
        for key in list(self._entries):
            self.remove(key)

    def invalidate(self, key: QueryKey, *, exact: bool = False) -> list[QueryKey]:
        """Mark cached entries stale so the next read refetches them.

        Parameters
        ----------
        key : QueryKey
            Key or key prefix.
        exact : bool
            Only match *key* itself instead of every key it prefixes.

        Returns
        -------
        list of QueryKey
            The keys that were marked stale.
        """
        revision = self._next_revision()
        matched = [k for k in self._entries if (k == key if exact else key_matches(k, key))]
        for matched_key in matched:
            self._entries[matched_key] = dataclasses.replace(
                self._entries[matched_key],
                stale=True,
                invalidated_revision=revision,
            )
        for pending_key in self._in_flight:
            if pending_key not in self._entries and (
                pending_key == key if exact else key_matches(pending_key, key)
            ):
                self._pending_invalidations[pending_key] = revision
        _logger.debug("Invalidated %d key(s) for %s", len(matched), key)
        for matched_key in matched:
            self._notify(CacheEvent(key=matched_key, source=CacheSource.INVALIDATE))
        return matched

    def cancel_in_flight(self, key: QueryKey) -> bool:
        """Supersede any running fetch for *key*.

        The fetch keeps running (cancellation is cooperative) but its
        result will not be written.  Returns ``True`` if one was running.
        """
        if self._in_flight.pop(key, None) is None:
            return False
        self._tokens[key] = self._tokens.get(key, 0) + 1
        _logger.debug("Cancelled in-flight fetch for %s", key)
        return True

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        """Run *fetcher* and store its result unless superseded meanwhile.

        A superseded fetch returns the currently cached value, so the
        caller never sees a result the cache has already discarded.
        Fetcher exceptions propagate and leave the cache untouched.
        """
        token = self._tokens.get(key, 0) + 1
        self._tokens[key] = token
        self._in_flight[key] = token
        started_revision = self._revision
        try:
            result = await fetcher()
        finally:
            if self._in_flight.get(key) == token:
                del self._in_flight[key]

        if self._tokens.get(key) != token:
            _logger.debug("Discarding superseded fetch result for %s", key)
            entry = self._entries.get(key)
            return entry.value if entry is not None else result

        self._write(key, result, CacheSource.FETCH, started_revision=started_revision)
        return self._entries[key].value

    async def query(
        self,
        key: QueryKey,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        stale_time: float | None = None,
    ) -> Any:
        """Return the cached value for *key*, fetching it when missing or stale."""
        if not self.is_stale(key, stale_time=stale_time):
            return self._entries[key].value
        return await self.fetch(key, fetcher)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: CacheListener, *, prefix: QueryKey | None = None) -> Callable[[], None]:
        """Register *listener* for events on keys under *prefix* (all keys if ``None``).

        Returns a callable that removes the subscription.
        """
        subscription = _Subscription(listener=listener, prefix=prefix)
        self._subscriptions.append(subscription)

        def _unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return _unsubscribe

    def _notify(self, event: CacheEvent) -> None:
        for subscription in list(self._subscriptions):
            if subscription.prefix is not None and not key_matches(event.key, subscription.prefix):
                continue
            try:
                subscription.listener(event)
            except Exception:
                _logger.debug("Cache listener failed for %s", event.key, exc_info=True)
