"""Cache change events.

Every write to the :class:`~cardadmin.cache.store.QueryCache` is
published to subscribers as a :class:`CacheEvent`, tagged with the
source of the write.  UI layers use these to re-render and to show
toast-style notifications.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from cardadmin.cache.keys import QueryKey


class CacheSource(StrEnum):
    FETCH = "fetch"
    MANUAL = "manual"
    OPTIMISTIC = "optimistic"
    COMMIT = "commit"
    ROLLBACK = "rollback"
    INVALIDATE = "invalidate"
    REMOVE = "remove"


@dataclass(frozen=True, slots=True)
class CacheEvent:
    """A single cache change.

    ``value`` is the new cached value (``None`` for invalidation and
    removal events).
    """

    key: QueryKey
    source: CacheSource
    value: Any = None
    observed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
