"""Query cache layer.

Holds the results of list and detail queries, keyed by
:mod:`cardadmin.cache.keys`, and publishes every change as a
:class:`~cardadmin.cache.events.CacheEvent`.
"""

from cardadmin.cache.events import CacheEvent, CacheSource
from cardadmin.cache.keys import QueryKey, key_matches
from cardadmin.cache.store import CacheEntry, CacheListener, QueryCache

__all__ = [
    "CacheEntry",
    "CacheEvent",
    "CacheListener",
    "CacheSource",
    "QueryCache",
    "QueryKey",
    "key_matches",
]
