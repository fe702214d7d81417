"""Cache keys for admin API queries.

Keys are tuples whose first element names the resource set.  Prefix
matching on tuples drives invalidation: invalidating ``("offers",)``
marks every per-card offer list stale.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import TypeAlias

from cardadmin.models.activity import ActivityLogFilters
from cardadmin.models.card import CardFilters

QueryKey: TypeAlias = tuple[Hashable, ...]

CARDS = "cards"
CARD = "card"
ISSUERS = "issuers"
API_CARDS = "apiCards"
OFFERS = "offers"
ALL_OFFERS = "allOffers"
ACTIVITY = "activityLogs"
DASHBOARD = "dashboard"


def key_matches(key: QueryKey, prefix: QueryKey) -> bool:
    """Return ``True`` when *key* starts with *prefix*."""
    return key[: len(prefix)] == prefix


def _params_token(params: dict[str, str]) -> tuple[tuple[str, str], ...]:
    return tuple(sorted(params.items()))


def cards_key(filters: CardFilters | None = None) -> QueryKey:
    if filters is None:
        return (CARDS,)
    return (CARDS, _params_token(filters.to_params()))


def card_key(card_id: str) -> QueryKey:
    return (CARD, card_id)


def issuers_key() -> QueryKey:
    return (ISSUERS,)


def api_cards_key(search: str = "") -> QueryKey:
    return (API_CARDS, search)


def offers_key(card_id: str | None = None) -> QueryKey:
    if card_id is None:
        return (OFFERS,)
    return (OFFERS, card_id)


def all_offers_key() -> QueryKey:
    return (ALL_OFFERS,)


def activity_key(filters: ActivityLogFilters | None = None) -> QueryKey:
    if filters is None:
        return (ACTIVITY,)
    return (ACTIVITY, _params_token(filters.to_params()))


def dashboard_key() -> QueryKey:
    return (DASHBOARD,)
