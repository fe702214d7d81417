"""Internal cached read operations for :class:`cardadmin.client.CardAdminClient`.

These functions keep `client.py` small without changing the public API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from cardadmin._api import activity as activity_api
from cardadmin._api import cards as cards_api
from cardadmin._api import dashboard as dashboard_api
from cardadmin._api import offers as offers_api
from cardadmin.cache.keys import (
    activity_key,
    all_offers_key,
    api_cards_key,
    card_key,
    cards_key,
    dashboard_key,
    issuers_key,
    offers_key,
)
from cardadmin.models.activity import ActivityLog, ActivityLogFilters
from cardadmin.models.card import ApiCardSearchResult, Card, CardFilters
from cardadmin.models.dashboard import DashboardData
from cardadmin.models.offer import Offer, OfferCardRef
from cardadmin.models.pagination import Page

if TYPE_CHECKING:
    from cardadmin.client import CardAdminClient

_logger = logging.getLogger(__name__)


async def get_cards(client: CardAdminClient, filters: CardFilters | None = None) -> Page[Card]:
    filters = filters or CardFilters()
    transport = client._require_transport()
    page: Page[Card] = await client._query(
        cards_key(filters),
        lambda: cards_api.fetch_cards(transport, filters),
    )
    return page


async def get_card(client: CardAdminClient, card_id: str) -> Card:
    transport = client._require_transport()
    card: Card = await client._query(card_key(card_id), lambda: cards_api.fetch_card(transport, card_id))
    return card


async def get_issuers(client: CardAdminClient) -> tuple[str, ...]:
    transport = client._require_transport()
    issuers: tuple[str, ...] = await client._query(issuers_key(), lambda: cards_api.fetch_issuers(transport))
    return issuers


async def search_api_cards(client: CardAdminClient, search: str = "") -> ApiCardSearchResult:
    transport = client._require_transport()
    search = search.strip()
    result: ApiCardSearchResult = await client._query(
        api_cards_key(search),
        lambda: cards_api.search_api_cards(transport, search),
    )
    return result


async def get_offers_for_card(client: CardAdminClient, card_id: str) -> tuple[Offer, ...]:
    if not card_id:
        raise ValueError("card_id must be non-empty")
    transport = client._require_transport()
    offers: tuple[Offer, ...] = await client._query(
        offers_key(card_id),
        lambda: offers_api.fetch_offers_for_card(transport, card_id),
    )
    return offers


async def get_all_offers(client: CardAdminClient) -> tuple[Offer, ...]:
    """Offers of every card, concatenated in card-list order.

    The backend has no all-offers endpoint, so this lists the cards and
    fetches each card's offers concurrently.  Offers without an embedded
    card reference get one built from the card list.
    """
    transport = client._require_transport()

    async def _fetch() -> tuple[Offer, ...]:
        page = await get_cards(client, CardFilters(page=1, limit=client.config.all_offers_card_limit))
        cards = page.data
        if not cards:
            return ()
        per_card = await asyncio.gather(*(offers_api.fetch_offers_for_card(transport, card.id) for card in cards))
        by_id = {card.id: card for card in cards}
        offers: list[Offer] = []
        for card_offers in per_card:
            for offer in card_offers:
                owner = by_id.get(offer.card_id)
                if offer.card is None and owner is not None:
                    offer = offer.model_copy(
                        update={"card": OfferCardRef(id=owner.id, name=owner.name, issuer=owner.issuer)}
                    )
                offers.append(offer)
        _logger.debug("Aggregated %d offer(s) across %d card(s)", len(offers), len(cards))
        return tuple(offers)

    offers: tuple[Offer, ...] = await client._query(all_offers_key(), _fetch)
    return offers


async def get_activity_logs(
    client: CardAdminClient,
    filters: ActivityLogFilters | None = None,
) -> Page[ActivityLog]:
    filters = filters or ActivityLogFilters()
    transport = client._require_transport()
    page: Page[ActivityLog] = await client._query(
        activity_key(filters),
        lambda: activity_api.fetch_activity_logs(transport, filters),
    )
    return page


async def get_dashboard_stats(client: CardAdminClient) -> DashboardData:
    transport = client._require_transport()
    data: DashboardData = await client._query(
        dashboard_key(),
        lambda: dashboard_api.fetch_dashboard_stats(transport),
        stale_time=client.config.dashboard_stale_time,
    )
    return data
