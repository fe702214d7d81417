"""Offer endpoints.

Endpoints:
  - GET    /offers/cards/{cardId}/offers
  - POST   /offers/cards/{cardId}/offers
  - PUT    /offers/{id}
  - PATCH  /offers/{id}/current
  - PATCH  /offers/{id}/archive
  - DELETE /offers/{id}
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from pydantic import TypeAdapter

from cardadmin._api._common import parse_list, parse_model, request_data
from cardadmin._transport import Transport
from cardadmin.models.offer import Offer, OfferCreate, OfferUpdate

_logger = logging.getLogger(__name__)

_OFFER_LIST = TypeAdapter(tuple[Offer, ...])


def _card_offers_path(card_id: str) -> str:
    return f"/offers/cards/{quote(card_id, safe='')}/offers"


def _offer_path(offer_id: str, action: str = "") -> str:
    path = f"/offers/{quote(offer_id, safe='')}"
    return f"{path}/{action}" if action else path


async def fetch_offers_for_card(transport: Transport, card_id: str) -> tuple[Offer, ...]:
    """Fetch every offer attached to a card, in server order."""
    endpoint = _card_offers_path(card_id)
    data = await request_data(transport, "GET", endpoint, error_message="Failed to fetch offers")
    offers = parse_list(_OFFER_LIST, data, endpoint=endpoint)
    _logger.debug("Fetched %d offer(s) for card=%s", len(offers), card_id)
    return offers


async def create_offer(transport: Transport, card_id: str, body: OfferCreate) -> Offer:
    endpoint = _card_offers_path(card_id)
    data = await request_data(
        transport,
        "POST",
        endpoint,
        json_body=body.to_payload(),
        error_message="Failed to create offer",
    )
    return parse_model(Offer, data, endpoint=endpoint)


async def update_offer(transport: Transport, offer_id: str, body: OfferUpdate) -> Offer:
    """Persist a partial offer edit and return the server's copy."""
    endpoint = _offer_path(offer_id)
    data = await request_data(
        transport,
        "PUT",
        endpoint,
        json_body=body.to_payload(),
        error_message="Failed to update offer",
    )
    return parse_model(Offer, data, endpoint=endpoint)


async def set_current_offer(transport: Transport, offer_id: str) -> Offer:
    endpoint = _offer_path(offer_id, "current")
    data = await request_data(transport, "PATCH", endpoint, error_message="Failed to set current offer")
    return parse_model(Offer, data, endpoint=endpoint)


async def toggle_archive_offer(transport: Transport, offer_id: str) -> Offer:
    endpoint = _offer_path(offer_id, "archive")
    data = await request_data(transport, "PATCH", endpoint, error_message="Failed to toggle archive")
    return parse_model(Offer, data, endpoint=endpoint)


async def delete_offer(transport: Transport, offer_id: str) -> None:
    endpoint = _offer_path(offer_id)
    await request_data(transport, "DELETE", endpoint, error_message="Failed to delete offer")
