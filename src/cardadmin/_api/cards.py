"""Card catalogue endpoints.

Endpoints:
  - GET  /cards                (paginated, filtered)
  - GET  /cards/{id}
  - GET  /cards/issuers
  - GET  /cards/api/search     (upstream provider search)
  - POST /cards                (import from provider)
  - POST /cards/manual
  - PUT  /cards/{id}
  - POST /cards/{id}/sync
"""

from __future__ import annotations

from urllib.parse import quote

from pydantic import TypeAdapter

from cardadmin._api._common import parse_list, parse_model, request_data
from cardadmin._transport import Transport
from cardadmin.models.card import (
    ApiCardSearchResult,
    Card,
    CardCreate,
    CardFilters,
    CardUpdate,
    ManualCardCreate,
)
from cardadmin.models.pagination import Page

_ISSUERS = TypeAdapter(tuple[str, ...])


def _card_path(card_id: str, action: str = "") -> str:
    path = f"/cards/{quote(card_id, safe='')}"
    return f"{path}/{action}" if action else path


async def fetch_cards(transport: Transport, filters: CardFilters) -> Page[Card]:
    endpoint = "/cards"
    data = await request_data(
        transport,
        "GET",
        endpoint,
        params=filters.to_params(),
        error_message="Failed to fetch cards",
    )
    return parse_model(Page[Card], data, endpoint=endpoint)


async def fetch_card(transport: Transport, card_id: str) -> Card:
    endpoint = _card_path(card_id)
    data = await request_data(transport, "GET", endpoint, error_message="Failed to fetch card")
    return parse_model(Card, data, endpoint=endpoint)


async def fetch_issuers(transport: Transport) -> tuple[str, ...]:
    endpoint = "/cards/issuers"
    data = await request_data(transport, "GET", endpoint, error_message="Failed to fetch issuers")
    return parse_list(_ISSUERS, data, endpoint=endpoint)


async def search_api_cards(transport: Transport, search: str = "") -> ApiCardSearchResult:
    endpoint = "/cards/api/search"
    params = {"search": search} if search else {}
    data = await request_data(
        transport,
        "GET",
        endpoint,
        params=params,
        error_message="Failed to search API cards",
    )
    return parse_model(ApiCardSearchResult, data, endpoint=endpoint)


async def create_card(transport: Transport, body: CardCreate) -> Card:
    endpoint = "/cards"
    data = await request_data(
        transport,
        "POST",
        endpoint,
        json_body=body.to_payload(),
        error_message="Failed to create card",
    )
    return parse_model(Card, data, endpoint=endpoint)


async def create_manual_card(transport: Transport, body: ManualCardCreate) -> Card:
    endpoint = "/cards/manual"
    data = await request_data(
        transport,
        "POST",
        endpoint,
        json_body=body.to_payload(),
        error_message="Failed to create card",
    )
    return parse_model(Card, data, endpoint=endpoint)


async def update_card(transport: Transport, card_id: str, body: CardUpdate) -> Card:
    endpoint = _card_path(card_id)
    data = await request_data(
        transport,
        "PUT",
        endpoint,
        json_body=body.to_payload(),
        error_message="Failed to update card",
    )
    return parse_model(Card, data, endpoint=endpoint)


async def sync_card_from_api(transport: Transport, card_id: str) -> Card:
    """Re-pull a card's provider data and return the refreshed record."""
    endpoint = _card_path(card_id, "sync")
    data = await request_data(transport, "POST", endpoint, error_message="Failed to sync card from API")
    return parse_model(Card, data, endpoint=endpoint)
