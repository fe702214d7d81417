"""Internal write operations for :class:`cardadmin.client.CardAdminClient`.

Offer edits go through the optimistic mutator; every other write is a
plain request followed by invalidation of the lists it affects.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, TypeVar

from cardadmin._api import cards as cards_api
from cardadmin._api import offers as offers_api
from cardadmin.cache.keys import QueryKey, all_offers_key, card_key, cards_key, offers_key
from cardadmin.exceptions import CardAdminError
from cardadmin.models.card import Card, CardCreate, CardUpdate, ManualCardCreate
from cardadmin.models.offer import Offer, OfferCreate, OfferUpdate
from cardadmin.mutations.result import MutationResult
from cardadmin.notifications import Notification

if TYPE_CHECKING:
    from cardadmin.client import CardAdminClient

R = TypeVar("R")


async def _write(
    client: CardAdminClient,
    call: Callable[[], Awaitable[R]],
    *,
    success: str,
    invalidate: Iterable[QueryKey],
) -> R:
    """Run a non-optimistic write; invalidate and notify on success."""
    try:
        result = await call()
    except CardAdminError as exc:
        client._notify(Notification.failure(exc))
        raise
    for key in invalidate:
        client.cache.invalidate(key)
    client._notify(Notification.success(success))
    return result


def _notify_result(client: CardAdminClient, result: MutationResult[Offer], success: str) -> None:
    if result.error is not None:
        client._notify(Notification.failure(result.error))
    else:
        client._notify(Notification.success(success))


# ----------------------------------------------------------------------
# Cards
# ----------------------------------------------------------------------


async def create_card(client: CardAdminClient, body: CardCreate) -> Card:
    transport = client._require_transport()
    return await _write(
        client,
        lambda: cards_api.create_card(transport, body),
        success="Card created successfully",
        invalidate=[cards_key()],
    )


async def create_manual_card(client: CardAdminClient, body: ManualCardCreate) -> Card:
    transport = client._require_transport()
    return await _write(
        client,
        lambda: cards_api.create_manual_card(transport, body),
        success="Card created successfully",
        invalidate=[cards_key()],
    )


async def update_card(client: CardAdminClient, card_id: str, body: CardUpdate) -> Card:
    transport = client._require_transport()
    return await _write(
        client,
        lambda: cards_api.update_card(transport, card_id, body),
        success="Card updated successfully",
        invalidate=[cards_key(), card_key(card_id)],
    )


async def sync_card_from_api(client: CardAdminClient, card_id: str) -> Card:
    transport = client._require_transport()
    return await _write(
        client,
        lambda: cards_api.sync_card_from_api(transport, card_id),
        success="Card synced from API successfully",
        invalidate=[cards_key(), card_key(card_id)],
    )


# ----------------------------------------------------------------------
# Offers
# ----------------------------------------------------------------------


async def create_offer(client: CardAdminClient, card_id: str, body: OfferCreate) -> Offer:
    transport = client._require_transport()
    return await _write(
        client,
        lambda: offers_api.create_offer(transport, card_id, body),
        success="Offer created successfully",
        invalidate=[offers_key(card_id)],
    )


async def set_current_offer(client: CardAdminClient, card_id: str, offer_id: str) -> Offer:
    transport = client._require_transport()
    return await _write(
        client,
        lambda: offers_api.set_current_offer(transport, offer_id),
        success="Current offer updated",
        invalidate=[offers_key(card_id)],
    )


async def toggle_archive_offer(client: CardAdminClient, card_id: str, offer_id: str) -> Offer:
    transport = client._require_transport()
    return await _write(
        client,
        lambda: offers_api.toggle_archive_offer(transport, offer_id),
        success="Offer archive status updated",
        invalidate=[offers_key(card_id)],
    )


async def delete_offer(client: CardAdminClient, card_id: str, offer_id: str) -> None:
    transport = client._require_transport()
    await _write(
        client,
        lambda: offers_api.delete_offer(transport, offer_id),
        success="Offer deleted successfully",
        invalidate=[offers_key(card_id)],
    )


async def update_offer(
    client: CardAdminClient,
    card_id: str,
    offer_id: str,
    body: OfferUpdate,
) -> MutationResult[Offer]:
    """Edit an offer from its card's offer list, optimistically."""
    transport = client._require_transport()
    result = await client.offer_mutator.mutate(
        offers_key(card_id),
        offer_id,
        body.to_changes(),
        lambda: offers_api.update_offer(transport, offer_id, body),
        also_invalidate=[all_offers_key()],
    )
    _notify_result(client, result, "Offer updated successfully")
    return result


async def set_offer_visibility(client: CardAdminClient, offer_id: str, *, visible: bool) -> MutationResult[Offer]:
    """Publish or hide an offer from the all-offers list, optimistically.

    The owning card's offer list is reconciled as well.
    """
    transport = client._require_transport()
    body = OfferUpdate(visible=visible)
    result = await client.offer_mutator.mutate(
        all_offers_key(),
        offer_id,
        body.to_changes(),
        lambda: offers_api.update_offer(transport, offer_id, body),
        secondary_key=lambda offer: offers_key(offer.card_id),
    )
    _notify_result(client, result, "Offer visibility updated successfully")
    return result
