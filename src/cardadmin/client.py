"""High-level async client for the card admin API."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from cardadmin._client import mutations as _mutations
from cardadmin._client import queries as _queries
from cardadmin._transport import HttpTransport, Transport
from cardadmin.cache.keys import QueryKey
from cardadmin.cache.store import QueryCache
from cardadmin.config import AdminConfig
from cardadmin.exceptions import CardAdminError
from cardadmin.models.activity import ActivityLog, ActivityLogFilters
from cardadmin.models.card import ApiCardSearchResult, Card, CardCreate, CardFilters, CardUpdate, ManualCardCreate
from cardadmin.models.dashboard import DashboardData
from cardadmin.models.offer import Offer, OfferCreate, OfferUpdate
from cardadmin.models.pagination import Page
from cardadmin.mutations.optimistic import OptimisticMutator
from cardadmin.mutations.result import MutationResult
from cardadmin.notifications import Notification

_logger = logging.getLogger(__name__)


class CardAdminClient:
    """Async client for the card admin API.

    Reads are served from a shared :class:`QueryCache`; offer edits are
    applied to it optimistically and reconciled with the server.

    Usage::

        async with CardAdminClient(AdminConfig.from_env()) as client:
            offers = await client.get_all_offers()
            await client.set_offer_visibility(offers[0].id, visible=False)
    """

    def __init__(
        self,
        config: AdminConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        cache: QueryCache | None = None,
        on_notification: Callable[[Notification], None] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._injected_transport = transport
        self._transport: Transport | None = None
        self._cache = cache if cache is not None else QueryCache()
        self._on_notification = on_notification
        self._offer_mutator: OptimisticMutator[Offer] = OptimisticMutator(
            self._cache,
            Offer,
            immutable_fields=("id", "card_id"),
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> CardAdminClient:
        if self._injected_transport is not None:
            self._transport = self._injected_transport
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> AdminConfig:
        return self._config

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def offer_mutator(self) -> OptimisticMutator[Offer]:
        return self._offer_mutator

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise CardAdminError("Client not initialized. Use 'async with CardAdminClient(...) as client:'")
        return self._transport

    def _notify(self, notification: Notification) -> None:
        _logger.debug("Notification %s: %s", notification.title, notification.description)
        if self._on_notification is None:
            return
        try:
            self._on_notification(notification)
        except Exception:
            _logger.debug("Notification callback failed", exc_info=True)

    async def _query(
        self,
        key: QueryKey,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        stale_time: float | None = None,
    ) -> Any:
        """Cached read that reports failures as a notification before raising."""
        try:
            return await self._cache.query(key, fetcher, stale_time=stale_time)
        except CardAdminError as exc:
            self._notify(Notification.failure(exc))
            raise

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_cards(self, filters: CardFilters | None = None) -> Page[Card]:
        return await _queries.get_cards(self, filters)

    async def get_card(self, card_id: str) -> Card:
        return await _queries.get_card(self, card_id)

    async def get_issuers(self) -> tuple[str, ...]:
        return await _queries.get_issuers(self)

    async def search_api_cards(self, search: str = "") -> ApiCardSearchResult:
        return await _queries.search_api_cards(self, search)

    async def get_offers_for_card(self, card_id: str) -> tuple[Offer, ...]:
        return await _queries.get_offers_for_card(self, card_id)

    async def get_all_offers(self) -> tuple[Offer, ...]:
        return await _queries.get_all_offers(self)

    async def get_activity_logs(self, filters: ActivityLogFilters | None = None) -> Page[ActivityLog]:
        return await _queries.get_activity_logs(self, filters)

    async def get_dashboard_stats(self) -> DashboardData:
        return await _queries.get_dashboard_stats(self)

    # ------------------------------------------------------------------
    # Card mutations
    # ------------------------------------------------------------------

    async def create_card(self, body: CardCreate) -> Card:
        return await _mutations.create_card(self, body)

    async def create_manual_card(self, body: ManualCardCreate) -> Card:
        return await _mutations.create_manual_card(self, body)

    async def update_card(self, card_id: str, body: CardUpdate) -> Card:
        return await _mutations.update_card(self, card_id, body)

    async def sync_card_from_api(self, card_id: str) -> Card:
        return await _mutations.sync_card_from_api(self, card_id)

    # ------------------------------------------------------------------
    # Offer mutations
    # ------------------------------------------------------------------

    async def create_offer(self, card_id: str, body: OfferCreate) -> Offer:
        return await _mutations.create_offer(self, card_id, body)

    async def set_current_offer(self, card_id: str, offer_id: str) -> Offer:
        return await _mutations.set_current_offer(self, card_id, offer_id)

    async def toggle_archive_offer(self, card_id: str, offer_id: str) -> Offer:
        return await _mutations.toggle_archive_offer(self, card_id, offer_id)

    async def delete_offer(self, card_id: str, offer_id: str) -> None:
        await _mutations.delete_offer(self, card_id, offer_id)

    async def update_offer(self, card_id: str, offer_id: str, body: OfferUpdate) -> MutationResult[Offer]:
        """Edit an offer optimistically; failures come back in ``result.error``."""
        return await _mutations.update_offer(self, card_id, offer_id, body)

    async def set_offer_visibility(self, offer_id: str, *, visible: bool) -> MutationResult[Offer]:
        """Publish or hide an offer optimistically; failures come back in ``result.error``."""
        return await _mutations.set_offer_visibility(self, offer_id, visible=visible)
