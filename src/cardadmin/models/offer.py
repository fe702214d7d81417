"""Offer models."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from cardadmin.models._base import AdminBaseModel, AdminRequestModel


class OfferCardRef(AdminBaseModel):
    """Minimal card reference embedded in an offer."""

    id: str
    name: str | None = None
    issuer: str | None = None


class Offer(AdminBaseModel):
    """A sign-up offer attached to a card.

    Parameters
    ----------
    id : str
        Stable offer identifier.
    card_id : str
        Owning card; used to reconcile the per-card offer list after an
        edit made from the all-offers view.
    visible : bool
        Whether the offer is published on the public site.
    is_current : bool
        Whether this is the card's current offer.
    card : OfferCardRef or None
        Embedded card reference; filled in from the card list when the
        server omits it.
    """

    id: str
    card_id: str
    sign_up_bonus: str = ""
    minimum_spend: float | None = None
    time_period: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    public_url: str | None = None
    referral_url: str | None = None
    internal_label: str | None = None
    is_current: bool = False
    visible: bool = True
    archived: bool = False
    is_override: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    card: OfferCardRef | None = None


class _OfferFields(AdminRequestModel):
    minimum_spend: float | None = Field(default=None, ge=0)
    time_period: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    public_url: str | None = None
    referral_url: str | None = None
    internal_label: str | None = None
    is_current: bool | None = None
    visible: bool | None = None
    archived: bool | None = None

    @field_validator("is_current", "visible", "archived")
    @classmethod
    def _flag_not_null(cls, value: bool | None) -> bool | None:
        # Omit a flag to leave it unchanged; it has no null state.
        if value is None:
            raise ValueError("flag cannot be null")
        return value


class OfferCreate(_OfferFields):
    """Body of ``POST /offers/cards/{cardId}/offers``."""

    sign_up_bonus: str

    @field_validator("sign_up_bonus")
    @classmethod
    def _bonus_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("sign_up_bonus must be non-empty")
        return value


class OfferUpdate(_OfferFields):
    """Partial body of ``PUT /offers/{id}``; only set fields are sent."""

    sign_up_bonus: str | None = None

    @field_validator("sign_up_bonus")
    @classmethod
    def _bonus_not_cleared(cls, value: str | None) -> str | None:
        # Omit the field to leave it unchanged; it cannot be blanked.
        if value is None or not value:
            raise ValueError("sign_up_bonus cannot be cleared")
        return value
