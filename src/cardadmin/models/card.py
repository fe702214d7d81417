"""Credit card models: catalogue records, write bodies and filters."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cardadmin.models._base import AdminBaseModel, AdminRequestModel, query_params


class CurrentOfferSummary(AdminBaseModel):
    sign_up_bonus: str | None = None
    referral_url: str | None = None


class Card(AdminBaseModel):
    """A card record as stored by the admin backend."""

    id: str
    api_card_id: str | None = None
    name: str
    issuer: str
    network: str | None = None
    annual_fee: float | None = None
    rewards: str | None = None
    purchase_apr: str | None = Field(default=None, alias="purchaseAPR")
    balance_transfer_apr: str | None = Field(default=None, alias="balanceTransferAPR")
    credit_score: str | None = None
    card_type: str | None = None
    active: bool = True
    featured: bool = False
    last_api_sync: datetime | None = None
    api_data: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    current_offer: CurrentOfferSummary | None = None
    has_referral_link: bool | None = None


class ApiCard(AdminBaseModel):
    """A card from the upstream card-data provider search."""

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    card_key: str
    card_name: str
    card_issuer: str
    exists_in_db: bool = False
    card_id: str | None = None


class ApiCardSearchResult(AdminBaseModel):
    cards: tuple[ApiCard, ...] = ()
    count: int = 0
    search_term: str = ""


class Benefit(AdminRequestModel):
    benefit_title: str
    benefit_desc: str | None = None


class EarnMultiplier(AdminRequestModel):
    """Bonus-category earn rate (e.g. 3x on dining)."""

    spend_bonus_category_group: str | None = None
    spend_bonus_subcategory_group: str | None = None
    spend_bonus_category_name: str | None = None
    earn_multiplier: float | None = Field(default=None, ge=0)
    spend_bonus_desc: str | None = None
    is_date_limit: bool = False
    limit_begin_date: str | None = None
    limit_end_date: str | None = None
    is_spend_limit: bool = False
    spend_limit: float | None = Field(default=None, ge=0)
    spend_limit_reset_period: str | None = None

    @property
    def is_blank(self) -> bool:
        """No multiplier and no category name: an empty form row."""
        return not self.earn_multiplier and not (self.spend_bonus_category_name or "").strip()


class AnnualSpendPerk(AdminRequestModel):
    annual_spend_desc: str


class _CardFields(AdminRequestModel):
    card_network: str | None = None
    card_type: str | None = None
    card_url: str | None = None
    annual_fee: float | None = Field(default=None, ge=0)
    credit_range: str | None = None
    rewards_description: str | None = None
    intro_apr: str | None = None
    regular_apr: str | None = None
    active: bool | None = None
    featured: bool | None = None
    internal_notes: str | None = None
    has_no_fx_fee: bool | None = None
    has_lounge_access: bool | None = None
    has_free_night: bool | None = None
    has_free_checked_bag: bool | None = None
    has_trusted_traveler_credit: bool | None = None
    benefits: tuple[Benefit, ...] | None = None
    earn_multipliers: tuple[EarnMultiplier, ...] | None = None
    annual_spend_perks: tuple[AnnualSpendPerk, ...] | None = None

    @field_validator("benefits")
    @classmethod
    def _drop_blank_benefits(cls, value: tuple[Benefit, ...] | None) -> tuple[Benefit, ...] | None:
        if value is None:
            return None
        return tuple(b for b in value if b.benefit_title.strip())

    @field_validator("earn_multipliers")
    @classmethod
    def _drop_blank_multipliers(
        cls, value: tuple[EarnMultiplier, ...] | None
    ) -> tuple[EarnMultiplier, ...] | None:
        if value is None:
            return None
        return tuple(m for m in value if not m.is_blank)

    @field_validator("annual_spend_perks")
    @classmethod
    def _drop_blank_perks(cls, value: tuple[AnnualSpendPerk, ...] | None) -> tuple[AnnualSpendPerk, ...] | None:
        if value is None:
            return None
        return tuple(p for p in value if p.annual_spend_desc.strip())


class CardCreate(AdminRequestModel):
    """Import a card from the upstream provider (``POST /cards``)."""

    api_card_id: str
    card_type: str | None = None
    active: bool | None = None
    featured: bool | None = None


class ManualCardCreate(_CardFields):
    """Create a card by hand (``POST /cards/manual``)."""

    card_key: str | None = None
    card_name: str
    card_issuer: str


class CardUpdate(_CardFields):
    """Partial body of ``PUT /cards/{id}``."""

    card_name: str | None = None
    card_issuer: str | None = None


class CardFilters(AdminRequestModel):
    """Query filters for ``GET /cards``."""

    page: int | None = Field(default=None, ge=1)
    limit: int | None = Field(default=None, ge=1)
    search: str | None = None
    issuer: str | None = None
    active: bool | None = None
    featured: bool | None = None
    network: str | None = None
    card_type: str | None = None

    def to_params(self) -> dict[str, str]:
        return query_params(self.model_dump(by_alias=True))
