from __future__ import annotations

import pytest
from pydantic import ValidationError

from cardadmin.models.activity import ActivityLog, ActivityLogFilters
from cardadmin.models.card import Card, CardFilters, CardUpdate, EarnMultiplier
from cardadmin.models.dashboard import DashboardData, Trend
from cardadmin.models.offer import Offer, OfferCreate, OfferUpdate
from cardadmin.models.pagination import Page


def test_offer_parses_camel_case_payload() -> None:
    offer = Offer.model_validate(
        {
            "id": "o1",
            "cardId": "c1",
            "signUpBonus": "60,000 points",
            "minimumSpend": 4000,
            "isCurrent": True,
            "visible": False,
            "createdAt": "2026-01-01T00:00:00Z",
            "card": {"id": "c1", "name": "Sapphire Preferred", "issuer": "Chase"},
            "someNewServerField": 1,
        }
    )

    assert offer.card_id == "c1"
    assert offer.minimum_spend == 4000
    assert offer.is_current is True
    assert offer.visible is False
    assert offer.card is not None
    assert offer.card.name == "Sapphire Preferred"


def test_offer_is_frozen() -> None:
    offer = Offer(id="o1", card_id="c1")

    with pytest.raises(ValidationError):
        offer.visible = False  # type: ignore[misc]


def test_offer_update_only_sends_set_fields() -> None:
    update = OfferUpdate(visible=False, internal_label="  Q3 push  ")

    assert update.to_payload() == {"visible": False, "internalLabel": "Q3 push"}
    assert update.to_changes() == {"visible": False, "internal_label": "Q3 push"}


def test_offer_update_cannot_clear_bonus() -> None:
    with pytest.raises(ValidationError, match="cannot be cleared"):
        OfferUpdate(sign_up_bonus="")


@pytest.mark.parametrize("flag", ["visible", "is_current", "archived"])
def test_offer_update_rejects_null_flags(flag: str) -> None:
    with pytest.raises(ValidationError, match="flag cannot be null"):
        OfferUpdate.model_validate({flag: None})

    assert OfferUpdate.model_validate({flag: False}).to_changes() == {flag: False}


def test_offer_create_requires_bonus() -> None:
    with pytest.raises(ValidationError):
        OfferCreate(sign_up_bonus="   ")

    assert OfferCreate(sign_up_bonus="$200", minimum_spend=500).to_payload() == {
        "signUpBonus": "$200",
        "minimumSpend": 500.0,
    }


def test_offer_request_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        OfferUpdate.model_validate({"visibel": True})


def test_card_apr_aliases() -> None:
    card = Card.model_validate(
        {"id": "c1", "name": "Freedom", "issuer": "Chase", "purchaseAPR": "20.49%", "balanceTransferAPR": "3%"}
    )

    assert card.purchase_apr == "20.49%"
    assert card.balance_transfer_apr == "3%"


def test_card_update_drops_blank_rows() -> None:
    update = CardUpdate.model_validate(
        {
            "benefits": [{"benefitTitle": "Lounge access"}, {"benefitTitle": "  "}],
            "earnMultipliers": [
                {"earnMultiplier": 3, "spendBonusCategoryName": "Dining"},
                {"spendBonusCategoryName": ""},
            ],
            "annualSpendPerks": [{"annualSpendDesc": ""}],
        }
    )

    assert update.benefits is not None and len(update.benefits) == 1
    assert update.earn_multipliers is not None and len(update.earn_multipliers) == 1
    assert update.annual_spend_perks == ()
    assert EarnMultiplier().is_blank


def test_filters_render_query_params() -> None:
    filters = CardFilters(page=2, limit=10, search="", issuer="Chase", active=False)

    assert filters.to_params() == {"page": "2", "limit": "10", "issuer": "Chase", "active": "false"}
    assert ActivityLogFilters(entity_type="Offer").to_params() == {"entityType": "Offer"}


def test_page_parses_paginated_envelope() -> None:
    page = Page[ActivityLog].model_validate(
        {
            "data": [{"id": "1", "action": "UPDATE", "entityType": "Offer"}],
            "pagination": {"page": 1, "limit": 10, "total": 1, "pages": 1},
        }
    )

    assert page.data[0].label == "UPDATE Offer"
    assert page.pagination.total == 1


def test_dashboard_unknown_trend_falls_back() -> None:
    data = DashboardData.model_validate(
        {
            "metrics": {"activeCards": {"value": 12, "change": 2.5, "trend": "UP"}},
            "chartData": [{"month": "Jan", "added": 3, "updated": 1}],
            "recentActivities": [{"type": "card", "description": "Added card", "time": "2h ago"}],
        }
    )

    assert data.metrics.active_cards.trend is Trend.UP
    assert data.metrics.hidden_offers.trend is Trend.NEUTRAL
    assert Trend("sideways") is Trend.UNKNOWN
    assert data.chart_data[0].added == 3
