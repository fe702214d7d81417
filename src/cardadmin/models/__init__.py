"""Data models for admin API payloads."""

from cardadmin.models._base import AdminBaseModel, AdminEnum, AdminRequestModel
from cardadmin.models.activity import ActivityAdmin, ActivityLog, ActivityLogFilters
from cardadmin.models.card import (
    AnnualSpendPerk,
    ApiCard,
    ApiCardSearchResult,
    Benefit,
    Card,
    CardCreate,
    CardFilters,
    CardUpdate,
    CurrentOfferSummary,
    EarnMultiplier,
    ManualCardCreate,
)
from cardadmin.models.dashboard import ChartDataPoint, DashboardData, DashboardMetrics, MetricValue, RecentActivity, Trend
from cardadmin.models.offer import Offer, OfferCardRef, OfferCreate, OfferUpdate
from cardadmin.models.pagination import Page, Pagination

__all__ = [
    "ActivityAdmin",
    "ActivityLog",
    "ActivityLogFilters",
    "AdminBaseModel",
    "AdminEnum",
    "AdminRequestModel",
    "AnnualSpendPerk",
    "ApiCard",
    "ApiCardSearchResult",
    "Benefit",
    "Card",
    "CardCreate",
    "CardFilters",
    "CardUpdate",
    "ChartDataPoint",
    "CurrentOfferSummary",
    "DashboardData",
    "DashboardMetrics",
    "EarnMultiplier",
    "ManualCardCreate",
    "MetricValue",
    "Offer",
    "OfferCardRef",
    "OfferCreate",
    "OfferUpdate",
    "Page",
    "Pagination",
    "RecentActivity",
    "Trend",
]
