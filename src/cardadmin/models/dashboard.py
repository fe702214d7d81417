"""Dashboard summary models."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from cardadmin.models._base import AdminBaseModel, AdminEnum


class Trend(AdminEnum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"
    UNKNOWN = "unknown"


class MetricValue(AdminBaseModel):
    value: float = 0
    change: float = 0
    trend: Trend = Trend.NEUTRAL


class DashboardMetrics(AdminBaseModel):
    active_cards: MetricValue = Field(default_factory=MetricValue)
    missing_referrals: MetricValue = Field(default_factory=MetricValue)
    total_offers: MetricValue = Field(default_factory=MetricValue)
    hidden_offers: MetricValue = Field(default_factory=MetricValue)


class ChartDataPoint(AdminBaseModel):
    """Cards added/updated per month."""

    month: str
    added: int = 0
    updated: int = 0


class RecentActivity(AdminBaseModel):
    type: str = ""
    description: str = ""
    time: str = ""
    created_at: datetime | None = None


class DashboardData(AdminBaseModel):
    metrics: DashboardMetrics = Field(default_factory=DashboardMetrics)
    chart_data: tuple[ChartDataPoint, ...] = ()
    recent_activities: tuple[RecentActivity, ...] = ()
