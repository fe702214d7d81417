"""Dashboard statistics endpoint (``GET /cards/dashboard/stats``)."""

from __future__ import annotations

from cardadmin._api._common import parse_model, request_data
from cardadmin._transport import Transport
from cardadmin.models.dashboard import DashboardData


async def fetch_dashboard_stats(transport: Transport) -> DashboardData:
    endpoint = "/cards/dashboard/stats"
    data = await request_data(transport, "GET", endpoint, error_message="Failed to fetch dashboard stats")
    return parse_model(DashboardData, data, endpoint=endpoint)
