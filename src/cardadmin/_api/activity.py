"""Activity-log endpoint (``GET /activity``)."""

from __future__ import annotations

from cardadmin._api._common import parse_model, request_data
from cardadmin._transport import Transport
from cardadmin.models.activity import ActivityLog, ActivityLogFilters
from cardadmin.models.pagination import Page


async def fetch_activity_logs(transport: Transport, filters: ActivityLogFilters) -> Page[ActivityLog]:
    endpoint = "/activity"
    data = await request_data(
        transport,
        "GET",
        endpoint,
        params=filters.to_params(),
        error_message="Failed to fetch activity logs",
    )
    return parse_model(Page[ActivityLog], data, endpoint=endpoint)
