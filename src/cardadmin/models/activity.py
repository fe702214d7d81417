"""Admin activity-log models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from cardadmin.models._base import AdminBaseModel, AdminRequestModel, query_params


class ActivityAdmin(AdminBaseModel):
    id: str
    name: str | None = None
    email: str | None = None


class ActivityLog(AdminBaseModel):
    """One audited admin action (``CREATE Card``, ``UPDATE Offer``, ...)."""

    id: str
    admin_id: str | None = None
    action: str = ""
    entity_type: str = ""
    entity_id: str | None = None
    changes: Any = None
    description: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    admin: ActivityAdmin | None = None

    @property
    def label(self) -> str:
        return f"{self.action} {self.entity_type}".strip()


class ActivityLogFilters(AdminRequestModel):
    """Query filters for ``GET /activity``."""

    page: int | None = Field(default=None, ge=1)
    limit: int | None = Field(default=None, ge=1)
    admin_id: str | None = None
    entity_type: str | None = None
    action: str | None = None
    search: str | None = None

    def to_params(self) -> dict[str, str]:
        return query_params(self.model_dump(by_alias=True))
