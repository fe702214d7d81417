"""Server-side pagination envelope."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import Field

from cardadmin.models._base import AdminBaseModel

T = TypeVar("T")


class Pagination(AdminBaseModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0


class Page(AdminBaseModel, Generic[T]):
    """One page of a server-paginated list (``{data, pagination}``)."""

    data: tuple[T, ...] = Field(default_factory=tuple)
    pagination: Pagination = Field(default_factory=Pagination)
