"""Base models and enum for admin API payloads.

Every response model inherits from :class:`AdminBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* ``frozen=True`` so cached models can be shared between readers
  without copying; edits always produce a new instance.
* ``extra="ignore"`` so new server fields never break parsing.

Request bodies inherit from :class:`AdminRequestModel`, which forbids
unknown fields and only serialises fields the caller actually set.

String enums inherit from :class:`AdminEnum` which resolves unmapped
values to ``UNKNOWN`` instead of raising ``ValueError``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AdminEnum(StrEnum):
    """Base for API string enums.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> AdminEnum:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        if hasattr(cls, "UNKNOWN"):
            unknown: AdminEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class AdminBaseModel(BaseModel):
    """Base for API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class AdminRequestModel(BaseModel):
    """Base for request bodies and query filters."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON body using API field names; unset fields are omitted."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")

    def to_changes(self) -> dict[str, Any]:
        """Set fields keyed by model attribute name (for cache edits)."""
        return self.model_dump(exclude_unset=True)


def query_params(values: dict[str, Any]) -> dict[str, str]:
    """Render filter values as query-string parameters.

    ``None``, empty strings and zero page numbers are dropped; booleans
    are rendered as ``"true"``/``"false"``.
    """
    params: dict[str, str] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        elif isinstance(value, str):
            if value:
                params[key] = value
        elif isinstance(value, int | float):
            if value:
                params[key] = str(value)
        else:
            params[key] = str(value)
    return params
