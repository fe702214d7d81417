"""Shared helpers for admin API endpoint modules.

This module centralizes the most repeated patterns:
- unwrapping the ``{success, message, data, statusCode}`` envelope
- turning ``success: false`` bodies into API errors
- validating ``data`` into typed models

It is internal to cardadmin and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from cardadmin._transport import Transport, error_for_status
from cardadmin.exceptions import CardAdminApiError

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def unwrap_envelope(
    body: dict[str, Any],
    *,
    endpoint: str,
    error_message: str,
) -> Any:
    """Return ``data`` from a response envelope.

    A 2xx response can still carry ``success: false``; the embedded
    ``statusCode`` then decides which exception is raised.
    """
    if body.get("success") is False:
        message = body.get("message")
        text = message if isinstance(message, str) and message else error_message
        status = body.get("statusCode")
        if isinstance(status, int) and status >= 400:
            raise error_for_status(status, text, endpoint=endpoint)
        raise CardAdminApiError(text, status_code=status if isinstance(status, int) else None, endpoint=endpoint)
    return body.get("data")


def parse_model(model: type[M], data: Any, *, endpoint: str) -> M:
    """Validate *data* into *model*, mapping failures to :class:`CardAdminApiError`."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise CardAdminApiError(
            f"Unexpected payload from {endpoint}: {exc.error_count()} validation error(s)",
            code="invalid_payload",
            endpoint=endpoint,
        ) from exc


def parse_list(adapter: TypeAdapter[T], data: Any, *, endpoint: str) -> T:
    """Validate a list payload through a cached :class:`TypeAdapter`."""
    try:
        return adapter.validate_python(data if data is not None else [])
    except ValidationError as exc:
        raise CardAdminApiError(
            f"Unexpected payload from {endpoint}: {exc.error_count()} validation error(s)",
            code="invalid_payload",
            endpoint=endpoint,
        ) from exc


async def request_data(
    transport: Transport,
    method: str,
    endpoint: str,
    *,
    error_message: str,
    params: Mapping[str, str] | None = None,
    json_body: Mapping[str, Any] | None = None,
) -> Any:
    """Send a request and return the unwrapped ``data`` field."""
    body = await transport.request(
        method,
        endpoint,
        params=params,
        json_body=json_body,
        error_message=error_message,
    )
    return unwrap_envelope(body, endpoint=endpoint, error_message=error_message)
