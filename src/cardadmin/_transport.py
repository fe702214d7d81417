"""HTTP transport with bearer-token auth and status-code error mapping."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from cardadmin._redact import redact_for_log, redact_headers
from cardadmin.config import AdminConfig
from cardadmin.exceptions import (
    CardAdminApiError,
    CardAdminAuthenticationError,
    CardAdminNotFoundError,
    CardAdminTransportError,
    CardAdminValidationError,
)

_logger = logging.getLogger(__name__)

USER_AGENT = "cardadmin-python"

_VALIDATION_STATUSES = frozenset({400, 409, 422})
_AUTH_STATUSES = frozenset({401, 403})


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Endpoint modules only depend on this protocol, so tests can pass a
    fake backend while production uses :class:`HttpTransport`.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Mapping[str, Any] | None = None,
        error_message: str = "Request failed",
    ) -> dict[str, Any]:
        ...


def error_for_status(
    status: int,
    message: str,
    *,
    endpoint: str,
) -> CardAdminApiError:
    """Map a non-2xx HTTP status to the matching API exception."""
    if status == 404:
        return CardAdminNotFoundError(message, status_code=status, endpoint=endpoint)
    if status in _VALIDATION_STATUSES:
        return CardAdminValidationError(message, status_code=status, endpoint=endpoint)
    if status in _AUTH_STATUSES:
        return CardAdminAuthenticationError(message, status_code=status, endpoint=endpoint)
    return CardAdminApiError(message, status_code=status, endpoint=endpoint)


def _server_message(body: Any) -> str | None:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
        # Some validation errors come back as a list of messages.
        if isinstance(message, list) and message:
            return "; ".join(str(item) for item in message)
    return None


class HttpTransport:
    """JSON-over-HTTP transport for the admin API."""

    def __init__(self, config: AdminConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if self._config.access_token:
            headers["authorization"] = f"Bearer {self._config.access_token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Mapping[str, Any] | None = None,
        error_message: str = "Request failed",
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON envelope.

        Raises
        ------
        CardAdminTransportError
            The server could not be reached, timed out, or sent a body that
            is not valid UTF-8 JSON.
        CardAdminApiError
            The server answered with a non-2xx status.  The subclass is
            chosen by :func:`error_for_status`.
        """
        url = f"{self._config.base_url}{path}"
        headers = self._headers()

        _logger.debug("%s %s params=%s", method, url, dict(params) if params else {})
        if self._config.api_trace_enabled:
            _logger.debug(
                "request headers=%s body=%s",
                redact_headers(headers),
                redact_for_log(json_body),
            )

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise CardAdminTransportError(
                f"{error_message}: {exc or type(exc).__name__}",
                endpoint=path,
            ) from exc
        except UnicodeDecodeError as exc:
            raise CardAdminTransportError(
                f"Undecodable response from {path}: {exc.reason}",
                endpoint=path,
            ) from exc

        body: Any = None
        if text.strip():
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                if 200 <= status < 300:
                    raise CardAdminTransportError(
                        f"Invalid JSON from {path}: {text[:200]}",
                        status_code=status,
                        endpoint=path,
                    ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("response %s %s status=%d body=%s", method, path, status, redact_for_log(body))

        if not 200 <= status < 300:
            raise error_for_status(
                status,
                _server_message(body) or error_message,
                endpoint=path,
            )

        if body is None:
            return {}
        if not isinstance(body, dict):
            raise CardAdminTransportError(
                f"Unexpected response shape from {path}: {type(body).__name__}",
                status_code=status,
                endpoint=path,
            )
        return body
