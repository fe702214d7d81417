"""Helpers for safe debug logging.

Request headers carry the bearer token and some request bodies carry
credentials (password changes, 2FA codes).  Everything that goes into a
DEBUG trace line passes through here first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "currentpassword",
        "newpassword",
        "token",
        "accesstoken",
        "refreshtoken",
        "authorization",
        "cookie",
        "set-cookie",
        "otp",
    }
)

_MAX_DEPTH = 20


def _is_sensitive(key: object) -> bool:
    return str(key).replace("_", "").lower() in _SENSITIVE_KEYS


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy *headers* with credential-bearing values masked."""
    return {name: (REDACTED if _is_sensitive(name) else value) for name, value in headers.items()}


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of a JSON-like *value* suitable for debug logs.

    Long strings are truncated and nested containers beyond a fixed depth
    are collapsed, so a runaway payload cannot flood the log.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<{len(value)} chars>"
    if isinstance(value, Mapping):
        return {
            str(k): REDACTED if _is_sensitive(k) else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return repr(value)
