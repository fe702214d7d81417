"""Client configuration for cardadmin."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from cardadmin.exceptions import CardAdminConfigError

DEFAULT_BASE_URL = "http://localhost:3000/api"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise CardAdminConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class AdminConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        API base URL including the ``/api`` prefix.
    access_token : str or None
        Bearer token sent as ``Authorization`` header.  Obtaining it
        (login, 2FA) is outside the scope of this client.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    all_offers_card_limit : int
        Page size used to list cards when aggregating offers across
        all cards.
    dashboard_stale_time : float
        Seconds a cached dashboard payload is served before refetching.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    base_url: str = DEFAULT_BASE_URL
    access_token: str | None = None
    request_timeout: float = 30.0
    all_offers_card_limit: int = 1000
    dashboard_stale_time: float = 5 * 60
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if not self.base_url.strip():
            raise CardAdminConfigError("base_url must be non-empty")
        if self.request_timeout <= 0:
            raise CardAdminConfigError("request_timeout must be positive")
        if self.all_offers_card_limit < 1:
            raise CardAdminConfigError("all_offers_card_limit must be at least 1")
        # Normalise once so endpoint modules can always prefix with "/".
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> AdminConfig:
        """Create configuration from ``CARDADMIN_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("CARDADMIN_API_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url

        token = env.get("CARDADMIN_ACCESS_TOKEN")
        if token:
            config_kwargs["access_token"] = token

        timeout_env = env.get("CARDADMIN_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_float("CARDADMIN_REQUEST_TIMEOUT", timeout_env)

        stale_env = env.get("CARDADMIN_DASHBOARD_STALE_TIME")
        if stale_env is not None and "dashboard_stale_time" not in overrides:
            config_kwargs["dashboard_stale_time"] = _env_float("CARDADMIN_DASHBOARD_STALE_TIME", stale_env)

        limit_env = env.get("CARDADMIN_ALL_OFFERS_CARD_LIMIT")
        if limit_env is not None and "all_offers_card_limit" not in overrides:
            config_kwargs["all_offers_card_limit"] = int(_env_float("CARDADMIN_ALL_OFFERS_CARD_LIMIT", limit_env))

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("CARDADMIN_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
