"""Custom exception hierarchy for cardadmin."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cardadmin.mutations.result import MutationError


class CardAdminError(Exception):
    """Base exception for all cardadmin errors."""


class CardAdminConfigError(CardAdminError):
    """Invalid or missing configuration."""


class CardAdminTransportError(CardAdminError):
    """Network-level failure (unreachable host, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class CardAdminApiError(CardAdminError):
    """The API answered with an error status or ``success: false``."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class CardAdminValidationError(CardAdminApiError):
    """The server rejected the request payload (400, 409, 422).

    The server-provided message is kept verbatim so it can be shown
    to the admin as-is.
    """


class CardAdminNotFoundError(CardAdminApiError):
    """The resource does not exist (404), e.g. deleted by another admin."""


class CardAdminAuthenticationError(CardAdminApiError):
    """Access token missing, expired or lacking permission (401, 403)."""


class MutationFailedError(CardAdminError):
    """Raised by :meth:`MutationResult.unwrap` for a failed mutation."""

    def __init__(self, error: MutationError) -> None:
        self.error = error
        super().__init__(error.message)
