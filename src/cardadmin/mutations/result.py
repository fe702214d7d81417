"""Mutation outcomes.

Every failure of an optimistic mutation is converted into a
:class:`MutationError` at the mutation boundary, so callers get a
uniform value (kind + human-readable message) instead of an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar, cast

from cardadmin.cache.keys import QueryKey
from cardadmin.exceptions import (
    CardAdminError,
    CardAdminNotFoundError,
    CardAdminTransportError,
    CardAdminValidationError,
    MutationFailedError,
)

T = TypeVar("T")

TRANSPORT_FAILURE_MESSAGE = "Could not reach the server. Please check your connection and try again."
UNEXPECTED_FAILURE_MESSAGE = "Something went wrong while saving. Please try again."


class MutationPhase(StrEnum):
    IDLE = "idle"
    CANCELLING_READS = "cancelling-reads"
    OPTIMISTIC_APPLIED = "optimistic-applied"
    AWAITING_SERVER = "awaiting-server"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled-back"
    RECONCILING = "reconciling"
    DONE = "done"


class MutationErrorKind(StrEnum):
    TRANSPORT_FAILURE = "transport_failure"
    VALIDATION_REJECTED = "validation_rejected"
    NOT_FOUND = "not_found"
    API_ERROR = "api_error"


@dataclass(frozen=True, slots=True)
class MutationError:
    """Why a mutation failed.

    ``message`` is safe to show to the admin: the server's message for
    rejections, a generic text for network failures.  ``detail`` keeps
    the underlying exception text for logs.
    """

    kind: MutationErrorKind
    message: str
    status_code: int | None = None
    endpoint: str = ""
    detail: str = ""

    @classmethod
    def from_unexpected(cls, exc: Exception) -> MutationError:
        """Wrap a failure that did not come from the cardadmin error hierarchy."""
        return cls(
            kind=MutationErrorKind.API_ERROR,
            message=UNEXPECTED_FAILURE_MESSAGE,
            detail=f"{type(exc).__name__}: {exc}",
        )

    @classmethod
    def from_exception(cls, exc: CardAdminError) -> MutationError:
        status_code = getattr(exc, "status_code", None)
        endpoint = getattr(exc, "endpoint", "")
        if isinstance(exc, CardAdminTransportError):
            return cls(
                kind=MutationErrorKind.TRANSPORT_FAILURE,
                message=TRANSPORT_FAILURE_MESSAGE,
                status_code=status_code,
                endpoint=endpoint,
                detail=str(exc),
            )
        if isinstance(exc, CardAdminNotFoundError):
            kind = MutationErrorKind.NOT_FOUND
        elif isinstance(exc, CardAdminValidationError):
            kind = MutationErrorKind.VALIDATION_REJECTED
        else:
            kind = MutationErrorKind.API_ERROR
        return cls(
            kind=kind,
            message=str(exc),
            status_code=status_code,
            endpoint=endpoint,
            detail=str(exc),
        )


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    """Outcome of one optimistic mutation.

    Exactly one of ``item`` (the server's authoritative copy) and
    ``error`` is set.  ``phases`` records the state machine path and
    ``reconciled`` the cache keys that were marked stale.
    """

    item: T | None = None
    error: MutationError | None = None
    phases: tuple[MutationPhase, ...] = ()
    reconciled: tuple[QueryKey, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the item or raise :class:`MutationFailedError`."""
        if self.error is not None:
            raise MutationFailedError(self.error)
        return cast(T, self.item)
