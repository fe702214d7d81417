"""Optimistic mutations of cached collections."""

from cardadmin.mutations.optimistic import OptimisticMutator, apply_changes, find_item, replace_item
from cardadmin.mutations.result import (
    TRANSPORT_FAILURE_MESSAGE,
    UNEXPECTED_FAILURE_MESSAGE,
    MutationError,
    MutationErrorKind,
    MutationPhase,
    MutationResult,
)

__all__ = [
    "TRANSPORT_FAILURE_MESSAGE",
    "UNEXPECTED_FAILURE_MESSAGE",
    "MutationError",
    "MutationErrorKind",
    "MutationPhase",
    "MutationResult",
    "OptimisticMutator",
    "apply_changes",
    "find_item",
    "replace_item",
]
