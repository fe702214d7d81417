"""Toast-style notifications emitted by the client.

The client never renders anything itself; it hands these to the
``on_notification`` callback so a UI can show a toast or snackbar.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from cardadmin.exceptions import CardAdminError
from cardadmin.mutations.result import MutationError


class NotificationVariant(StrEnum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT

    @classmethod
    def success(cls, description: str) -> Notification:
        return cls(title="Success", description=description)

    @classmethod
    def failure(cls, error: MutationError | CardAdminError) -> Notification:
        if isinstance(error, CardAdminError):
            error = MutationError.from_exception(error)
        return cls(title="Error", description=error.message, variant=NotificationVariant.DESTRUCTIVE)
