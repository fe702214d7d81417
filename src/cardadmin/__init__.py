"""cardadmin - Async Python client for the credit-card and offer admin API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cardadmin")
except PackageNotFoundError:
    __version__ = "0+local"
from cardadmin.cache import CacheEvent, CacheSource, QueryCache
from cardadmin.client import CardAdminClient
from cardadmin.config import AdminConfig
from cardadmin.exceptions import (
    CardAdminApiError,
    CardAdminAuthenticationError,
    CardAdminConfigError,
    CardAdminError,
    CardAdminNotFoundError,
    CardAdminTransportError,
    CardAdminValidationError,
    MutationFailedError,
)
from cardadmin.models import (
    ActivityLog,
    ActivityLogFilters,
    Card,
    CardCreate,
    CardFilters,
    CardUpdate,
    DashboardData,
    ManualCardCreate,
    Offer,
    OfferCreate,
    OfferUpdate,
    Page,
)
from cardadmin.mutations import MutationError, MutationErrorKind, MutationPhase, MutationResult, OptimisticMutator
from cardadmin.notifications import Notification, NotificationVariant

__all__ = [
    "__version__",
    "ActivityLog",
    "ActivityLogFilters",
    "AdminConfig",
    "CacheEvent",
    "CacheSource",
    "Card",
    "CardAdminApiError",
    "CardAdminAuthenticationError",
    "CardAdminClient",
    "CardAdminConfigError",
    "CardAdminError",
    "CardAdminNotFoundError",
    "CardAdminTransportError",
    "CardAdminValidationError",
    "CardCreate",
    "CardFilters",
    "CardUpdate",
    "DashboardData",
    "ManualCardCreate",
    "MutationError",
    "MutationErrorKind",
    "MutationFailedError",
    "MutationPhase",
    "MutationResult",
    "Notification",
    "NotificationVariant",
    "Offer",
    "OfferCreate",
    "OfferUpdate",
    "OptimisticMutator",
    "Page",
    "QueryCache",
]
