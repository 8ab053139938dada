"""Review state aggregation and notification engine."""

from reviewdesk_core.aggregator import StatusChange, derive_status
from reviewdesk_core.lifecycle import ReviewService
from reviewdesk_store.errors import (
    InvalidArgument,
    NotAuthorized,
    NotFound,
    NotificationError,
    PersistenceError,
    ReviewDeskError,
)

__all__ = [
    "InvalidArgument",
    "NotAuthorized",
    "NotFound",
    "NotificationError",
    "PersistenceError",
    "ReviewDeskError",
    "ReviewService",
    "StatusChange",
    "derive_status",
]
