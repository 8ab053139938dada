"""Review persistence: models, the ReviewStore interface and its backends."""

from reviewdesk_store.base import ReviewStore
from reviewdesk_store.errors import (
    InvalidArgument,
    NotAuthorized,
    NotFound,
    NotificationError,
    PersistenceError,
    ReviewDeskError,
)
from reviewdesk_store.models import (
    COMPLETION_STATUSES,
    Channel,
    Feedback,
    FeedbackStatus,
    Person,
    Review,
    ReviewDraft,
    ReviewFilters,
    ReviewStatus,
)

__all__ = [
    "COMPLETION_STATUSES",
    "Channel",
    "Feedback",
    "FeedbackStatus",
    "InvalidArgument",
    "NotAuthorized",
    "NotFound",
    "NotificationError",
    "PersistenceError",
    "Person",
    "Review",
    "ReviewDeskError",
    "ReviewDraft",
    "ReviewFilters",
    "ReviewStatus",
    "ReviewStore",
]
