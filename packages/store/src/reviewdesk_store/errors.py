"""Error taxonomy shared by the store, the lifecycle service and the CLI.

Every mutation failure the caller can act on is one of these. The command
layer renders the message as plain text; no structured codes cross the
boundary.
"""

from __future__ import annotations


class ReviewDeskError(Exception):
    """Base class for all reviewdesk errors."""


class NotFound(ReviewDeskError):
    """The referenced review does not exist."""

    def __init__(self, reference: str):
        super().__init__(f"Review not found: {reference}")
        self.reference = reference


class NotAuthorized(ReviewDeskError):
    """The actor is not allowed to perform the requested mutation."""


class InvalidArgument(ReviewDeskError, ValueError):
    """Malformed input, e.g. an unknown status on a manual override."""


class PersistenceError(ReviewDeskError):
    """The underlying store is unreachable or failed."""


class NotificationError(ReviewDeskError):
    """A notification could not be delivered.

    Raised by dispatchers only; the lifecycle service always catches it.
    """
