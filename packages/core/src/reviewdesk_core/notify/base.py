"""Notification dispatcher interface.

The lifecycle service speaks to the messaging platform only through these
semantic actions. Rendering platform-specific message bodies is each
implementation's business; delivery is best effort and a dispatcher is free
to raise. The caller logs the failure and carries on.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewdesk_store.models import Person, Review

logger = logging.getLogger(__name__)


class NotificationVariant(str, Enum):
    STATUS_UPDATE = "status_update"
    COMPLETION = "completion"
    FEEDBACK_RECEIVED = "feedback_received"
    REVIEW_REQUEST = "review_request"


class Notifier(ABC):
    """Pluggable outbound messaging for review events."""

    @abstractmethod
    def notify_channel(self, channel_id: str, review: Review, actor: Person | None) -> None:
        """Announce a review completion in its origin channel."""

    @abstractmethod
    def notify_user(self, user_id: str, review: Review, actor: Person | None, variant: NotificationVariant) -> None:
        """Send a direct message about a review to one user."""

    def notify_reviewers(self, review: Review, exclude: str | None = None) -> int:
        """Ask every reviewer (except ``exclude``) to look at the review.

        Each reviewer is messaged independently: one failed delivery does not
        stop the rest. Returns the number of successful deliveries.
        """
        delivered = 0
        for reviewer in review.reviewers:
            if exclude is not None and reviewer.id == exclude:
                continue
            try:
                self.notify_user(reviewer.id, review, review.creator, NotificationVariant.REVIEW_REQUEST)
                delivered += 1
            except Exception as e:
                logger.warning("Could not notify reviewer %s about %s: %s", reviewer.id, review.review_id, e)
        return delivered

    def close(self) -> None:
        """Release any resources held by the notifier (HTTP clients, sockets)."""
