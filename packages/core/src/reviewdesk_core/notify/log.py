"""Log-only notifier — the default when no messaging platform is configured.

Every request is written to the log and kept in ``sent`` so a local session
(or a test) can see exactly what would have been delivered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reviewdesk_core.notify.base import NotificationVariant, Notifier

if TYPE_CHECKING:
    from reviewdesk_store.models import Person, Review

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentNotification:
    recipient: str
    review_id: str
    variant: NotificationVariant
    actor_id: str | None


class LogNotifier(Notifier):
    def __init__(self):
        self.sent: list[SentNotification] = []

    def notify_channel(self, channel_id: str, review: Review, actor: Person | None) -> None:
        logger.info("[channel %s] %s is now %s", channel_id, review.title, review.status.value)
        self.sent.append(
            SentNotification(channel_id, review.review_id, NotificationVariant.COMPLETION, actor.id if actor else None)
        )

    def notify_user(self, user_id: str, review: Review, actor: Person | None, variant: NotificationVariant) -> None:
        logger.info("[dm %s] %s: %s", user_id, variant.value, review.title)
        self.sent.append(SentNotification(user_id, review.review_id, variant, actor.id if actor else None))
