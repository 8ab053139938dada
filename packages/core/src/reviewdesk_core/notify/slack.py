"""Slack notifier — delivers review notifications through the Slack Web API.

One HTTP call per notification, no retries: a failed delivery raises
NotificationError and the lifecycle service logs it. Every request carries a
bounded timeout so a slow Slack API can never hang a review mutation.

Messages are short plain text; rich block layouts belong to the chat
front-end, not to the review engine.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reviewdesk_core.aggregator import approval_progress, latest_feedback_by_reviewer
from reviewdesk_core.notify.base import NotificationVariant, Notifier
from reviewdesk_store.errors import NotificationError

if TYPE_CHECKING:
    from reviewdesk_store.models import Person, Review

logger = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api"


def _mention(person: Person | None) -> str:
    if person is None:
        return "someone"
    return f"<@{person.id}>"


def render_text(review: Review, actor: Person | None, variant: NotificationVariant) -> str:
    """Build the plain-text body for one notification."""
    if variant == NotificationVariant.COMPLETION:
        approved, total = approval_progress(review)
        text = f'Review for "{review.title}" is now complete and {review.status.value}! ({approved}/{total} approvals)'
        if actor is not None:
            text += f"\nFinal sign-off by {_mention(actor)}, created by {_mention(review.creator)}."
    elif variant == NotificationVariant.STATUS_UPDATE:
        approved, total = approval_progress(review)
        text = f'{_mention(actor)} approved your content "{review.title}" ({approved}/{total} approvals so far).'
    elif variant == NotificationVariant.FEEDBACK_RECEIVED:
        text = f'{_mention(actor)} requested changes on "{review.title}".'
        latest = latest_feedback_by_reviewer(review.feedbacks).get(actor.id) if actor else None
        if latest is not None and latest.comment:
            text += f"\n> {latest.comment}"
    else:
        text = f'You\'ve been asked to review "{review.title}" for {review.client}.'
        if review.deadline is not None:
            text += f"\nDue: {review.deadline:%Y-%m-%d %H:%M}"
        text += f"\nRequested by {_mention(review.creator)} in <#{review.channel.id}>."

    if review.url:
        text += f"\n<{review.url}|View content>"
    return text


class SlackNotifier(Notifier):
    """Posts notifications with a bot token.

    DMs are sent by posting to the user id, which Slack resolves to the
    bot's IM channel with that user.
    """

    def __init__(self, token: str, timeout: float = 5.0, base_url: str = SLACK_API_URL, transport=None):
        try:
            import httpx
        except ImportError:
            raise ImportError(
                "The 'httpx' package is required for the Slack notifier. "
                "Install it with: pip install 'reviewdesk[slack]'"
            )
        if not token:
            raise ValueError("SlackNotifier requires a bot token (SLACK_BOT_TOKEN).")
        self._http_error = httpx.HTTPError
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    def notify_channel(self, channel_id: str, review: Review, actor: Person | None) -> None:
        self._ensure_in_channel(channel_id)
        self._post_message(channel_id, render_text(review, actor, NotificationVariant.COMPLETION))
        logger.info("Sent completion notification to channel %s for %s", channel_id, review.review_id)

    def notify_user(self, user_id: str, review: Review, actor: Person | None, variant: NotificationVariant) -> None:
        self._post_message(user_id, render_text(review, actor, variant))
        logger.info("Sent %s notification to %s for %s", variant.value, user_id, review.review_id)

    def close(self) -> None:
        self._client.close()

    def _ensure_in_channel(self, channel_id: str) -> None:
        """Join public/private channels before posting; DMs need no join.

        Joining fails for channels the bot cannot self-join. That is logged
        and the post is still attempted, since the bot may already be a member.
        """
        if not channel_id.startswith(("C", "G")):
            return
        try:
            self._call("conversations.join", {"channel": channel_id})
        except NotificationError as e:
            logger.debug("Could not join channel %s, posting anyway: %s", channel_id, e)

    def _post_message(self, channel: str, text: str) -> None:
        self._call("chat.postMessage", {"channel": channel, "text": text})

    def _call(self, method: str, payload: dict) -> dict:
        try:
            response = self._client.post(f"/{method}", json=payload)
            response.raise_for_status()
            body = response.json()
        except self._http_error as e:
            raise NotificationError(f"Slack {method} failed: {e}") from e
        except ValueError as e:
            raise NotificationError(f"Slack {method} returned invalid JSON: {e}") from e

        if not body.get("ok"):
            raise NotificationError(f"Slack {method} failed: {body.get('error', 'unknown_error')}")
        return body
