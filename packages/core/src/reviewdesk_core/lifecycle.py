"""Review lifecycle orchestration.

ReviewService is the only entry point the command layer uses to mutate
reviews. It owns no state of its own: the store is the serialization point
and the notifier is the outbound boundary, both injected at construction.

Every mutation follows the same shape:
    validate → persist → (re-read + aggregate) → persist status change
             → run post-commit notification hooks

Notification hooks run only after the write succeeded, each inside its own
failure boundary. A failed notification is logged and never reaches the
caller, so it cannot roll back or block the state change or another hook.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from reviewdesk_core.aggregator import derive_status, last_approver
from reviewdesk_core.notify.base import NotificationVariant, Notifier
from reviewdesk_store.base import ReviewStore
from reviewdesk_store.errors import InvalidArgument, NotAuthorized, NotFound
from reviewdesk_store.models import (
    Channel,
    Feedback,
    FeedbackStatus,
    Person,
    Review,
    ReviewDraft,
    ReviewFilters,
    ReviewStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_COMMENT = "Approved"

# (label for the log, zero-argument callable)
Hook = tuple[str, Callable[[], object]]


class ReviewService:
    def __init__(self, store: ReviewStore, notifier: Notifier, clock: Callable[[], datetime] = datetime.now):
        self._store = store
        self._notifier = notifier
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    def get_review(self, review_id: str) -> Review:
        review = self._store.get(review_id)
        if review is None:
            raise NotFound(review_id)
        return review

    def list_reviews(self, filters: ReviewFilters | None = None, **kwargs) -> list[Review]:
        """List reviews; pass a ReviewFilters or its fields as keyword arguments."""
        if filters is None:
            filters = ReviewFilters(**kwargs)
        reviews = self._store.list_reviews(filters)
        logger.debug("Found %d reviews matching %s", len(reviews), filters)
        return reviews

    def find_review(self, reference: str, client: str | None = None) -> Review:
        """Resolve a user-supplied reference to a review.

        An exact review id wins. Otherwise the first review (in listing order,
        optionally restricted to ``client``) whose title contains the
        reference, case-insensitively.
        """
        reference = (reference or "").strip()
        if not reference:
            raise NotFound(reference)

        review = self._store.get(reference)
        if review is not None and (client is None or review.client == client):
            return review

        needle = reference.lower()
        for candidate in self._store.list_reviews(ReviewFilters(client=client)):
            if needle in candidate.title.lower():
                return candidate

        suffix = f" for client {client}" if client else ""
        raise NotFound(f"{reference}{suffix}")

    # ------------------------------------------------------------------ #
    # Mutations                                                            #
    # ------------------------------------------------------------------ #

    def create_review(
        self,
        title: str,
        description: str | None,
        creator: Person,
        reviewers: list[Person],
        channel: Channel,
        client: str,
        url: str | None = None,
        deadline=None,
        initial_status=None,
    ) -> Review:
        """Create a review. Unknown initial statuses quietly become in_review.

        Reviewer identities must already be resolved by the caller. No
        notifications are sent; announcing the review is the caller's job.
        """
        if not reviewers:
            raise InvalidArgument("Please tag at least one reviewer.")

        draft = ReviewDraft(
            title=title,
            description=description,
            creator=creator,
            reviewers=list(reviewers),
            channel=channel,
            client=client,
            url=url,
            deadline=deadline,
            status=initial_status,
        )
        review = self._store.create(draft, now=self._clock())
        logger.info(
            "Created review %s (%r) for %s with reviewers %s, status %s",
            review.review_id,
            review.title,
            review.client,
            ",".join(review.reviewer_ids),
            review.status.value,
        )
        return review

    def record_feedback(
        self,
        review_id: str,
        reviewer_id: str,
        reviewer_name: str,
        comment,
        feedback_status,
    ) -> Review:
        """Record one reviewer's verdict and re-derive the review status."""
        status = FeedbackStatus.parse(feedback_status)
        text = "" if comment is None else str(comment)
        review, hooks = self._record(review_id, Person(reviewer_id, reviewer_name), text, status)
        self._run_hooks(hooks)
        return review

    def approve(
        self,
        review_id: str,
        reviewer_id: str,
        reviewer_name: str,
        comment=DEFAULT_APPROVAL_COMMENT,
    ) -> Review:
        """Approve on behalf of a reviewer.

        Non-string comments are replaced by "Approved". When the approval does
        not complete the review, the creator (if not the approver) gets a
        status update.
        """
        if not isinstance(comment, str):
            comment = DEFAULT_APPROVAL_COMMENT
        approver = Person(reviewer_id, reviewer_name)
        review, hooks = self._record(review_id, approver, comment, FeedbackStatus.APPROVED)

        if not review.is_completed and review.creator.id != reviewer_id:
            hooks.append(
                (
                    f"status update to creator {review.creator.id}",
                    lambda: self._notifier.notify_user(
                        review.creator.id, review, approver, NotificationVariant.STATUS_UPDATE
                    ),
                )
            )
        self._run_hooks(hooks)
        return review

    def request_changes(self, review_id: str, reviewer_id: str, reviewer_name: str, comment: str) -> Review:
        """Record a change request and tell the creator (if not the reviewer)."""
        reviewer = Person(reviewer_id, reviewer_name)
        text = "" if comment is None else str(comment)
        review, hooks = self._record(review_id, reviewer, text, FeedbackStatus.REQUESTED_CHANGES)

        if review.creator.id != reviewer_id:
            hooks.append(
                (
                    f"feedback notice to creator {review.creator.id}",
                    lambda: self._notifier.notify_user(
                        review.creator.id, review, reviewer, NotificationVariant.FEEDBACK_RECEIVED
                    ),
                )
            )
        self._run_hooks(hooks)
        return review

    def set_status_manually(self, review_id: str, new_status, actor_id: str, actor_name: str) -> Review:
        """Override the status. Any status may follow any other.

        Only the creator or a reviewer may do this, and unlike creation an
        unknown status is rejected rather than coerced.
        """
        review = self.get_review(review_id)
        if not review.can_manage(actor_id):
            raise NotAuthorized("You are not authorized to update this review.")
        target = ReviewStatus.parse(new_status)

        is_new_completion = target.is_completion and not review.status.is_completion
        updated = self._store.update_status(review, target, mark_completed=is_new_completion, now=self._clock())
        logger.info(
            "Review %s manually moved from %s to %s by %s",
            review_id,
            review.status.value,
            target.value,
            actor_id,
        )

        hooks: list[Hook] = []
        if is_new_completion:
            hooks.append(self._completion_hook(updated, Person(actor_id, actor_name)))
        self._run_hooks(hooks)
        return updated

    # ------------------------------------------------------------------ #
    # Internals                                                            #
    # ------------------------------------------------------------------ #

    def _record(
        self,
        review_id: str,
        reviewer: Person,
        comment: str,
        status: FeedbackStatus,
    ) -> tuple[Review, list[Hook]]:
        """Append feedback, recompute status from the full history, persist any change.

        Returns the fresh review and the hooks to run once the caller has
        added its own.
        """
        review = self.get_review(review_id)
        feedback = Feedback(reviewer=reviewer, comment=comment, status=status, created_at=self._clock())
        self._store.add_feedback(review, feedback)
        logger.info("Recorded %s from %s on review %s", status.value, reviewer.id, review_id)

        current = self.get_review(review_id)
        change = derive_status(current.status, current.reviewer_ids, current.feedbacks)

        hooks: list[Hook] = []
        if not change.changed:
            return current, hooks

        is_new_completion = change.new_status.is_completion and not current.status.is_completion
        logger.info(
            "Review %s status changing from %s to %s", review_id, current.status.value, change.new_status.value
        )
        updated = self._store.update_status(
            current, change.new_status, mark_completed=is_new_completion, now=self._clock()
        )
        if change.new_status == ReviewStatus.APPROVED:
            hooks.append(self._completion_hook(updated, last_approver(updated)))
        return updated, hooks

    def _completion_hook(self, review: Review, actor: Person | None) -> Hook:
        return (
            f"completion notice to channel {review.channel.id}",
            lambda: self._notifier.notify_channel(review.channel.id, review, actor),
        )

    @staticmethod
    def _run_hooks(hooks: list[Hook]) -> None:
        for label, hook in hooks:
            try:
                hook()
            except Exception as e:
                # The mutation is already committed; a lost message must not undo it.
                logger.warning("Post-commit %s failed: %s", label, e, exc_info=True)
