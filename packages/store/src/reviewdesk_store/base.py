"""Abstract review repository.

Any storage backend (SQLite, in-memory, Postgres) implements this interface.
The lifecycle service depends on ReviewStore, not on a concrete backend, so
backends are swappable without touching the core.

Schema rules that do not depend on the backend (id generation, status
coercion, deadline resolution, reviewer authorization) live here so every
backend enforces them identically. Subclasses implement the raw reads and
writes only.
"""

from __future__ import annotations

import secrets
import time
from abc import ABC, abstractmethod
from datetime import datetime

from reviewdesk_store.deadline import DEFAULT_DEADLINE_DAYS, WORKDAY_END_HOUR, resolve_deadline, to_local_naive
from reviewdesk_store.errors import InvalidArgument, NotAuthorized
from reviewdesk_store.models import Feedback, Review, ReviewDraft, ReviewFilters, ReviewStatus


def new_review_id() -> str:
    return f"review_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class ReviewStore(ABC):
    """Pluggable persistence layer for reviews and their feedback.

    Implementations raise PersistenceError when the backend fails and
    NotFound when a write targets a review that no longer exists.
    """

    deadline_days: int = DEFAULT_DEADLINE_DAYS
    workday_end_hour: int = WORKDAY_END_HOUR

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def create(self, draft: ReviewDraft, now: datetime | None = None) -> Review:
        """Validate a draft, resolve its defaults and persist it."""
        title = (draft.title or "").strip()
        if not title:
            raise InvalidArgument("A review needs a title.")
        if not draft.reviewers:
            raise InvalidArgument("A review needs at least one reviewer.")

        now = now or datetime.now()
        review = Review(
            review_id=new_review_id(),
            title=title,
            description=draft.description,
            creator=draft.creator,
            reviewers=list(draft.reviewers),
            channel=draft.channel,
            client=draft.client,
            url=draft.url,
            status=ReviewStatus.coerce(draft.status),
            created_at=now,
            deadline=resolve_deadline(draft.deadline, now, self.deadline_days, self.workday_end_hour),
        )
        return self._insert_review(review)

    @abstractmethod
    def get(self, review_id: str) -> Review | None:
        """Return the review with its full feedback history, or None."""

    @abstractmethod
    def list_reviews(self, filters: ReviewFilters | None = None) -> list[Review]:
        """Return matching reviews ordered by status, then newest first."""

    def add_feedback(self, review: Review, feedback: Feedback) -> Feedback:
        """Append a verdict. Only listed reviewers may write one."""
        if not review.has_reviewer(feedback.reviewer.id):
            raise NotAuthorized("You are not authorized to review this item.")
        return self._insert_feedback(review, feedback)

    def update_status(
        self,
        review: Review,
        status: ReviewStatus,
        mark_completed: bool = False,
        now: datetime | None = None,
    ) -> Review:
        """Persist a new status and return the refreshed review.

        ``completed_at`` is stamped only when ``mark_completed`` is set and is
        never cleared here.
        """
        completed_at = (now or datetime.now()) if mark_completed else None
        return self._write_status(review, status, completed_at)

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional — subclasses that need cleanup should override this.
        """

    # ------------------------------------------------------------------ #
    # Abstract — implement in each backend                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _insert_review(self, review: Review) -> Review:
        """Store a fully-resolved review and return it with its pk set."""

    @abstractmethod
    def _insert_feedback(self, review: Review, feedback: Feedback) -> Feedback:
        """Store one feedback row; raise NotFound if the review is gone."""

    @abstractmethod
    def _write_status(self, review: Review, status: ReviewStatus, completed_at: datetime | None) -> Review:
        """Write status (and completed_at when not None); return the fresh record."""


def matches_filters(review: Review, filters: ReviewFilters) -> bool:
    """In-memory evaluation of ReviewFilters, shared by non-SQL backends."""
    if filters.client is not None and review.client != filters.client:
        return False
    if filters.channel is not None and review.channel.id != filters.channel:
        return False
    if filters.creator is not None and review.creator.id != filters.creator:
        return False
    if filters.reviewer is not None and not review.has_reviewer(filters.reviewer):
        return False
    if filters.status is not None and review.status != filters.status:
        return False
    if filters.activity_since is not None:
        since = to_local_naive(filters.activity_since)
        active = (
            review.created_at >= since
            or (review.completed_at is not None and review.completed_at >= since)
            or any(f.created_at >= since for f in review.feedbacks)
        )
        if not active:
            return False
    return True


def sort_reviews(reviews: list[Review]) -> list[Review]:
    """Status ascending (by enum value), then created_at and pk descending."""
    by_created = sorted(reviews, key=lambda r: (r.created_at, r.pk or 0), reverse=True)
    return sorted(by_created, key=lambda r: r.status.value)
