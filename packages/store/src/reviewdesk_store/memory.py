"""MemoryStore — in-process store for tests and throwaway sessions.

Same semantics as SQLiteStore, nothing written to disk. Records are
deep-copied on the way in and out so callers can never mutate stored state
by holding on to a returned Review.
"""

from __future__ import annotations

import copy
import itertools
from datetime import datetime

from reviewdesk_store.base import ReviewStore, matches_filters, sort_reviews
from reviewdesk_store.errors import NotFound
from reviewdesk_store.models import Feedback, Review, ReviewFilters, ReviewStatus


class MemoryStore(ReviewStore):
    """Keeps reviews in a dict keyed by review_id.

    Selected with ``store: memory`` in .reviewdesk.yml. Contents vanish
    when the process exits.
    """

    def __init__(self):
        self._reviews: dict[str, Review] = {}
        self._review_pks = itertools.count(1)
        self._feedback_pks = itertools.count(1)

    def get(self, review_id: str) -> Review | None:
        review = self._reviews.get(review_id)
        return copy.deepcopy(review) if review is not None else None

    def list_reviews(self, filters: ReviewFilters | None = None) -> list[Review]:
        filters = filters or ReviewFilters()
        matched = [r for r in self._reviews.values() if matches_filters(r, filters)]
        return [copy.deepcopy(r) for r in sort_reviews(matched)]

    def _insert_review(self, review: Review) -> Review:
        stored = copy.deepcopy(review)
        stored.pk = next(self._review_pks)
        stored.feedbacks = []
        self._reviews[stored.review_id] = stored
        return copy.deepcopy(stored)

    def _insert_feedback(self, review: Review, feedback: Feedback) -> Feedback:
        stored_review = self._reviews.get(review.review_id)
        if stored_review is None:
            raise NotFound(review.review_id)
        stored = copy.deepcopy(feedback)
        stored.id = next(self._feedback_pks)
        stored_review.feedbacks.append(stored)
        return copy.deepcopy(stored)

    def _write_status(self, review: Review, status: ReviewStatus, completed_at: datetime | None) -> Review:
        stored = self._reviews.get(review.review_id)
        if stored is None:
            raise NotFound(review.review_id)
        stored.status = status
        if completed_at is not None:
            stored.completed_at = completed_at
        return copy.deepcopy(stored)
