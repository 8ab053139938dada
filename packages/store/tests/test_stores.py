"""Tests for reviewdesk-store implementations.

Both backends must behave identically, so most tests run against each of
them through the parametrized ``store`` fixture.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from reviewdesk_store.errors import InvalidArgument, NotAuthorized, NotFound, PersistenceError
from reviewdesk_store.memory import MemoryStore
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
from reviewdesk_store.sqlite import SQLiteStore

ALICE = Person("U_ALICE", "Alice")
BOB = Person("U_BOB", "Bob")
CAROL = Person("U_CAROL", "Carol")
DAVE = Person("U_DAVE", "Dave")

T0 = datetime(2026, 3, 2, 10, 30)


def _draft(
    title="Homepage copy",
    creator=ALICE,
    reviewers=None,
    channel="C100",
    client="acme",
    status=None,
    deadline=None,
):
    return ReviewDraft(
        title=title,
        description="Spring launch",
        creator=creator,
        reviewers=[BOB, CAROL] if reviewers is None else reviewers,
        channel=Channel(channel, "client-acme"),
        client=client,
        url="https://docs.example.com/copy",
        status=status,
        deadline=deadline,
    )


def _feedback(person, status=FeedbackStatus.APPROVED, at=T0, comment="ok"):
    return Feedback(reviewer=person, comment=comment, status=status, created_at=at)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryStore()
    else:
        s = SQLiteStore(db_path=str(tmp_path / "reviews.db"))
    yield s
    s.close()


# ---------------------------------------------------------------------------
# create / get
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_and_get(self, store):
        review = store.create(_draft(), now=T0)

        assert review.review_id.startswith("review_")
        assert review.pk is not None
        loaded = store.get(review.review_id)
        assert loaded.title == "Homepage copy"
        assert loaded.creator == ALICE
        assert loaded.reviewers == [BOB, CAROL]
        assert loaded.channel == Channel("C100", "client-acme")
        assert loaded.client == "acme"
        assert loaded.url == "https://docs.example.com/copy"
        assert loaded.created_at == T0
        assert loaded.completed_at is None
        assert loaded.feedbacks == []

    def test_review_ids_are_unique(self, store):
        first = store.create(_draft(), now=T0)
        second = store.create(_draft(), now=T0)
        assert first.review_id != second.review_id

    def test_status_defaults_to_in_review(self, store):
        assert store.create(_draft(), now=T0).status == ReviewStatus.IN_REVIEW

    def test_invalid_status_coerced_to_in_review(self, store):
        assert store.create(_draft(status="shipped"), now=T0).status == ReviewStatus.IN_REVIEW

    def test_valid_initial_status_kept(self, store):
        assert store.create(_draft(status="draft"), now=T0).status == ReviewStatus.DRAFT

    def test_zero_reviewers_rejected_without_write(self, store):
        with pytest.raises(InvalidArgument):
            store.create(_draft(reviewers=[]), now=T0)
        assert store.list_reviews() == []

    def test_blank_title_rejected(self, store):
        with pytest.raises(InvalidArgument):
            store.create(_draft(title="   "), now=T0)

    def test_default_deadline_three_days_at_five_pm(self, store):
        review = store.create(_draft(), now=T0)
        assert review.deadline == datetime(2026, 3, 5, 17, 0)

    def test_date_only_deadline_pinned_to_five_pm(self, store):
        review = store.create(_draft(deadline="2026-04-01"), now=T0)
        assert store.get(review.review_id).deadline == datetime(2026, 4, 1, 17, 0)

    def test_deadline_with_time_kept(self, store):
        review = store.create(_draft(deadline="2026-04-01T09:15:00"), now=T0)
        assert store.get(review.review_id).deadline == datetime(2026, 4, 1, 9, 15)

    def test_configured_deadline_window(self, store):
        store.deadline_days = 5
        store.workday_end_hour = 18
        review = store.create(_draft(), now=T0)
        assert review.deadline == datetime(2026, 3, 7, 18, 0)

    def test_get_unknown_returns_none(self, store):
        assert store.get("review_missing") is None


# ---------------------------------------------------------------------------
# feedback
# ---------------------------------------------------------------------------


class TestAddFeedback:
    def test_feedback_appended_in_order(self, store):
        review = store.create(_draft(), now=T0)
        store.add_feedback(review, _feedback(BOB, FeedbackStatus.REQUESTED_CHANGES, T0 + timedelta(hours=1)))
        store.add_feedback(review, _feedback(BOB, FeedbackStatus.APPROVED, T0 + timedelta(hours=2)))

        feedbacks = store.get(review.review_id).feedbacks
        assert [f.status for f in feedbacks] == [FeedbackStatus.REQUESTED_CHANGES, FeedbackStatus.APPROVED]
        assert feedbacks[0].reviewer == BOB
        assert feedbacks[0].comment == "ok"
        assert all(f.id is not None for f in feedbacks)

    def test_non_reviewer_rejected_and_nothing_written(self, store):
        review = store.create(_draft(), now=T0)

        with pytest.raises(NotAuthorized):
            store.add_feedback(review, _feedback(DAVE))

        assert store.get(review.review_id).feedbacks == []

    def test_creator_who_is_not_reviewer_rejected(self, store):
        review = store.create(_draft(), now=T0)
        with pytest.raises(NotAuthorized):
            store.add_feedback(review, _feedback(ALICE))

    def test_missing_review_raises_not_found(self, store):
        ghost = Review(
            review_id="review_gone",
            title="Gone",
            creator=ALICE,
            reviewers=[BOB],
            channel=Channel("C1"),
            client="acme",
            status=ReviewStatus.IN_REVIEW,
            created_at=T0,
        )
        with pytest.raises(NotFound):
            store.add_feedback(ghost, _feedback(BOB))


# ---------------------------------------------------------------------------
# update_status
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_completion_stamps_completed_at(self, store):
        review = store.create(_draft(), now=T0)
        done_at = T0 + timedelta(days=1)

        updated = store.update_status(review, ReviewStatus.APPROVED, mark_completed=True, now=done_at)

        assert updated.status == ReviewStatus.APPROVED
        assert updated.completed_at == done_at

    def test_non_completion_leaves_completed_at(self, store):
        review = store.create(_draft(), now=T0)
        done_at = T0 + timedelta(days=1)
        store.update_status(review, ReviewStatus.APPROVED, mark_completed=True, now=done_at)

        reopened = store.update_status(review, ReviewStatus.IN_REVIEW, now=T0 + timedelta(days=2))

        assert reopened.status == ReviewStatus.IN_REVIEW
        assert reopened.completed_at == done_at

    def test_returns_feedback_history(self, store):
        review = store.create(_draft(), now=T0)
        store.add_feedback(review, _feedback(BOB))

        updated = store.update_status(review, ReviewStatus.DESIGN)

        assert len(updated.feedbacks) == 1

    def test_missing_review_raises_not_found(self, store):
        review = store.create(_draft(), now=T0)
        review.review_id = "review_gone"
        with pytest.raises(NotFound):
            store.update_status(review, ReviewStatus.DESIGN)


# ---------------------------------------------------------------------------
# list_reviews
# ---------------------------------------------------------------------------


class TestListReviews:
    def test_ordered_by_status_then_newest_first(self, store):
        store.create(_draft(title="pub", status="published"), now=T0)
        store.create(_draft(title="draft-old", status="draft"), now=T0)
        store.create(_draft(title="draft-new", status="draft"), now=T0 + timedelta(hours=1))
        store.create(_draft(title="review", status="in_review"), now=T0)
        store.create(_draft(title="ok", status="approved"), now=T0)
        store.create(_draft(title="design", status="design"), now=T0)

        titles = [r.title for r in store.list_reviews()]

        assert titles == ["ok", "design", "draft-new", "draft-old", "review", "pub"]

    def test_filter_by_client(self, store):
        store.create(_draft(client="acme"), now=T0)
        store.create(_draft(client="globex"), now=T0)

        results = store.list_reviews(ReviewFilters(client="globex"))
        assert [r.client for r in results] == ["globex"]

    def test_filter_by_channel_and_creator(self, store):
        store.create(_draft(channel="C1", creator=ALICE), now=T0)
        store.create(_draft(channel="C2", creator=ALICE), now=T0)
        store.create(_draft(channel="C1", creator=DAVE, reviewers=[BOB]), now=T0)

        assert len(store.list_reviews(ReviewFilters(channel="C1"))) == 2
        assert len(store.list_reviews(ReviewFilters(channel="C1", creator=ALICE.id))) == 1

    def test_filter_by_reviewer_membership(self, store):
        store.create(_draft(title="bob only", reviewers=[BOB]), now=T0)
        store.create(_draft(title="carol only", reviewers=[CAROL]), now=T0)

        results = store.list_reviews(ReviewFilters(reviewer=CAROL.id))
        assert [r.title for r in results] == ["carol only"]

    def test_filter_by_status(self, store):
        store.create(_draft(status="draft"), now=T0)
        store.create(_draft(status="in_review"), now=T0)

        results = store.list_reviews(ReviewFilters(status=ReviewStatus.DRAFT))
        assert [r.status for r in results] == [ReviewStatus.DRAFT]

    def test_activity_since_matches_created_completed_or_feedback(self, store):
        old = T0 - timedelta(days=30)
        since = T0 - timedelta(days=1)

        store.create(_draft(title="stale"), now=old)
        with_feedback = store.create(_draft(title="feedback"), now=old)
        store.add_feedback(with_feedback, _feedback(BOB, at=T0))
        completed = store.create(_draft(title="completed"), now=old)
        store.update_status(completed, ReviewStatus.APPROVED, mark_completed=True, now=T0)
        store.create(_draft(title="fresh"), now=T0)

        titles = {r.title for r in store.list_reviews(ReviewFilters(activity_since=since))}

        assert titles == {"feedback", "completed", "fresh"}

    def test_activity_since_combines_with_other_filters(self, store):
        store.create(_draft(title="acme new", client="acme"), now=T0)
        store.create(_draft(title="globex new", client="globex"), now=T0)

        results = store.list_reviews(ReviewFilters(client="acme", activity_since=T0 - timedelta(hours=1)))
        assert [r.title for r in results] == ["acme new"]

    @pytest.mark.parametrize("offset_hours, expected", [(-1, ["fresh"]), (1, [])])
    def test_activity_since_accepts_aware_datetime(self, store, offset_hours, expected):
        store.create(_draft(title="fresh"), now=T0)
        since = (T0 + timedelta(hours=offset_hours)).astimezone().astimezone(timezone.utc)

        results = store.list_reviews(ReviewFilters(activity_since=since))

        assert [r.title for r in results] == expected

    def test_equal_timestamps_newest_insert_first(self, store):
        store.create(_draft(title="first"), now=T0)
        store.create(_draft(title="second"), now=T0)
        store.create(_draft(title="third"), now=T0)

        assert [r.title for r in store.list_reviews()] == ["third", "second", "first"]

    def test_listed_reviews_carry_feedback(self, store):
        review = store.create(_draft(), now=T0)
        store.add_feedback(review, _feedback(BOB))

        (listed,) = store.list_reviews()
        assert len(listed.feedbacks) == 1


# ---------------------------------------------------------------------------
# backend specifics
# ---------------------------------------------------------------------------


class TestSQLiteStore:
    def test_persists_across_connections(self, tmp_path):
        """Data written by one SQLiteStore instance must be readable by another."""
        db_path = str(tmp_path / "reviews.db")
        store_a = SQLiteStore(db_path=db_path)
        review = store_a.create(_draft(), now=T0)
        store_a.add_feedback(review, _feedback(BOB))
        store_a.close()

        store_b = SQLiteStore(db_path=db_path)
        loaded = store_b.get(review.review_id)
        assert loaded.reviewers == [BOB, CAROL]
        assert len(loaded.feedbacks) == 1
        store_b.close()

    def test_unreachable_database_raises_persistence_error(self, tmp_path):
        with pytest.raises(PersistenceError):
            SQLiteStore(db_path=str(tmp_path / "missing-dir" / "reviews.db"))

    def test_closed_connection_raises_persistence_error(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "reviews.db"))
        store.close()
        with pytest.raises(PersistenceError):
            store.list_reviews()


class TestMemoryStore:
    def test_returned_reviews_are_copies(self):
        store = MemoryStore()
        review = store.create(_draft(), now=T0)
        review.title = "mutated"
        review.feedbacks.append(_feedback(BOB))

        loaded = store.get(review.review_id)
        assert loaded.title == "Homepage copy"
        assert loaded.feedbacks == []
