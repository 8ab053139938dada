"""Review status aggregation.

Pure functions over a review's feedback history. The authoritative status is
always recomputed from the full history, never from a delta, so concurrent
writers that each recompute converge on the same answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from reviewdesk_store.models import Feedback, FeedbackStatus, Person, Review, ReviewStatus


@dataclass(frozen=True)
class StatusChange:
    new_status: ReviewStatus
    changed: bool


def latest_feedback_by_reviewer(feedbacks: Iterable[Feedback]) -> dict[str, Feedback]:
    """Map reviewer id -> most recent feedback.

    On equal timestamps the record scanned later wins.
    """
    latest: dict[str, Feedback] = {}
    for feedback in feedbacks:
        current = latest.get(feedback.reviewer.id)
        if current is None or feedback.created_at >= current.created_at:
            latest[feedback.reviewer.id] = feedback
    return latest


def derive_status(
    current: ReviewStatus,
    reviewer_ids: list[str],
    feedbacks: Iterable[Feedback],
) -> StatusChange:
    """Fold per-reviewer verdicts into the review's status.

    Unanimous approval advances in_review to approved. Any outstanding change
    request sends the review (back) to in_review. Everything else leaves the
    status alone; published is never reached automatically.
    """
    latest = latest_feedback_by_reviewer(feedbacks)

    all_approved = all(
        rid in latest and latest[rid].status == FeedbackStatus.APPROVED for rid in reviewer_ids
    )
    any_change_requested = any(f.status == FeedbackStatus.REQUESTED_CHANGES for f in latest.values())

    if all_approved and current == ReviewStatus.IN_REVIEW:
        target = ReviewStatus.APPROVED
    elif any_change_requested:
        target = ReviewStatus.IN_REVIEW
    else:
        target = current

    return StatusChange(new_status=target, changed=target != current)


def approval_progress(review: Review) -> tuple[int, int]:
    """Return (reviewers currently approving, total reviewers)."""
    latest = latest_feedback_by_reviewer(review.feedbacks)
    approved = sum(
        1 for rid in review.reviewer_ids if rid in latest and latest[rid].status == FeedbackStatus.APPROVED
    )
    return approved, len(review.reviewers)


def reviewer_verdicts(review: Review) -> list[tuple[Person, FeedbackStatus | None]]:
    """Each reviewer with their latest verdict, None while pending."""
    latest = latest_feedback_by_reviewer(review.feedbacks)
    return [(p, latest[p.id].status if p.id in latest else None) for p in review.reviewers]


def last_approver(review: Review) -> Person | None:
    """Author of the most recent approving feedback, if any."""
    approvals = [f for f in review.feedbacks if f.status == FeedbackStatus.APPROVED]
    if not approvals:
        return None
    return max(reversed(approvals), key=lambda f: f.created_at).reviewer
