"""Review and feedback data models.

Decoupled from reviewdesk_core so the store layer can be used on its own;
the core only consumes these types through the ReviewStore interface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from reviewdesk_store.errors import InvalidArgument


class ReviewStatus(str, Enum):
    DRAFT = "draft"
    DESIGN = "design"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    PUBLISHED = "published"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]

    @classmethod
    def coerce(cls, raw) -> ReviewStatus:
        """Lenient conversion used at creation: anything unknown becomes in_review."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return cls.IN_REVIEW

    @classmethod
    def parse(cls, raw) -> ReviewStatus:
        """Strict conversion used for manual overrides."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise InvalidArgument(f"Invalid status {raw!r}. Must be one of: {', '.join(cls.values())}")

    @property
    def is_completion(self) -> bool:
        return self in COMPLETION_STATUSES


COMPLETION_STATUSES = frozenset({ReviewStatus.APPROVED, ReviewStatus.PUBLISHED})


class FeedbackStatus(str, Enum):
    APPROVED = "approved"
    REQUESTED_CHANGES = "requested_changes"

    @classmethod
    def parse(cls, raw) -> FeedbackStatus:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise InvalidArgument(f"Invalid feedback status {raw!r}. Must be one of: {valid}")


@dataclass(frozen=True)
class Person:
    """A workspace identity plus the display name captured at write time."""

    id: str
    name: str = ""


@dataclass(frozen=True)
class Channel:
    id: str
    name: str | None = None


@dataclass
class Feedback:
    """One reviewer's dated verdict on a review."""

    reviewer: Person
    comment: str
    status: FeedbackStatus
    created_at: datetime
    id: int | None = None


@dataclass
class Review:
    """A tracked request for one or more reviewers to approve client content.

    ``review_id`` is the public identifier; ``pk`` is the backend's internal
    key and is never shown to users.
    """

    review_id: str
    title: str
    creator: Person
    reviewers: list[Person]
    channel: Channel
    client: str
    status: ReviewStatus
    created_at: datetime
    description: str | None = None
    url: str | None = None
    deadline: datetime | None = None
    completed_at: datetime | None = None
    feedbacks: list[Feedback] = field(default_factory=list)
    pk: int | None = None

    @property
    def reviewer_ids(self) -> list[str]:
        return [r.id for r in self.reviewers]

    @property
    def is_completed(self) -> bool:
        return self.status.is_completion

    def has_reviewer(self, identity: str) -> bool:
        return identity in self.reviewer_ids

    def can_manage(self, identity: str) -> bool:
        """Creator and reviewers may override the status manually."""
        return identity == self.creator.id or self.has_reviewer(identity)


@dataclass
class ReviewDraft:
    """Input to ReviewStore.create().

    ``status`` and ``deadline`` are raw caller input; the store coerces the
    former and resolves the latter with the deadline rule.
    """

    title: str
    creator: Person
    reviewers: list[Person]
    channel: Channel
    client: str
    description: str | None = None
    url: str | None = None
    deadline: str | date | datetime | None = None
    status: str | ReviewStatus | None = None


@dataclass
class ReviewFilters:
    """Listing filters; every set field must match."""

    client: str | None = None
    channel: str | None = None
    creator: str | None = None
    reviewer: str | None = None
    status: ReviewStatus | None = None
    activity_since: datetime | None = None
