"""SQLiteStore — durable file-based review store.

Schema:
  reviews    — one row per review. Reviewers are a JSON array of
               {"id", "name"} objects; membership filters use json_each.
  feedbacks  — one row per verdict, insertion order = chronological order.

Timestamps are stored as fixed-width ISO-8601 strings (microsecond
precision) so lexical comparison in SQL matches chronological order.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime

from reviewdesk_store.base import ReviewStore
from reviewdesk_store.deadline import to_local_naive
from reviewdesk_store.errors import NotFound, PersistenceError
from reviewdesk_store.models import Channel, Feedback, FeedbackStatus, Person, Review, ReviewFilters, ReviewStatus

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reviews (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    review_id       TEXT NOT NULL UNIQUE,
    title           TEXT NOT NULL,
    description     TEXT,
    creator_id      TEXT NOT NULL,
    creator_name    TEXT NOT NULL DEFAULT '',
    reviewers_json  TEXT NOT NULL DEFAULT '[]',
    channel_id      TEXT NOT NULL,
    channel_name    TEXT,
    client          TEXT NOT NULL,
    url             TEXT,
    status          TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    deadline        TEXT,
    completed_at    TEXT
);
CREATE TABLE IF NOT EXISTS feedbacks (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    review_pk       INTEGER NOT NULL REFERENCES reviews (id),
    reviewer_id     TEXT NOT NULL,
    reviewer_name   TEXT NOT NULL DEFAULT '',
    comment         TEXT NOT NULL DEFAULT '',
    status          TEXT NOT NULL,
    created_at      TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_reviews_client   ON reviews (client);
CREATE INDEX IF NOT EXISTS idx_reviews_channel  ON reviews (channel_id);
CREATE INDEX IF NOT EXISTS idx_reviews_status   ON reviews (status, created_at);
CREATE INDEX IF NOT EXISTS idx_feedbacks_review ON feedbacks (review_pk, created_at);
"""

# One query covers the whole activity window: created, completed, or any
# feedback written at/after the timestamp.
_ACTIVITY_CLAUSE = (
    "(r.created_at >= ? OR r.completed_at >= ? OR EXISTS ("
    "SELECT 1 FROM feedbacks f WHERE f.review_pk = r.id AND f.created_at >= ?))"
)

_REVIEWER_CLAUSE = (
    "EXISTS (SELECT 1 FROM json_each(r.reviewers_json) j WHERE json_extract(j.value, '$.id') = ?)"
)


def _ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="microseconds")


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStore(ReviewStore):
    """Stores reviews and feedback in a local SQLite database file.

    The database file path defaults to `.reviewdesk.db` in the current
    working directory. Configure via .reviewdesk.yml: `store_path: ...`.
    """

    def __init__(self, db_path: str = ".reviewdesk.db", timeout: float = 5.0):
        try:
            self._conn = sqlite3.connect(db_path, timeout=timeout)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open review store at {db_path}: {e}") from e
        self._db_path = db_path

    @contextmanager
    def _guard(self, action: str):
        """Commit on success, roll back and translate sqlite errors on failure."""
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as e:
            logger.error("SQLiteStore %s failed: %s", action, e)
            raise PersistenceError(f"Review store {action} failed: {e}") from e

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def get(self, review_id: str) -> Review | None:
        with self._guard("read"):
            row = self._conn.execute("SELECT * FROM reviews WHERE review_id = ?", (review_id,)).fetchone()
            if row is None:
                return None
            feedbacks = self._load_feedbacks([row["id"]])
        return self._row_to_review(row, feedbacks.get(row["id"], []))

    def list_reviews(self, filters: ReviewFilters | None = None) -> list[Review]:
        filters = filters or ReviewFilters()
        clauses: list[str] = []
        params: list = []

        if filters.client is not None:
            clauses.append("r.client = ?")
            params.append(filters.client)
        if filters.channel is not None:
            clauses.append("r.channel_id = ?")
            params.append(filters.channel)
        if filters.creator is not None:
            clauses.append("r.creator_id = ?")
            params.append(filters.creator)
        if filters.reviewer is not None:
            clauses.append(_REVIEWER_CLAUSE)
            params.append(filters.reviewer)
        if filters.status is not None:
            clauses.append("r.status = ?")
            params.append(ReviewStatus(filters.status).value)
        if filters.activity_since is not None:
            since = _ts(to_local_naive(filters.activity_since))
            clauses.append(_ACTIVITY_CLAUSE)
            params.extend([since, since, since])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = f"SELECT r.* FROM reviews r {where} ORDER BY r.status ASC, r.created_at DESC, r.id DESC"
        logger.debug("list_reviews: %s %s", sql, params)

        with self._guard("query"):
            rows = self._conn.execute(sql, params).fetchall()
            feedbacks = self._load_feedbacks([row["id"] for row in rows])
        return [self._row_to_review(row, feedbacks.get(row["id"], [])) for row in rows]

    def _load_feedbacks(self, review_pks: list[int]) -> dict[int, list[Feedback]]:
        if not review_pks:
            return {}
        placeholders = ", ".join("?" for _ in review_pks)
        rows = self._conn.execute(
            f"SELECT * FROM feedbacks WHERE review_pk IN ({placeholders}) ORDER BY id",
            review_pks,
        ).fetchall()
        grouped: dict[int, list[Feedback]] = {}
        for row in rows:
            grouped.setdefault(row["review_pk"], []).append(self._row_to_feedback(row))
        return grouped

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def _insert_review(self, review: Review) -> Review:
        reviewers_json = json.dumps([{"id": p.id, "name": p.name} for p in review.reviewers])
        with self._guard("create"):
            cursor = self._conn.execute(
                """
                INSERT INTO reviews
                  (review_id, title, description, creator_id, creator_name, reviewers_json,
                   channel_id, channel_name, client, url, status, created_at, deadline, completed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    review.review_id,
                    review.title,
                    review.description,
                    review.creator.id,
                    review.creator.name,
                    reviewers_json,
                    review.channel.id,
                    review.channel.name,
                    review.client,
                    review.url,
                    review.status.value,
                    _ts(review.created_at),
                    _ts(review.deadline),
                    _ts(review.completed_at),
                ),
            )
        review.pk = cursor.lastrowid
        return review

    def _insert_feedback(self, review: Review, feedback: Feedback) -> Feedback:
        with self._guard("add_feedback"):
            row = self._conn.execute("SELECT id FROM reviews WHERE review_id = ?", (review.review_id,)).fetchone()
            if row is None:
                raise NotFound(review.review_id)
            cursor = self._conn.execute(
                """
                INSERT INTO feedbacks (review_pk, reviewer_id, reviewer_name, comment, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    row["id"],
                    feedback.reviewer.id,
                    feedback.reviewer.name,
                    feedback.comment,
                    feedback.status.value,
                    _ts(feedback.created_at),
                ),
            )
        feedback.id = cursor.lastrowid
        return feedback

    def _write_status(self, review: Review, status: ReviewStatus, completed_at: datetime | None) -> Review:
        with self._guard("update_status"):
            if completed_at is not None:
                cursor = self._conn.execute(
                    "UPDATE reviews SET status = ?, completed_at = ? WHERE review_id = ?",
                    (status.value, _ts(completed_at), review.review_id),
                )
            else:
                cursor = self._conn.execute(
                    "UPDATE reviews SET status = ? WHERE review_id = ?",
                    (status.value, review.review_id),
                )
            if cursor.rowcount == 0:
                raise NotFound(review.review_id)
        updated = self.get(review.review_id)
        if updated is None:
            raise NotFound(review.review_id)
        return updated

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------ #
    # Row mapping                                                          #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _row_to_feedback(row: sqlite3.Row) -> Feedback:
        return Feedback(
            id=row["id"],
            reviewer=Person(id=row["reviewer_id"], name=row["reviewer_name"] or ""),
            comment=row["comment"] or "",
            status=FeedbackStatus(row["status"]),
            created_at=_parse_ts(row["created_at"]),
        )

    @staticmethod
    def _row_to_review(row: sqlite3.Row, feedbacks: list[Feedback]) -> Review:
        reviewers = [
            Person(id=r.get("id", ""), name=r.get("name", "")) for r in json.loads(row["reviewers_json"] or "[]")
        ]
        return Review(
            pk=row["id"],
            review_id=row["review_id"],
            title=row["title"],
            description=row["description"],
            creator=Person(id=row["creator_id"], name=row["creator_name"] or ""),
            reviewers=reviewers,
            channel=Channel(id=row["channel_id"], name=row["channel_name"]),
            client=row["client"],
            url=row["url"],
            status=ReviewStatus.coerce(row["status"]),
            created_at=_parse_ts(row["created_at"]),
            deadline=_parse_ts(row["deadline"]),
            completed_at=_parse_ts(row["completed_at"]),
            feedbacks=feedbacks,
        )
