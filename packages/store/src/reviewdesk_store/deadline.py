"""Review deadline resolution.

Deadlines are naive local datetimes. A missing deadline defaults to a few
days out at the end of the workday; a date without a time is pinned to the
end of that workday; anything carrying a time is kept as given.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from reviewdesk_store.errors import InvalidArgument

DEFAULT_DEADLINE_DAYS = 3
WORKDAY_END_HOUR = 17

# "YYYY-MM-DD" and anything shorter carries no time component.
_DATE_ONLY_MAX_LEN = 10


def end_of_workday(day: date | datetime, hour: int = WORKDAY_END_HOUR) -> datetime:
    return datetime(day.year, day.month, day.day, hour, 0, 0, 0)


def resolve_deadline(
    raw: str | date | datetime | None,
    now: datetime,
    days: int = DEFAULT_DEADLINE_DAYS,
    hour: int = WORKDAY_END_HOUR,
) -> datetime:
    """Return the deadline to store for a new review."""
    if raw is None or raw == "":
        return end_of_workday(now + timedelta(days=days), hour)

    if isinstance(raw, datetime):
        return to_local_naive(raw)
    if isinstance(raw, date):
        return end_of_workday(raw, hour)

    text = str(raw).strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidArgument(f"Invalid deadline {raw!r}. Use YYYY-MM-DD or an ISO-8601 datetime.")

    if len(text) <= _DATE_ONLY_MAX_LEN:
        return end_of_workday(parsed, hour)
    return to_local_naive(parsed)


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
