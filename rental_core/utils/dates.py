"""Date and UTC datetime utilities."""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Use this instead of datetime.now() or datetime.utcnow() so all stored
    timestamps are timezone-aware and in UTC.
    """
    return datetime.now(timezone.utc)


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield every stay date in [check_in, check_out)."""
    night = check_in
    while night < check_out:
        yield night
        night += timedelta(days=1)


def month_start(year: Any, month: Any) -> date:
    """First day of a month from EXTRACT results (int on SQLite, numeric on PostgreSQL)."""
    return date(int(year), int(month), 1)
