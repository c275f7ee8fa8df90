"""Date manipulation utilities"""

from datetime import date, datetime, timezone

DAYS_PER_MONTH = 30


def utc_now() -> datetime:
    """Default clock for callers that do not inject one"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def months_between(start: datetime, end: datetime) -> float:
    """Elapsed time in 30-day months (fractional, may be negative)"""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return seconds / (DAYS_PER_MONTH * 24 * 60 * 60)


def month_key(day: date) -> str:
    """Calendar month bucket, e.g. '2024-03'"""
    return f"{day.year:04d}-{day.month:02d}"
