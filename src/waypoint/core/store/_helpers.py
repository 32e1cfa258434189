"""Common helper functions for store modules."""

from datetime import UTC, datetime


def now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a timestamp to timezone-aware UTC.

    SQLite drops tzinfo on read, and engines may hand over naive values.
    Naive timestamps are taken to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
