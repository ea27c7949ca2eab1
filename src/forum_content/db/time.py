"""Timestamp helpers shared by models, services and the reply tree."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive values; SQLite drops tzinfo on the way back out."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
