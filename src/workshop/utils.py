"""Time helpers shared by services."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from stores without tz support."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def start_of_day(now: datetime | None = None) -> datetime:
    """Midnight UTC of the given (or current) day."""
    now = now or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def isoformat(value: datetime | None) -> str | None:
    """ISO-8601 string or None."""
    value = ensure_utc(value)
    return value.isoformat() if value else None


def hours_since(value: datetime, now: datetime | None = None) -> float:
    """Elapsed hours between ``value`` and now."""
    now = now or utcnow()
    delta: timedelta = now - ensure_utc(value)  # type: ignore[operator]
    return delta.total_seconds() / 3600
