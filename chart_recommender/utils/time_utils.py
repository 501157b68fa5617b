"""
Time helpers shared by the strategies, repositories and seed loader.

All timestamps inside the engine are timezone-aware UTC. SQLite stores them
as ISO-8601 strings; ``parse_utc()`` restores them, treating naive values
as UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def parse_utc(value: str) -> datetime:
    """Parse an ISO-8601 string, assuming UTC when no offset is present."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def age_in_days(recorded: datetime, now: datetime) -> float:
    """Fractional days elapsed between ``recorded`` and ``now``."""
    return (to_utc(now) - to_utc(recorded)) / timedelta(days=1)
