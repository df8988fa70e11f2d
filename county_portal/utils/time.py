from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Treat naive datetimes as UTC.

    SQLite hands timestamps back without tzinfo even for DateTime(timezone=True)
    columns, so values read from the database are normalized here before any
    arithmetic against utc_now().
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
