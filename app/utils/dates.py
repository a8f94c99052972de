# app/utils/dates.py
"""
Date helpers; every timestamp in the service is timezone-aware UTC
"""

from datetime import datetime, date, time, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes coming back from the database"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def combine_utc(day: date, at: Optional[time] = None) -> datetime:
    return datetime.combine(day, at or time.min, tzinfo=timezone.utc)
