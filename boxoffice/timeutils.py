"""UTC helpers shared by the models and services.

Stored datetimes are UTC. SQLite hands them back naive, so anything read
from the database goes through ``as_utc`` before comparison. Naive datetimes
received from API callers are venue-local and are converted with ``to_utc``.
"""
from datetime import datetime, timezone
from typing import Optional

import pytz

from boxoffice.config import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive datetime read back from storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Convert caller input to UTC, reading naive values in the venue timezone."""
    if value.tzinfo is None:
        tz = pytz.timezone(settings.VENUE_TIMEZONE)
        value = tz.localize(value)
    return value.astimezone(timezone.utc)


def start_of_year_utc(reference: Optional[datetime] = None) -> datetime:
    reference = reference or now_utc()
    return datetime(reference.year, 1, 1, tzinfo=timezone.utc)
