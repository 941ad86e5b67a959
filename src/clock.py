"""Facility-time helpers.

The engine assumes one facility and one timezone. Stored and compared
datetimes are naive and expressed in that timezone.
"""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from src.config import settings


def facility_now() -> datetime:
    """Current wall-clock time at the facility (naive)."""
    tz = ZoneInfo(settings.facility_timezone)
    return datetime.now(tz).replace(tzinfo=None, microsecond=0)


def to_facility_time(value: datetime) -> datetime:
    """Normalize a datetime to naive facility time.

    Aware datetimes are converted; naive ones are taken as facility time.
    """
    if value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(settings.facility_timezone))
    return value.replace(tzinfo=None)


def to_db(value: datetime) -> str:
    """Serialize a facility datetime for storage and string comparison."""
    return to_facility_time(value).isoformat(timespec="seconds")


def from_db(value: str | None) -> datetime | None:
    """Parse a stored datetime."""
    return datetime.fromisoformat(value) if value else None


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [midnight, next midnight) for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def days_between(start: datetime, end: datetime) -> list[date]:
    """Calendar days touched by the half-open interval [start, end)."""
    last = (end - timedelta(microseconds=1)).date()
    days = []
    current = start.date()
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days
