"""UTC-everywhere time handling, plus the billing-calendar conversions.

Timestamps are UTC internally. Billing periods are calendar dates in the
billing timezone, so "today" is always derived from a UTC instant at the
boundary.
"""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert UTC datetime to a local timezone.

    Args:
        dt: Timezone-aware datetime
        tz_name: IANA timezone name (e.g., "Europe/Berlin")

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )
    return dt.astimezone(_zone(tz_name))


def local_date(dt: datetime, tz_name: str) -> date:
    """Calendar date of an instant as seen in tz_name."""
    return to_local(dt, tz_name).date()


def local_datetime(day: date, at: time, tz_name: str) -> datetime:
    """Aware datetime for a wall-clock time on a calendar day in tz_name."""
    return datetime.combine(day, at, tzinfo=_zone(tz_name))
