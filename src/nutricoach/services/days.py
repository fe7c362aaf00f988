"""Calendar day helpers."""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def day_bounds(day: date, timezone_name: str) -> tuple[datetime, datetime]:
    """Return the UTC half-open range [start, end) covering a local day."""
    tz = ZoneInfo(timezone_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def local_day(moment: datetime, timezone_name: str) -> date:
    """Return the calendar date of a moment in the given timezone."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(ZoneInfo(timezone_name)).date()


def is_valid_timezone(value: str) -> bool:
    """Return True when the value names an IANA timezone."""
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True
