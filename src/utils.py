"""Shared clock and timestamp helpers used across the scheduler."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

MINUTES_PER_DAY = 24 * 60


def get_timezone(name: str) -> ZoneInfo:
    """Look up an IANA timezone, raising ValueError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {name!r}") from None


def as_date(value: date) -> date:
    """Drop the time of day from a datetime; plain dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def format_hhmm(minutes: int) -> str:
    """Format minutes from midnight as 'HH:mm' (1440 renders as '24:00')."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for one day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def wall_minutes(moment: datetime, day: date, tz: ZoneInfo) -> int:
    """Wall-clock minutes of ``moment`` on ``day`` in ``tz``, clipped to [0, 1440]."""
    local = moment.astimezone(tz)
    if local.date() < day:
        return 0
    if local.date() > day:
        return MINUTES_PER_DAY
    return local.hour * 60 + local.minute


def to_datetime(day: date, minutes: int, tz: ZoneInfo) -> datetime:
    """Resolve a wall-clock minute offset on ``day`` to an aware datetime."""
    return datetime.combine(day, time(0), tzinfo=tz) + timedelta(minutes=minutes)


def to_timestamp(day: date, minutes: int, tz: ZoneInfo) -> int:
    """Resolve a wall-clock minute offset on ``day`` to unix seconds."""
    return int(to_datetime(day, minutes, tz).timestamp())


def from_timestamp(timestamp: int, tz: ZoneInfo) -> datetime:
    """Convert unix seconds to an aware datetime in ``tz``."""
    return datetime.fromtimestamp(timestamp, tz)


def today_in(tz: ZoneInfo) -> date:
    """Current calendar date in ``tz``."""
    return datetime.now(tz).date()
