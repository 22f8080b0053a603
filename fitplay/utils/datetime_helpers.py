"""
Calendar Helpers

Gamification rules count calendar days and hours of the day, never raw
instants. Every timestamp is converted into one fixed zone before its date
or hour is read.

RULES:
- Aware datetimes are converted to the rule zone
- Naive datetimes are taken as already local
- "today" always comes from the caller
"""

import logging
from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fitplay.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

ZoneLike = Union[str, ZoneInfo, None]


def get_zone(tz: ZoneLike = None) -> ZoneInfo:
    """
    Resolve a zone name or ZoneInfo, falling back to DEFAULT_TIMEZONE

    Args:
        tz: IANA name (e.g. "Europe/Stockholm"), ZoneInfo, or None

    Returns:
        ZoneInfo object
    """
    if isinstance(tz, ZoneInfo):
        return tz

    name = tz or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{name}': {e}")
        return ZoneInfo("UTC")


def to_local(dt: datetime, tz: ZoneLike = None) -> datetime:
    """Convert an aware datetime into the rule zone; naive values pass through"""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(get_zone(tz))


def as_aware(dt: datetime, tz: ZoneLike = None) -> datetime:
    """Aware datetime in the rule zone; naive values are taken as local and get the zone attached"""
    zone = get_zone(tz)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=zone)
    return dt.astimezone(zone)


def local_date(value: Union[datetime, date], tz: ZoneLike = None) -> date:
    """Calendar date of a timestamp in the rule zone"""
    if isinstance(value, datetime):
        return to_local(value, tz).date()
    return value


def local_hour(dt: datetime, tz: ZoneLike = None) -> int:
    """Hour of day (0-23) of a timestamp in the rule zone"""
    return to_local(dt, tz).hour


def is_within(day: date, start: Optional[date], end: Optional[date]) -> bool:
    """Inclusive window check; open ends are unbounded"""
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True
