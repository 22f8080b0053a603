"""
Streak Tracking System

A streak is the number of consecutive calendar days with at least one
activity, counted backward from today. It is always recomputed from the
full set of activity dates and never incremented in place.

Policies:
- require_today=True (default): no activity today means streak 0
- require_today=False: an activity yesterday keeps the streak alive until
  today ends

Dates are local calendar dates in one fixed zone; raw instants are never
compared.
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional, Set
import logging

from fitplay.config import STREAK_REQUIRES_TODAY
from fitplay.models.activity import Activity
from fitplay.utils.datetime_helpers import ZoneLike, is_within, local_date

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (3, 7, 14, 30, 100)


def activity_dates(activities: Iterable[Activity], tz: ZoneLike = None) -> Set[date]:
    """
    Unique local calendar dates on which activities happened

    Args:
        activities: Activity records
        tz: Zone for converting aware timestamps

    Returns:
        Set of dates
    """
    return {local_date(a.created_at, tz) for a in activities}


def compute_streak(
    dates: Iterable[date],
    today: date,
    require_today: Optional[bool] = None
) -> int:
    """
    Count consecutive active days ending today

    Logic:
    - Start at today (or yesterday when today is empty and
      require_today is False)
    - Walk backward one day at a time while the day is active
    - Stop at the first gap

    Args:
        dates: Calendar dates with at least one activity
        today: Caller's local date
        require_today: Override STREAK_REQUIRES_TODAY

    Returns:
        Streak length in days (0 if none)
    """
    if require_today is None:
        require_today = STREAK_REQUIRES_TODAY

    active = set(dates)
    if not active:
        return 0

    cursor = today
    if cursor not in active:
        if require_today:
            return 0
        cursor = today - timedelta(days=1)

    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)

    logger.debug(f"Streak as of {today.isoformat()}: {streak} days")
    return streak


def compute_streak_from_activities(
    activities: Iterable[Activity],
    today: date,
    tz: ZoneLike = None,
    require_today: Optional[bool] = None
) -> int:
    """compute_streak over activity records"""
    return compute_streak(activity_dates(activities, tz), today, require_today)


def longest_streak(
    dates: Iterable[date],
    start: Optional[date] = None,
    end: Optional[date] = None
) -> int:
    """
    Longest run of consecutive active days, optionally inside [start, end]

    Args:
        dates: Active calendar dates
        start: First day of the window (inclusive)
        end: Last day of the window (inclusive)

    Returns:
        Length of the longest run (0 for no dates)
    """
    ordered: List[date] = sorted(d for d in set(dates) if is_within(d, start, end))

    best = 0
    run = 0
    previous: Optional[date] = None
    for day in ordered:
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day

    return best


def milestone_reached(old_streak: int, new_streak: int) -> Optional[int]:
    """Highest milestone crossed by going from old_streak to new_streak"""
    crossed = [m for m in STREAK_MILESTONES if old_streak < m <= new_streak]
    return crossed[-1] if crossed else None


def streak_message(streak: int) -> str:
    """Motivational message for the current streak"""
    if streak <= 0:
        return "Every step counts! Keep going! 💪"
    if streak < 3:
        return "You're doing amazing! Stay strong! 🔥"
    if streak < 7:
        return "Consistency is key! Great job! ⭐"
    if streak < 14:
        return "Your dedication is inspiring! 🌟"
    return "You're unstoppable! Keep pushing! 🏆"
