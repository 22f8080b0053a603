"""
Level System

Maps cumulative points to one of five level tiers.

Levels (inclusive lower bound):
- Level 1 Beginner: 0 points
- Level 2 Amateur: 500 points
- Level 3 Athlete: 1500 points
- Level 4 Champion: 3000 points
- Level 5 Legend: 5000 points (open-ended)

Every function here is pure. Levels are always derived from points and
never stored independently.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelInfo:
    """One level tier"""
    level: int
    name: str
    min_points: int
    max_points: Optional[int]  # None = no upper bound


LEVELS: List[LevelInfo] = [
    LevelInfo(level=1, name="Beginner", min_points=0, max_points=499),
    LevelInfo(level=2, name="Amateur", min_points=500, max_points=1499),
    LevelInfo(level=3, name="Athlete", min_points=1500, max_points=2999),
    LevelInfo(level=4, name="Champion", min_points=3000, max_points=4999),
    LevelInfo(level=5, name="Legend", min_points=5000, max_points=None),
]

MAX_LEVEL = LEVELS[-1].level


def level_of(total_points: int) -> LevelInfo:
    """
    Get the level tier for a point total

    Negative totals are treated as 0 (level 1).

    Args:
        total_points: Cumulative points

    Returns:
        LevelInfo for the highest tier whose min_points <= total_points
    """
    for info in reversed(LEVELS):
        if total_points >= info.min_points:
            return info
    return LEVELS[0]


def next_level(total_points: int) -> Optional[LevelInfo]:
    """Tier after the current one, or None at max level"""
    current = level_of(total_points)
    if current.level == MAX_LEVEL:
        return None
    return LEVELS[current.level]


def progress_to_next_level(total_points: int) -> float:
    """
    Percentage (0-100) of the way from the current level to the next

    Returns 100 at max level.
    """
    current = level_of(total_points)
    upcoming = next_level(total_points)
    if upcoming is None:
        return 100.0

    points = max(total_points, 0)
    span = upcoming.min_points - current.min_points
    progress = (points - current.min_points) / span * 100
    return min(progress, 100.0)


def level_progress(total_points: int) -> Dict[str, Any]:
    """
    Level details for progress displays

    Returns:
        {
            'current': LevelInfo,
            'next_min_points': int or None,
            'points_to_next_level': int,
            'progress': float (0-100)
        }
    """
    current = level_of(total_points)
    upcoming = next_level(total_points)

    if upcoming is None:
        return {
            "current": current,
            "next_min_points": None,
            "points_to_next_level": 0,
            "progress": 100.0,
        }

    return {
        "current": current,
        "next_min_points": upcoming.min_points,
        "points_to_next_level": upcoming.min_points - max(total_points, 0),
        "progress": progress_to_next_level(total_points),
    }


def describe_level_change(old_points: int, new_points: int) -> Dict[str, Any]:
    """
    Compare levels before and after a points change

    Returns:
        {
            'old_level': LevelInfo,
            'new_level': LevelInfo,
            'leveled_up': bool
        }
    """
    old_level = level_of(old_points)
    new_level = level_of(new_points)
    leveled_up = new_level.level > old_level.level

    if leveled_up:
        logger.info(
            f"Level up: {old_level.name} ({old_level.level}) -> "
            f"{new_level.name} ({new_level.level}) at {new_points} points"
        )

    return {
        "old_level": old_level,
        "new_level": new_level,
        "leveled_up": leveled_up,
    }
