"""
Badge System

Awards permanent badges when a user's stats cross a threshold:
- Consistency (workout counts, streaks)
- Milestones (total points, long sessions)
- Activity-specific (distance and session counts per type)
- Time of day (early bird, night owl)
- Social (friends, challenges joined)

Evaluation is a pure function of (profile, activity history). Badges the
profile already holds are skipped, so evaluating the same inputs again never
awards a badge twice.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
import logging

from fitplay.models.activity import Activity, ActivityType
from fitplay.models.catalog import Badge, BadgeRequirement, Rarity
from fitplay.models.profile import SocialStats, UserProfile
from fitplay.gamification.streak_system import activity_dates, longest_streak
from fitplay.utils.datetime_helpers import ZoneLike, local_hour

logger = logging.getLogger(__name__)

EARLY_WORKOUT_HOUR = 7   # strictly before 07:00
LATE_WORKOUT_HOUR = 22   # at or after 22:00


def _badge(id, name, description, icon, requirement_type, requirement_value,
           points, rarity, activity_type=None) -> Badge:
    return Badge(
        id=id,
        name=name,
        description=description,
        icon=icon,
        requirement_type=requirement_type,
        requirement_value=requirement_value,
        activity_type=activity_type,
        points=points,
        rarity=rarity,
    )


# ============================================
# Badge Catalog
# ============================================

BADGE_CATALOG: List[Badge] = [
    # Workout count
    _badge("beginner", "Beginner", "Complete your first workout", "🌱",
           BadgeRequirement.WORKOUT_COUNT, 1, 50, Rarity.COMMON),
    _badge("consistent", "Consistent", "Complete 5 workouts", "🌿",
           BadgeRequirement.WORKOUT_COUNT, 5, 100, Rarity.COMMON),
    _badge("dedicated", "Dedicated", "Complete 20 workouts", "🌳",
           BadgeRequirement.WORKOUT_COUNT, 20, 250, Rarity.UNCOMMON),
    _badge("warrior", "Warrior", "Complete 50 workouts", "⚔️",
           BadgeRequirement.WORKOUT_COUNT, 50, 500, Rarity.RARE),
    _badge("legendary", "Legendary", "Complete 100 workouts", "👑",
           BadgeRequirement.WORKOUT_COUNT, 100, 1000, Rarity.EPIC),

    # Points
    _badge("pointMaster", "Point Master", "Earn 5000 points", "⭐",
           BadgeRequirement.POINTS, 5000, 200, Rarity.RARE),
    _badge("superStar", "Super Star", "Earn 10000 points", "🌟",
           BadgeRequirement.POINTS, 10000, 500, Rarity.EPIC),
    _badge("champion", "Champion", "Earn 25000 points", "🏆",
           BadgeRequirement.POINTS, 25000, 1000, Rarity.LEGENDARY),

    # Streaks
    _badge("streakStarter", "Streak Starter", "Achieve a 3-day streak", "🔥",
           BadgeRequirement.STREAK, 3, 75, Rarity.COMMON),
    _badge("onFire", "On Fire", "Achieve a 7-day streak", "💥",
           BadgeRequirement.STREAK, 7, 150, Rarity.UNCOMMON),
    _badge("unstoppable", "Unstoppable", "Achieve a 30-day streak", "🚀",
           BadgeRequirement.STREAK, 30, 500, Rarity.RARE),
    _badge("streakMaster", "Streak Master", "Achieve a 100-day streak", "🌈",
           BadgeRequirement.STREAK, 100, 2000, Rarity.LEGENDARY),

    # Time of day
    _badge("earlyBird", "Early Bird", "Log a workout before 7 AM", "🌅",
           BadgeRequirement.EARLY_WORKOUT, 1, 50, Rarity.COMMON),
    _badge("nightOwl", "Night Owl", "Log a workout after 10 PM", "🦉",
           BadgeRequirement.LATE_WORKOUT, 1, 50, Rarity.COMMON),

    # Distance per activity type
    _badge("marathonRunner", "Marathon Runner", "Run 100 km total", "🏃",
           BadgeRequirement.DISTANCE, 100, 300, Rarity.RARE, ActivityType.RUNNING),
    _badge("cyclist", "Cyclist", "Cycle 200 km total", "🚴",
           BadgeRequirement.DISTANCE, 200, 300, Rarity.RARE, ActivityType.CYCLING),
    _badge("swimmer", "Swimmer", "Swim 50 km total", "🏊",
           BadgeRequirement.DISTANCE, 50, 300, Rarity.RARE, ActivityType.SWIMMING),

    # Session counts per activity type
    _badge("yogi", "Yogi", "Complete 25 yoga sessions", "🧘",
           BadgeRequirement.ACTIVITY_COUNT, 25, 200, Rarity.UNCOMMON, ActivityType.YOGA),
    _badge("weightLifter", "Weight Lifter", "Complete 50 strength workouts", "🏋️",
           BadgeRequirement.ACTIVITY_COUNT, 50, 300, Rarity.RARE, ActivityType.STRENGTH),
    _badge("cardioKing", "Cardio King", "Complete 50 cardio sessions", "❤️",
           BadgeRequirement.ACTIVITY_COUNT, 50, 300, Rarity.RARE, ActivityType.CARDIO),

    # Social
    _badge("socialButterfly", "Social Butterfly", "Add 5 friends", "🦋",
           BadgeRequirement.FRIENDS, 5, 100, Rarity.UNCOMMON),
    _badge("competitor", "Competitor", "Join 3 challenges", "🎯",
           BadgeRequirement.CHALLENGES, 3, 150, Rarity.UNCOMMON),

    # Single session duration
    _badge("hourWarrior", "Hour Warrior", "Exercise for 60 minutes in one session", "⏱️",
           BadgeRequirement.SINGLE_DURATION, 60, 100, Rarity.UNCOMMON),
    _badge("ironMan", "Iron Man", "Exercise for 120 minutes in one session", "🦾",
           BadgeRequirement.SINGLE_DURATION, 120, 250, Rarity.RARE),

    # Long runs of active days
    _badge("weekWarrior", "Week Warrior", "Work out every day for a week", "📅",
           BadgeRequirement.WEEKLY_STREAK, 7, 200, Rarity.UNCOMMON),
    _badge("monthMaster", "Month Master", "Work out every day for a month", "🗓️",
           BadgeRequirement.MONTHLY_STREAK, 30, 1000, Rarity.EPIC),
]

RARITY_COLORS: Dict[Rarity, str] = {
    Rarity.COMMON: "#808080",
    Rarity.UNCOMMON: "#4CAF50",
    Rarity.RARE: "#2196F3",
    Rarity.EPIC: "#9C27B0",
    Rarity.LEGENDARY: "#FFD700",
}


@dataclass(frozen=True)
class BadgeStats:
    """Aggregates a badge threshold can be compared against"""
    workout_count: int
    total_points: int
    streak: int
    longest_streak: int
    friend_count: int
    challenges_joined: int
    activities: Sequence[Activity]
    early_workouts: int
    late_workouts: int


def collect_stats(
    profile: UserProfile,
    activity_history: Iterable[Activity],
    tz: ZoneLike = None,
    social: Optional[SocialStats] = None
) -> BadgeStats:
    """
    Build the aggregates used by badge rules

    Empty history yields zero aggregates.
    """
    activities = list(activity_history)
    social = social or SocialStats()
    hours = [local_hour(a.created_at, tz) for a in activities]

    return BadgeStats(
        workout_count=profile.workout_count,
        total_points=profile.total_points,
        streak=profile.streak,
        longest_streak=longest_streak(activity_dates(activities, tz)),
        friend_count=social.friend_count,
        challenges_joined=social.challenges_joined,
        activities=activities,
        early_workouts=sum(1 for h in hours if h < EARLY_WORKOUT_HOUR),
        late_workouts=sum(1 for h in hours if h >= LATE_WORKOUT_HOUR),
    )


# ============================================
# Requirement Measures
# ============================================

def _matching(stats: BadgeStats, badge: Badge) -> List[Activity]:
    if badge.activity_type is None:
        return list(stats.activities)
    return [a for a in stats.activities if a.type == badge.activity_type]


def _activity_count(stats: BadgeStats, badge: Badge) -> float:
    return len(_matching(stats, badge))


def _distance(stats: BadgeStats, badge: Badge) -> float:
    return sum(a.distance_km for a in _matching(stats, badge))


def _single_duration(stats: BadgeStats, badge: Badge) -> float:
    return max((a.duration_minutes for a in stats.activities), default=0)


MEASURES: Dict[BadgeRequirement, Callable[[BadgeStats, Badge], float]] = {
    BadgeRequirement.WORKOUT_COUNT: lambda s, b: s.workout_count,
    BadgeRequirement.POINTS: lambda s, b: s.total_points,
    BadgeRequirement.STREAK: lambda s, b: s.streak,
    BadgeRequirement.ACTIVITY_COUNT: _activity_count,
    BadgeRequirement.DISTANCE: _distance,
    BadgeRequirement.SINGLE_DURATION: _single_duration,
    BadgeRequirement.EARLY_WORKOUT: lambda s, b: s.early_workouts,
    BadgeRequirement.LATE_WORKOUT: lambda s, b: s.late_workouts,
    BadgeRequirement.WEEKLY_STREAK: lambda s, b: s.longest_streak,
    BadgeRequirement.MONTHLY_STREAK: lambda s, b: s.longest_streak,
    BadgeRequirement.FRIENDS: lambda s, b: s.friend_count,
    BadgeRequirement.CHALLENGES: lambda s, b: s.challenges_joined,
}


def measure(badge: Badge, stats: BadgeStats) -> float:
    """Current value of the statistic a badge is measured on"""
    return MEASURES[badge.requirement_type](stats, badge)


def is_earned(badge: Badge, stats: BadgeStats) -> bool:
    """Whether the badge threshold is met"""
    if badge.requirement_type in (BadgeRequirement.EARLY_WORKOUT, BadgeRequirement.LATE_WORKOUT):
        # At least one qualifying session, whatever the stored value
        return measure(badge, stats) >= max(badge.requirement_value, 1)
    return measure(badge, stats) >= badge.requirement_value


# ============================================
# Evaluation
# ============================================

def evaluate(
    profile: UserProfile,
    activity_history: Iterable[Activity],
    tz: ZoneLike = None,
    social: Optional[SocialStats] = None,
    catalog: Optional[Sequence[Badge]] = None
) -> List[Badge]:
    """
    Determine newly earned badges

    Args:
        profile: Current profile snapshot (badges already held are skipped)
        activity_history: The user's activities
        tz: Zone for time-of-day and calendar rules
        social: Friend / challenge counts for social badges
        catalog: Badge definitions (defaults to BADGE_CATALOG)

    Returns:
        Newly earned badges in catalog order
    """
    catalog = BADGE_CATALOG if catalog is None else catalog
    held = set(profile.badges)
    stats = collect_stats(profile, activity_history, tz, social)

    newly_earned = []
    for badge in catalog:
        if badge.id in held:
            continue
        if is_earned(badge, stats):
            newly_earned.append(badge)
            logger.info(f"User {profile.id} earned badge: {badge.id} ({badge.name})")

    return newly_earned


def award_badges(profile: UserProfile, badges: Iterable[Badge]) -> UserProfile:
    """Copy of the profile with badge ids appended (existing ids kept)"""
    new_ids = [b.id for b in badges if b.id not in profile.badges]
    if not new_ids:
        return profile
    return profile.model_copy(update={"badges": [*profile.badges, *new_ids]})


def get_badge(badge_id: str, catalog: Optional[Sequence[Badge]] = None) -> Optional[Badge]:
    """Badge definition by id, or None"""
    catalog = BADGE_CATALOG if catalog is None else catalog
    for badge in catalog:
        if badge.id == badge_id:
            return badge
    return None


def badge_progress(
    badge: Badge,
    profile: UserProfile,
    activity_history: Iterable[Activity],
    tz: ZoneLike = None,
    social: Optional[SocialStats] = None
) -> Dict[str, Any]:
    """
    Progress toward a badge

    Returns:
        {
            'current': float,
            'required': float,
            'percentage': int (0-100),
            'earned': bool
        }
    """
    stats = collect_stats(profile, activity_history, tz, social)
    current = measure(badge, stats)
    required = badge.requirement_value
    if badge.requirement_type in (BadgeRequirement.EARLY_WORKOUT, BadgeRequirement.LATE_WORKOUT):
        required = max(required, 1)

    percentage = min(100, round(current / required * 100)) if required > 0 else 100

    return {
        "current": current,
        "required": required,
        "percentage": percentage,
        "earned": badge.id in profile.badges or is_earned(badge, stats),
    }
