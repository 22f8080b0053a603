"""
Challenge System

Time-boxed competitions between users. Each challenge scores participants
on one metric over its date window:

- distance: km covered (optionally one activity type only)
- calories: calories burned
- duration: minutes exercised
- variety: distinct activity types tried
- streak: longest run of consecutive active days inside the window
- early_workouts: sessions started before 7 AM

Progress is recomputed from the participant's activities on every query and
standings are re-ranked every time; neither is maintained incrementally.
"""

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
from uuid import uuid4

from fitplay.exceptions import NotFoundError, Result, ValidationError
from fitplay.models.activity import Activity, ActivityType
from fitplay.models.catalog import (
    Challenge,
    ChallengeGoal,
    ChallengeParticipant,
    ChallengeTemplate,
)
from fitplay.gamification.badge_system import EARLY_WORKOUT_HOUR
from fitplay.gamification.leaderboard import RankedEntry, rank_by
from fitplay.gamification.streak_system import activity_dates, longest_streak
from fitplay.utils.datetime_helpers import ZoneLike, is_within, local_date, local_hour

logger = logging.getLogger(__name__)


class ChallengeStatus(Enum):
    """Where today falls relative to the challenge window"""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"


# ============================================
# Challenge Templates
# ============================================

CHALLENGE_TEMPLATES: List[ChallengeTemplate] = [
    ChallengeTemplate(
        id="weekly_runner",
        title="Weekly Runner",
        description="Run the most distance this week",
        goal_type=ChallengeGoal.DISTANCE,
        goal_value=20,  # km
        duration_days=7,
        activity_type=ActivityType.RUNNING,
        icon="🏃",
    ),
    ChallengeTemplate(
        id="streak_warrior",
        title="Streak Warrior",
        description="Maintain the longest workout streak",
        goal_type=ChallengeGoal.STREAK,
        goal_value=14,  # consecutive days
        duration_days=14,
        icon="🔥",
    ),
    ChallengeTemplate(
        id="calorie_burner",
        title="Calorie Burner",
        description="Burn the most calories",
        goal_type=ChallengeGoal.CALORIES,
        goal_value=3000,
        duration_days=7,
        icon="🔥",
    ),
    ChallengeTemplate(
        id="variety_challenge",
        title="Variety Champion",
        description="Try different workout types",
        goal_type=ChallengeGoal.VARIETY,
        goal_value=5,  # distinct activity types
        duration_days=7,
        icon="🌟",
    ),
    ChallengeTemplate(
        id="early_bird",
        title="Early Bird",
        description="Complete workouts before 7 AM",
        goal_type=ChallengeGoal.EARLY_WORKOUTS,
        goal_value=5,
        duration_days=7,
        icon="🌅",
    ),
    ChallengeTemplate(
        id="endurance_master",
        title="Endurance Master",
        description="Accumulate total workout time",
        goal_type=ChallengeGoal.DURATION,
        goal_value=600,  # minutes
        duration_days=30,
        icon="⏱️",
    ),
]


def get_challenge_templates(
    templates: Optional[Sequence[ChallengeTemplate]] = None
) -> List[ChallengeTemplate]:
    """All challenge templates"""
    return list(CHALLENGE_TEMPLATES if templates is None else templates)


def get_template_by_id(
    template_id: str,
    templates: Optional[Sequence[ChallengeTemplate]] = None
) -> Optional[ChallengeTemplate]:
    """
    Get a template by ID

    Returns:
        ChallengeTemplate if found, None otherwise
    """
    for template in get_challenge_templates(templates):
        if template.id == template_id:
            return template
    return None


# ============================================
# Challenge Creation
# ============================================

def create_challenge(
    title: str,
    goal_type: Union[ChallengeGoal, str],
    goal_value: float,
    duration_days: int,
    start_date: date,
    creator_id: Optional[str] = None,
    description: str = "",
    activity_type: Optional[Union[ActivityType, str]] = None,
    icon: str = "🏆",
    challenge_id: Optional[str] = None
) -> Result[Challenge]:
    """
    Create a challenge starting on start_date

    The window is inclusive: a 7-day challenge starting Monday ends Sunday.

    Returns:
        Result with the Challenge, or a ValidationError
    """
    try:
        goal = ChallengeGoal(goal_type)
    except ValueError:
        return Result.failure(ValidationError(
            message=f"Unknown challenge goal '{goal_type}'",
            field="goal_type",
            value=goal_type,
            user_id=creator_id,
            operation="create_challenge"
        ))

    if goal_value <= 0:
        return Result.failure(ValidationError(
            message="Goal must be positive",
            field="goal_value",
            value=goal_value,
            user_id=creator_id,
            operation="create_challenge"
        ))

    if duration_days <= 0:
        return Result.failure(ValidationError(
            message="Duration must be at least one day",
            field="duration_days",
            value=duration_days,
            user_id=creator_id,
            operation="create_challenge"
        ))

    try:
        kind = ActivityType(activity_type) if activity_type is not None else None
    except ValueError:
        return Result.failure(ValidationError(
            message=f"Unknown activity type '{activity_type}'",
            field="activity_type",
            value=activity_type,
            user_id=creator_id,
            operation="create_challenge"
        ))

    challenge = Challenge(
        id=challenge_id or str(uuid4()),
        title=title,
        description=description,
        goal_type=goal,
        goal_value=goal_value,
        duration_days=duration_days,
        start_date=start_date,
        end_date=start_date + timedelta(days=duration_days - 1),
        activity_type=kind,
        creator_id=creator_id,
        icon=icon,
    )

    logger.info(
        f"Challenge '{challenge.title}' created by {creator_id}: "
        f"{challenge.start_date.isoformat()} to {challenge.end_date.isoformat()}"
    )
    return Result.success(challenge)


def create_challenge_from_template(
    template_id: str,
    creator_id: Optional[str],
    start_date: date,
    templates: Optional[Sequence[ChallengeTemplate]] = None
) -> Result[Challenge]:
    """
    Create a challenge from a template

    Returns:
        Result with the Challenge, or NotFoundError for an unknown template
    """
    template = get_template_by_id(template_id, templates)
    if template is None:
        return Result.failure(NotFoundError(
            message=f"Challenge template '{template_id}' not found",
            record_type="Challenge template",
            record_id=template_id,
            user_id=creator_id,
            operation="create_challenge_from_template"
        ))

    return create_challenge(
        title=template.title,
        goal_type=template.goal_type,
        goal_value=template.goal_value,
        duration_days=template.duration_days,
        start_date=start_date,
        creator_id=creator_id,
        description=template.description,
        activity_type=template.activity_type,
        icon=template.icon,
    )


def challenge_status(challenge: Challenge, today: date) -> ChallengeStatus:
    """Whether the challenge has started, is running, or is over"""
    if today < challenge.start_date:
        return ChallengeStatus.UPCOMING
    if today > challenge.end_date:
        return ChallengeStatus.ENDED
    return ChallengeStatus.ACTIVE


def days_remaining(challenge: Challenge, today: date) -> int:
    """Days left including today (0 once ended)"""
    if today > challenge.end_date:
        return 0
    start = max(today, challenge.start_date)
    return (challenge.end_date - start).days + 1


# ============================================
# Progress
# ============================================

def activities_in_window(
    challenge: Challenge,
    activities: Iterable[Activity],
    tz: ZoneLike = None
) -> List[Activity]:
    """Activities whose local date falls inside the challenge window"""
    return [
        a for a in activities
        if is_within(local_date(a.created_at, tz), challenge.start_date, challenge.end_date)
    ]


def compute_progress(
    goal_type: Union[ChallengeGoal, str],
    activities: Iterable[Activity],
    activity_type: Optional[ActivityType] = None,
    tz: ZoneLike = None,
    window: Optional[tuple] = None
) -> float:
    """
    A participant's progress on one challenge metric

    The activity type filter applies to every metric except variety.

    Args:
        goal_type: Challenge metric
        activities: Participant's activities inside the window
        activity_type: Optional activity type filter
        tz: Zone for calendar and time-of-day rules
        window: Optional (start, end) bound for the streak metric

    Returns:
        Progress value (0 for no activities)
    """
    goal = ChallengeGoal(goal_type)
    activities = list(activities)

    if goal == ChallengeGoal.VARIETY:
        return float(len({a.type for a in activities}))

    if activity_type is not None:
        activities = [a for a in activities if a.type == activity_type]

    if goal == ChallengeGoal.DISTANCE:
        return float(sum(a.distance_km for a in activities))

    if goal == ChallengeGoal.CALORIES:
        return float(sum(a.calories_burned for a in activities))

    if goal == ChallengeGoal.DURATION:
        return float(sum(a.duration_minutes for a in activities))

    if goal == ChallengeGoal.STREAK:
        start, end = window if window else (None, None)
        return float(longest_streak(activity_dates(activities, tz), start, end))

    if goal == ChallengeGoal.EARLY_WORKOUTS:
        return float(sum(1 for a in activities if local_hour(a.created_at, tz) < EARLY_WORKOUT_HOUR))

    return 0.0


def challenge_progress(
    challenge: Challenge,
    activities: Iterable[Activity],
    tz: ZoneLike = None
) -> float:
    """compute_progress for a challenge over the participant's full history"""
    return compute_progress(
        challenge.goal_type,
        activities_in_window(challenge, activities, tz),
        activity_type=challenge.activity_type,
        tz=tz,
        window=(challenge.start_date, challenge.end_date),
    )


# ============================================
# Standings
# ============================================

def rank(participants: Iterable[Mapping[str, Any]]) -> List[RankedEntry]:
    """
    Rank participants by progress, highest first

    Args:
        participants: Mappings with 'user_id' and 'progress'

    Returns:
        Ranked entries; ties share a rank and the next rank skips the tie group
    """
    rows = [dict(p) for p in participants]
    return [
        RankedEntry(rank=r, user_id=str(row["user_id"]), score=row.get("progress", 0), data=row)
        for r, row in rank_by(rows, lambda row: row.get("progress", 0))
    ]


def challenge_standings(
    challenge: Challenge,
    activities_by_user: Mapping[str, Iterable[Activity]],
    names: Optional[Mapping[str, str]] = None,
    tz: ZoneLike = None
) -> List[ChallengeParticipant]:
    """
    Current standings for every participant

    Args:
        challenge: The challenge
        activities_by_user: Each participant's activities (any date range)
        names: Optional display names by user ID
        tz: Zone for calendar and time-of-day rules

    Returns:
        Participants with progress, completion flag and rank, best first
    """
    names = names or {}
    rows = [
        {"user_id": user_id, "progress": challenge_progress(challenge, activities, tz)}
        for user_id, activities in activities_by_user.items()
    ]

    standings = [
        ChallengeParticipant(
            challenge_id=challenge.id,
            user_id=entry.user_id,
            display_name=names.get(entry.user_id, "Unknown"),
            progress=entry.score,
            completed=entry.score >= challenge.goal_value,
            rank=entry.rank,
        )
        for entry in rank(rows)
    ]

    logger.debug(f"Standings for challenge {challenge.id}: {len(standings)} participants")
    return standings


def progress_percentage(progress: float, goal_value: float) -> int:
    """Progress as 0-100 percent of the goal"""
    if goal_value <= 0:
        return 100
    return min(int(progress / goal_value * 100), 100)


def format_challenge_progress(participant: ChallengeParticipant, challenge: Challenge) -> str:
    """
    Progress line for display

    Returns:
        e.g. "🏃 Weekly Runner: ▓▓▓▓▓░░░░░░░░░░░░░░░ 25% (5/20) #2"
    """
    pct = progress_percentage(participant.progress, challenge.goal_value)
    bar_length = pct // 5  # 20 chars total
    bar = "▓" * bar_length + "░" * (20 - bar_length)

    current = f"{participant.progress:g}"
    goal = f"{challenge.goal_value:g}"
    status = " ✅" if participant.completed else ""

    return f"{challenge.icon} {challenge.title}: {bar} {pct}% ({current}/{goal}) #{participant.rank}{status}"
