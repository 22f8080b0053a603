"""
Daily Quest System

Quests are catalog entries that reset at the user's local midnight. Each
(user, quest, day) moves from not-started to completed exactly once; there
is no partial credit.

Completion flow:
1. Look up the quest
2. Reject a second completion on the same day
3. Validate duration and activity type
4. Award points (fixed quest reward, or per-minute under the duration policy)
5. Recompute level and evaluate badges on the updated snapshot

complete_quest never mutates its input and never reads the clock; "today"
comes from the caller. The returned profile is the full snapshot to write
back atomically.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
import logging

from fitplay.config import QUEST_POINTS_POLICY
from fitplay.exceptions import (
    DuplicateCompletionError,
    NotFoundError,
    Result,
    ValidationError,
)
from fitplay.models.activity import Activity, ActivityType
from fitplay.models.catalog import Badge, Quest
from fitplay.models.profile import CompletedQuest, SocialStats, UserProfile
from fitplay.gamification.activity_points import compute_points
from fitplay.gamification.badge_system import award_badges, evaluate
from fitplay.gamification.level_system import LevelInfo, describe_level_change
from fitplay.utils.datetime_helpers import ZoneLike

logger = logging.getLogger(__name__)


class QuestPointsPolicy(str, Enum):
    """How many points a completed quest is worth"""
    FIXED = "fixed"        # the quest's catalog points
    DURATION = "duration"  # one point per minute actually done


# ============================================
# Daily Quest Catalog
# ============================================

DAILY_QUESTS: List[Quest] = [
    Quest(
        id=1,
        title="Morning Jumpstart",
        description="Complete a 15-minute workout",
        points=40,
        required_duration_minutes=15,
        required_activity_type=None,  # Any activity type
        icon="🌅",
    ),
    Quest(
        id=2,
        title="Cardio Champion",
        description="Complete 30 minutes of cardio",
        points=60,
        required_duration_minutes=30,
        required_activity_type=ActivityType.CARDIO,
        icon="💪",
    ),
    Quest(
        id=3,
        title="Strength Seeker",
        description="Complete a 20-minute strength workout",
        points=50,
        required_duration_minutes=20,
        required_activity_type=ActivityType.STRENGTH,
        icon="🏋️",
    ),
    Quest(
        id=4,
        title="Zen Master",
        description="Complete a 25-minute yoga session",
        points=45,
        required_duration_minutes=25,
        required_activity_type=ActivityType.YOGA,
        icon="🧘",
    ),
    Quest(
        id=5,
        title="Endurance Elite",
        description="Complete 45 minutes of any activity",
        points=75,
        required_duration_minutes=45,
        required_activity_type=None,
        icon="🏆",
    ),
]


@dataclass(frozen=True)
class QuestCompletion:
    """Outcome of a successful quest completion"""
    quest: Quest
    points_earned: int
    new_total_points: int
    new_level: LevelInfo
    leveled_up: bool
    new_badges: List[Badge] = field(default_factory=list)
    profile: Optional[UserProfile] = None


def list_daily_quests(quests: Optional[Sequence[Quest]] = None) -> List[Quest]:
    """
    Get today's quests

    Returns:
        Copy of the quest catalog (same every day)
    """
    return list(DAILY_QUESTS if quests is None else quests)


def get_quest(quest_id: int, quests: Optional[Sequence[Quest]] = None) -> Optional[Quest]:
    """
    Get a quest by ID

    Returns:
        Quest if found, None otherwise
    """
    for quest in list_daily_quests(quests):
        if quest.id == quest_id:
            return quest
    return None


def is_completed(profile: UserProfile, quest_id: int, day: date) -> bool:
    """Whether the quest is already completed on that day"""
    return any(
        c.quest_id == quest_id and c.date == day
        for c in profile.completed_quests
    )


def get_quest_status(profile: UserProfile, today: date) -> Dict[str, Any]:
    """
    Today's quest progress

    Returns:
        {
            'completed_quest_ids': [int],
            'points_earned_today': int,
            'total_points': int
        }
    """
    todays = [c for c in profile.completed_quests if c.date == today]
    return {
        "completed_quest_ids": [c.quest_id for c in todays],
        "points_earned_today": sum(c.points for c in todays),
        "total_points": profile.total_points,
    }


def quest_points(
    quest: Quest,
    actual_duration_minutes: int,
    policy: Union[QuestPointsPolicy, str, None] = None
) -> int:
    """Points a completion is worth under the given policy"""
    policy = QuestPointsPolicy(policy or QUEST_POINTS_POLICY)
    if policy == QuestPointsPolicy.DURATION:
        return compute_points(actual_duration_minutes)
    return quest.points


def _validate_completion(
    user_id: str,
    quest: Quest,
    actual_duration_minutes: int,
    activity_type: Optional[Union[ActivityType, str]]
) -> Optional[ValidationError]:
    """Validation failure for a completion request, or None"""
    if actual_duration_minutes <= 0:
        return ValidationError(
            message="Duration must be positive",
            field="duration_minutes",
            value=actual_duration_minutes,
            user_id=user_id,
            operation="complete_quest"
        )

    if actual_duration_minutes < quest.required_duration_minutes:
        return ValidationError(
            message=(
                f"'{quest.title}' needs at least {quest.required_duration_minutes} minutes, "
                f"got {actual_duration_minutes}"
            ),
            field="duration_minutes",
            value=actual_duration_minutes,
            user_id=user_id,
            operation="complete_quest"
        )

    if quest.required_activity_type is not None:
        try:
            done = ActivityType(activity_type) if activity_type is not None else None
        except ValueError:
            done = None
        if done != quest.required_activity_type:
            return ValidationError(
                message=(
                    f"'{quest.title}' requires a {quest.required_activity_type.value} activity"
                ),
                field="activity_type",
                value=activity_type.value if isinstance(activity_type, ActivityType) else activity_type,
                user_id=user_id,
                operation="complete_quest"
            )

    return None


def complete_quest(
    user_id: str,
    quest_id: int,
    actual_duration_minutes: int,
    profile: UserProfile,
    today: date,
    activity_type: Optional[Union[ActivityType, str]] = None,
    activity_history: Iterable[Activity] = (),
    tz: ZoneLike = None,
    social: Optional[SocialStats] = None,
    policy: Union[QuestPointsPolicy, str, None] = None,
    quests: Optional[Sequence[Quest]] = None,
    badges: Optional[Sequence[Badge]] = None
) -> Result[QuestCompletion]:
    """
    Complete a daily quest

    Args:
        user_id: User completing the quest
        quest_id: Quest ID
        actual_duration_minutes: Minutes the user actually did
        profile: Current profile snapshot
        today: Caller's local calendar date
        activity_type: Type of the qualifying activity
        activity_history: User's activities (for badge rules)
        tz: Zone for badge time-of-day rules
        social: Friend / challenge counts for social badges
        policy: Points policy override (defaults to QUEST_POINTS_POLICY)
        quests: Quest catalog override
        badges: Badge catalog override

    Returns:
        Result with QuestCompletion, or a NotFoundError /
        DuplicateCompletionError / ValidationError
    """
    quest = get_quest(quest_id, quests)
    if quest is None:
        return Result.failure(NotFoundError(
            message=f"Quest {quest_id} not found",
            record_type="Quest",
            record_id=quest_id,
            user_id=user_id,
            operation="complete_quest"
        ))

    if profile.id != user_id:
        return Result.failure(ValidationError(
            message=f"Profile {profile.id} does not belong to user {user_id}",
            field="user_id",
            value=user_id,
            user_id=user_id,
            operation="complete_quest"
        ))

    if is_completed(profile, quest_id, today):
        return Result.failure(DuplicateCompletionError(
            message=f"Quest {quest_id} already completed on {today.isoformat()}",
            quest_id=quest_id,
            completion_date=today,
            user_id=user_id,
            operation="complete_quest"
        ))

    invalid = _validate_completion(user_id, quest, actual_duration_minutes, activity_type)
    if invalid is not None:
        return Result.failure(invalid)

    points = quest_points(quest, actual_duration_minutes, policy)
    new_total = profile.total_points + points
    level_change = describe_level_change(profile.total_points, new_total)

    updated = profile.model_copy(update={
        "total_points": new_total,
        "completed_quests": [
            *profile.completed_quests,
            CompletedQuest(quest_id=quest_id, date=today, points=points),
        ],
    })

    new_badges = evaluate(updated, activity_history, tz=tz, social=social, catalog=badges)
    updated = award_badges(updated, new_badges)

    logger.info(
        f"User {user_id} completed quest {quest_id} ({quest.title}) on {today.isoformat()}: "
        f"+{points} points, total {new_total}"
    )

    return Result.success(QuestCompletion(
        quest=quest,
        points_earned=points,
        new_total_points=new_total,
        new_level=level_change["new_level"],
        leveled_up=level_change["leveled_up"],
        new_badges=new_badges,
        profile=updated,
    ))
