"""
GamificationService - Caller-side orchestration of the engine

Wraps the pure gamification engine with the store reads and atomic writes a
real application needs. Every profile mutation is one read-modify-write:
read the snapshot, let the engine compute the new snapshot, write it back
with compare-and-swap on the version read. A conflicting write re-runs the
whole sequence, which is safe because the engine has no side effects.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from fitplay.config import QUEST_POINTS_POLICY, STREAK_REQUIRES_TODAY
from fitplay.exceptions import ConfigurationError, ConflictError, NotFoundError, Result, ValidationError
from fitplay.models.activity import Activity, ActivityInput, ActivityType, Intensity
from fitplay.models.catalog import Challenge, ChallengeParticipant
from fitplay.models.profile import SocialStats, UserProfile
from fitplay.gamification.activity_points import compute_calories_result, compute_points
from fitplay.gamification.badge_system import award_badges, evaluate
from fitplay.gamification.catalog import Catalog, load_catalog
from fitplay.gamification.challenges import activities_in_window, challenge_standings
from fitplay.gamification.leaderboard import RankedEntry, build_leaderboard, get_user_rank
from fitplay.gamification.level_system import describe_level_change, level_progress
from fitplay.gamification.quest_system import (
    QuestCompletion,
    QuestPointsPolicy,
    complete_quest,
    get_quest_status,
)
from fitplay.gamification.streak_system import activity_dates, compute_streak, streak_message
from fitplay.services.retry import retry_on_conflict
from fitplay.services.store import InMemoryStore
from fitplay.utils.datetime_helpers import ZoneLike, as_aware, get_zone, local_date
from fitplay.utils.formatting import format_distance, format_duration, format_number

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - Activity logging (calories, points, counters, streak, badges)
    - Quest completion
    - Activity deletion with counter rollback
    - Leaderboards and challenge standings
    """

    def __init__(
        self,
        store: InMemoryStore,
        catalog: Optional[Catalog] = None,
        tz: ZoneLike = None,
        quest_policy: Optional[str] = None,
        require_today: Optional[bool] = None,
        calorie_rates: Optional[Mapping[str, float]] = None,
        max_retries: Optional[int] = None
    ):
        """
        Initialize GamificationService.

        Args:
            store: Profile and activity store
            catalog: Quest / badge / template catalogs (default: load_catalog())
            tz: Zone for calendar-day rules (default: DEFAULT_TIMEZONE)
            quest_policy: 'fixed' or 'duration' (default: QUEST_POINTS_POLICY)
            require_today: Streak policy (default: STREAK_REQUIRES_TODAY)
            calorie_rates: kcal-per-minute overrides by activity type
            max_retries: Conflict retries per write (default: MAX_CONFLICT_RETRIES)
        """
        self.store = store
        self.catalog = catalog or load_catalog()
        self.tz = get_zone(tz)
        self.quest_policy = self._quest_policy(quest_policy or QUEST_POINTS_POLICY)
        self.require_today = STREAK_REQUIRES_TODAY if require_today is None else require_today
        self.calorie_rates = calorie_rates
        self.max_retries = max_retries
        logger.debug("GamificationService initialized")

    # ==========================================
    # Helpers
    # ==========================================

    @staticmethod
    def _quest_policy(policy: Any) -> QuestPointsPolicy:
        """Normalise a quest points policy; unknown values are a configuration error"""
        try:
            return QuestPointsPolicy(str(getattr(policy, "value", policy)).lower())
        except ValueError:
            raise ConfigurationError(
                message=f"Quest points policy must be 'fixed' or 'duration', got '{policy}'",
                config_key="QUEST_POINTS_POLICY"
            )

    def _missing_profile(self, user_id: str, operation: str) -> NotFoundError:
        return NotFoundError(
            message=f"Profile {user_id} not found",
            record_type="Profile",
            record_id=user_id,
            user_id=user_id,
            operation=operation
        )

    def _streak(self, activities: Iterable[Activity], today: date) -> int:
        return compute_streak(activity_dates(activities, self.tz), today, self.require_today)

    async def _write(self, func, *args, **kwargs) -> Result:
        """Run a read-modify-write with conflict retries"""
        try:
            return await retry_on_conflict(func, *args, max_retries=self.max_retries, **kwargs)
        except ConflictError as e:
            return Result.failure(e)

    # ==========================================
    # Activities
    # ==========================================

    async def log_activity(
        self,
        user_id: str,
        activity_type: Union[ActivityType, str],
        duration_minutes: int,
        now: datetime,
        intensity: Union[Intensity, str] = Intensity.MEDIUM,
        distance_km: float = 0.0,
        notes: str = "",
        social: Optional[SocialStats] = None
    ) -> Result[Dict[str, Any]]:
        """
        Log an activity and apply its gamification effects.

        Args:
            user_id: User logging the activity
            activity_type: Activity type
            duration_minutes: Duration in minutes
            now: Caller's current time (activity timestamp)
            intensity: light / medium / high
            distance_km: Distance covered
            notes: Free-text notes
            social: Friend / challenge counts for social badges

        Returns:
            Result with:
            {
                'activity': Activity,
                'calories_burned': int,
                'points_earned': int,
                'new_total_points': int,
                'new_level': LevelInfo,
                'leveled_up': bool,
                'streak': int,
                'new_badges': [Badge],
                'profile': UserProfile
            }
        """
        try:
            data = ActivityInput(
                type=activity_type,
                duration_minutes=duration_minutes,
                intensity=intensity,
                distance_km=distance_km,
                notes=notes,
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or None
            return Result.failure(ValidationError(
                message=first.get("msg", "Invalid activity"),
                field=field,
                value=first.get("input"),
                user_id=user_id,
                operation="log_activity"
            ))

        if await self.store.get_profile(user_id) is None:
            return Result.failure(self._missing_profile(user_id, "log_activity"))

        calories = compute_calories_result(
            data.type, data.duration_minutes, data.intensity, self.calorie_rates
        )
        if not calories.ok:
            return calories

        # Stored timestamps are always aware, in the rule zone
        created_at = as_aware(now, self.tz)
        activity = Activity(
            id=str(uuid4()),
            user_id=user_id,
            type=data.type,
            duration_minutes=data.duration_minutes,
            intensity=data.intensity,
            distance_km=data.distance_km,
            calories_burned=calories.value,
            created_at=created_at,
            notes=data.notes,
        )
        await self.store.add_activity(activity)

        try:
            result = await self._write(
                self._apply_activity, activity, local_date(created_at, self.tz), social
            )
        except Exception:
            await self.store.delete_activity(activity.id)
            raise
        if not result.ok:
            # Profile was never updated; drop the orphaned record
            await self.store.delete_activity(activity.id)
        return result

    async def _apply_activity(
        self,
        activity: Activity,
        today: date,
        social: Optional[SocialStats]
    ) -> Result[Dict[str, Any]]:
        profile = await self.store.get_profile(activity.user_id)
        if profile is None:
            return Result.failure(self._missing_profile(activity.user_id, "log_activity"))

        history = await self.store.list_activities(activity.user_id)
        points = compute_points(activity.duration_minutes)
        new_total = profile.total_points + points
        level_change = describe_level_change(profile.total_points, new_total)

        updated = profile.model_copy(update={
            "workout_count": profile.workout_count + 1,
            "total_minutes": profile.total_minutes + activity.duration_minutes,
            "total_points": new_total,
            "streak": self._streak(history, today),
        })
        new_badges = evaluate(updated, history, tz=self.tz, social=social, catalog=self.catalog.badges)
        updated = award_badges(updated, new_badges)

        saved = await self.store.save_profile(updated, expected_version=profile.version)

        logger.info(
            f"Logged {activity.type.value} for user {activity.user_id}: "
            f"{activity.duration_minutes} min, {activity.calories_burned} kcal, +{points} points "
            f"(total {new_total}, streak {saved.streak})"
        )

        return Result.success({
            "activity": activity,
            "calories_burned": activity.calories_burned,
            "points_earned": points,
            "new_total_points": new_total,
            "new_level": level_change["new_level"],
            "leveled_up": level_change["leveled_up"],
            "streak": saved.streak,
            "new_badges": new_badges,
            "profile": saved,
        })

    async def delete_activity(
        self,
        user_id: str,
        activity_id: str,
        today: date
    ) -> Result[UserProfile]:
        """
        Delete an activity and roll back its counters.

        workout_count and total_minutes lose the activity's contribution
        (never below zero) and the streak is recomputed. Points and badges
        already earned are kept.

        Returns:
            Result with the updated profile, or NotFoundError
        """
        activity = await self.store.get_activity(activity_id)
        if activity is None or activity.user_id != user_id:
            return Result.failure(NotFoundError(
                message=f"Activity {activity_id} not found for user {user_id}",
                record_type="Activity",
                record_id=activity_id,
                user_id=user_id,
                operation="delete_activity"
            ))

        result = await self._write(self._rollback_activity, activity, today)
        if result.ok:
            await self.store.delete_activity(activity_id)
            logger.info(f"Deleted activity {activity_id} for user {user_id}")
        return result

    async def _rollback_activity(self, activity: Activity, today: date) -> Result[UserProfile]:
        profile = await self.store.get_profile(activity.user_id)
        if profile is None:
            return Result.failure(self._missing_profile(activity.user_id, "delete_activity"))

        remaining = [
            a for a in await self.store.list_activities(activity.user_id)
            if a.id != activity.id
        ]
        updated = profile.model_copy(update={
            "workout_count": max(profile.workout_count - 1, 0),
            "total_minutes": max(profile.total_minutes - activity.duration_minutes, 0),
            "streak": self._streak(remaining, today),
        })
        saved = await self.store.save_profile(updated, expected_version=profile.version)
        return Result.success(saved)

    async def refresh_streak(self, user_id: str, today: date) -> Result[UserProfile]:
        """Recompute a stored streak as of today (streaks lapse without new activity)"""
        return await self._write(self._refresh_streak, user_id, today)

    async def _refresh_streak(self, user_id: str, today: date) -> Result[UserProfile]:
        profile = await self.store.get_profile(user_id)
        if profile is None:
            return Result.failure(self._missing_profile(user_id, "refresh_streak"))

        streak = self._streak(await self.store.list_activities(user_id), today)
        if streak == profile.streak:
            return Result.success(profile)

        saved = await self.store.save_profile(
            profile.model_copy(update={"streak": streak}),
            expected_version=profile.version
        )
        logger.info(f"Streak for user {user_id} recomputed: {profile.streak} -> {streak}")
        return Result.success(saved)

    # ==========================================
    # Quests
    # ==========================================

    async def complete_quest(
        self,
        user_id: str,
        quest_id: int,
        duration_minutes: int,
        today: date,
        activity_type: Optional[Union[ActivityType, str]] = None,
        social: Optional[SocialStats] = None
    ) -> Result[QuestCompletion]:
        """
        Complete a daily quest as one atomic profile update.

        Two racing completions of the same quest on the same day resolve to
        one success and one DuplicateCompletionError: the loser's write
        conflicts, it re-reads, and the engine then sees the completion.
        """
        return await self._write(
            self._complete_quest, user_id, quest_id, duration_minutes, today, activity_type, social
        )

    async def _complete_quest(
        self,
        user_id: str,
        quest_id: int,
        duration_minutes: int,
        today: date,
        activity_type: Optional[Union[ActivityType, str]],
        social: Optional[SocialStats]
    ) -> Result[QuestCompletion]:
        profile = await self.store.get_profile(user_id)
        if profile is None:
            return Result.failure(self._missing_profile(user_id, "complete_quest"))

        result = complete_quest(
            user_id,
            quest_id,
            duration_minutes,
            profile,
            today,
            activity_type=activity_type,
            activity_history=await self.store.list_activities(user_id),
            tz=self.tz,
            social=social,
            policy=self.quest_policy,
            quests=self.catalog.quests,
            badges=self.catalog.badges,
        )
        if not result.ok:
            return result

        saved = await self.store.save_profile(result.value.profile, expected_version=profile.version)
        return Result.success(replace(result.value, profile=saved))

    async def get_quest_status(self, user_id: str, today: date) -> Result[Dict[str, Any]]:
        """Today's completed quests and points"""
        profile = await self.store.get_profile(user_id)
        if profile is None:
            return Result.failure(self._missing_profile(user_id, "get_quest_status"))
        return Result.success(get_quest_status(profile, today))

    # ==========================================
    # Rankings
    # ==========================================

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[RankedEntry]:
        """Population leaderboard by total points"""
        return build_leaderboard(await self.store.list_profiles(), limit)

    async def get_user_rank(self, user_id: str, limit: Optional[int] = None) -> Optional[int]:
        """User's rank, or None outside the top-N window"""
        return get_user_rank(user_id, await self.store.list_profiles(), limit)

    async def get_challenge_standings(
        self,
        challenge: Challenge,
        participant_ids: Iterable[str]
    ) -> List[ChallengeParticipant]:
        """Recompute progress and rank for every participant"""
        activities_by_user = {}
        names = {}
        for user_id in participant_ids:
            activities = await self.store.list_activities(
                user_id, start=challenge.start_date, end=challenge.end_date, tz=self.tz
            )
            activities_by_user[user_id] = activities_in_window(challenge, activities, self.tz)
            profile = await self.store.get_profile(user_id)
            if profile is not None:
                names[user_id] = profile.display_name

        return challenge_standings(challenge, activities_by_user, names, self.tz)

    # ==========================================
    # Summaries
    # ==========================================

    async def get_profile_summary(self, user_id: str, today: date) -> Result[Dict[str, Any]]:
        """
        Profile stats for display.

        Returns:
            Result with:
            {
                'level': int,
                'level_name': str,
                'level_progress': float,
                'points_to_next_level': int,
                'total_points': str,
                'total_time': str,
                'total_distance': str,
                'workout_count': int,
                'streak': int,
                'streak_message': str,
                'badges': [str],
                'rank': int or None
            }
        """
        profile = await self.store.get_profile(user_id)
        if profile is None:
            return Result.failure(self._missing_profile(user_id, "get_profile_summary"))

        activities = await self.store.list_activities(user_id)
        streak = self._streak(activities, today)
        progress = level_progress(profile.total_points)

        return Result.success({
            "level": progress["current"].level,
            "level_name": progress["current"].name,
            "level_progress": progress["progress"],
            "points_to_next_level": progress["points_to_next_level"],
            "total_points": format_number(profile.total_points),
            "total_time": format_duration(profile.total_minutes),
            "total_distance": format_distance(sum(a.distance_km for a in activities)),
            "workout_count": profile.workout_count,
            "streak": streak,
            "streak_message": streak_message(streak),
            "badges": list(profile.badges),
            "rank": await self.get_user_rank(user_id),
        })
