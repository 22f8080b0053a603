"""Static catalog models: quests, badges, challenge templates"""
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fitplay.models.activity import ActivityType


class BadgeRequirement(str, Enum):
    """Statistic a badge threshold is measured against"""
    WORKOUT_COUNT = "workout_count"
    POINTS = "points"
    STREAK = "streak"
    ACTIVITY_COUNT = "activity_count"
    DISTANCE = "distance"
    SINGLE_DURATION = "single_duration"
    EARLY_WORKOUT = "early_workout"
    LATE_WORKOUT = "late_workout"
    WEEKLY_STREAK = "weekly_streak"
    MONTHLY_STREAK = "monthly_streak"
    FRIENDS = "friends"
    CHALLENGES = "challenges"


class Rarity(str, Enum):
    """Badge rarity tiers"""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class ChallengeGoal(str, Enum):
    """Metric a challenge is scored on"""
    DISTANCE = "distance"
    STREAK = "streak"
    CALORIES = "calories"
    VARIETY = "variety"
    EARLY_WORKOUTS = "early_workouts"
    DURATION = "duration"


class Quest(BaseModel):
    """Daily quest definition"""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str = ""
    points: int = Field(gt=0)
    required_duration_minutes: int = Field(default=0, ge=0)
    required_activity_type: Optional[ActivityType] = None  # None = any type
    icon: str = "🎯"


class Badge(BaseModel):
    """Achievement badge definition"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    icon: str = "🏅"
    requirement_type: BadgeRequirement
    requirement_value: float = Field(ge=0)
    activity_type: Optional[ActivityType] = None
    points: int = Field(default=0, ge=0)
    rarity: Rarity = Rarity.COMMON

    @model_validator(mode='after')
    def activity_filter_required(self) -> 'Badge':
        """Distance badges are always per activity type"""
        if self.requirement_type == BadgeRequirement.DISTANCE and self.activity_type is None:
            raise ValueError(f"Distance badge '{self.id}' needs an activity_type")
        return self


class ChallengeTemplate(BaseModel):
    """Reusable challenge blueprint"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    goal_type: ChallengeGoal
    goal_value: float = Field(gt=0)
    duration_days: int = Field(gt=0)
    activity_type: Optional[ActivityType] = None
    icon: str = "🏆"


class Challenge(BaseModel):
    """A running, time-boxed competition"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    goal_type: ChallengeGoal
    goal_value: float = Field(gt=0)
    duration_days: int = Field(gt=0)
    start_date: date
    end_date: date  # inclusive
    activity_type: Optional[ActivityType] = None
    creator_id: Optional[str] = None
    icon: str = "🏆"

    @model_validator(mode='after')
    def window_is_ordered(self) -> 'Challenge':
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class ChallengeParticipant(BaseModel):
    """One participant's standing in a challenge"""
    challenge_id: str
    user_id: str
    display_name: str = "Unknown"
    progress: float = 0.0
    completed: bool = False
    rank: int = 0
