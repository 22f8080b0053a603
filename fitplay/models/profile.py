"""User profile snapshot models"""
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompletedQuest(BaseModel):
    """One quest completion; unique per (quest_id, date)"""
    model_config = ConfigDict(frozen=True)

    quest_id: int
    date: date
    points: int = Field(ge=0)


class SocialStats(BaseModel):
    """Counts owned by the social graph, consumed by social badges"""
    friend_count: int = Field(default=0, ge=0)
    challenges_joined: int = Field(default=0, ge=0)


class UserProfile(BaseModel):
    """
    Gamification state of one user

    Snapshots are never mutated in place: engine operations return an
    updated copy and the caller persists it atomically. `version` belongs
    to the store and is used for compare-and-swap writes.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str = "Unknown"
    total_points: int = Field(default=0, ge=0)
    workout_count: int = Field(default=0, ge=0)
    total_minutes: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    badges: list[str] = Field(default_factory=list)
    completed_quests: list[CompletedQuest] = Field(default_factory=list)
    version: int = 0

    @field_validator('badges')
    @classmethod
    def unique_badges(cls, v: list[str]) -> list[str]:
        """Badge ids form a set; drop repeats, keep first-seen order"""
        return list(dict.fromkeys(v))

    @property
    def level(self) -> int:
        """Level derived from total_points (never stored)"""
        # Import here to avoid circular dependencies
        from fitplay.gamification.level_system import level_of
        return level_of(self.total_points).level

    def to_snapshot(self) -> dict[str, Any]:
        """Serialized snapshot including the derived level"""
        data = self.model_dump(mode="json")
        data["level"] = self.level
        return data
