"""Activity models"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ActivityType(str, Enum):
    """Workout categories a user can log"""
    RUNNING = "running"
    WALKING = "walking"
    CYCLING = "cycling"
    STRENGTH = "strength"
    YOGA = "yoga"
    CARDIO = "cardio"
    SWIMMING = "swimming"
    SPORTS = "sports"


class Intensity(str, Enum):
    """Self-reported effort level"""
    LIGHT = "light"
    MEDIUM = "medium"
    HIGH = "high"


class ActivityInput(BaseModel):
    """Raw activity as submitted by a user, before calories are derived"""
    type: ActivityType
    duration_minutes: int = Field(gt=0, description="Duration in minutes")
    intensity: Intensity = Intensity.MEDIUM
    distance_km: float = Field(default=0.0, ge=0, description="Distance in km")
    notes: str = Field(default="", max_length=1000)


class Activity(BaseModel):
    """A logged workout. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    type: ActivityType
    duration_minutes: int = Field(gt=0)
    intensity: Intensity = Intensity.MEDIUM
    distance_km: float = Field(default=0.0, ge=0)
    calories_burned: int = Field(default=0, ge=0)
    created_at: datetime
    notes: Optional[str] = ""
