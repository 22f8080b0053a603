"""
Activity Points and Calories

Calories: duration x base rate for the activity type x intensity multiplier,
rounded half-up to a whole calorie.

Points: 1 point per minute of activity.

Rates are defaults; callers (or CALORIE_RATES in config) may override them.

compute_calories raises ValidationError on an unknown type or intensity;
compute_calories_result returns the same failure inside a Result.
"""

from typing import Mapping, Optional, Union
import logging
import math

from fitplay.config import CALORIE_RATES
from fitplay.exceptions import Result, ValidationError
from fitplay.models.activity import ActivityType, Intensity

logger = logging.getLogger(__name__)

# kcal per minute at light intensity
DEFAULT_CALORIE_RATES: dict[str, float] = {
    ActivityType.RUNNING.value: 12,
    ActivityType.WALKING.value: 5,
    ActivityType.CYCLING.value: 10,
    ActivityType.STRENGTH.value: 8,
    ActivityType.YOGA.value: 4,
    ActivityType.CARDIO.value: 11,
    ActivityType.SWIMMING.value: 10,
    ActivityType.SPORTS.value: 9,
}

INTENSITY_MULTIPLIERS: dict[str, float] = {
    Intensity.LIGHT.value: 1,
    Intensity.MEDIUM.value: 1.5,
    Intensity.HIGH.value: 2,
}

POINTS_PER_MINUTE = 1


def calorie_rates(overrides: Optional[Mapping[str, float]] = None) -> dict[str, float]:
    """Default rate table merged with config overrides and explicit overrides"""
    rates = dict(DEFAULT_CALORIE_RATES)
    rates.update(CALORIE_RATES)
    if overrides:
        rates.update(overrides)
    return rates


def _key(value: Union[str, ActivityType, Intensity]) -> str:
    return value.value if hasattr(value, "value") else str(value)


def compute_calories(
    activity_type: Union[str, ActivityType],
    duration_minutes: int,
    intensity: Union[str, Intensity],
    rates: Optional[Mapping[str, float]] = None
) -> int:
    """
    Calories burned for one activity

    Args:
        activity_type: Activity type (running, yoga, ...)
        duration_minutes: Duration in minutes
        intensity: light / medium / high
        rates: Optional kcal-per-minute overrides by type

    Returns:
        Calories as a non-negative integer

    Raises:
        ValidationError: Unknown type or intensity, or negative duration
    """
    table = calorie_rates(rates)
    type_key = _key(activity_type)
    intensity_key = _key(intensity)

    if type_key not in table:
        raise ValidationError(
            message=f"Unknown activity type '{type_key}'",
            field="type",
            value=type_key,
            operation="compute_calories"
        )
    if intensity_key not in INTENSITY_MULTIPLIERS:
        raise ValidationError(
            message=f"Unknown intensity '{intensity_key}'",
            field="intensity",
            value=intensity_key,
            operation="compute_calories"
        )
    if duration_minutes < 0:
        raise ValidationError(
            message="Duration cannot be negative",
            field="duration_minutes",
            value=duration_minutes,
            operation="compute_calories"
        )

    # Half-up rounding: 52.5 kcal counts as 53
    raw = duration_minutes * table[type_key] * INTENSITY_MULTIPLIERS[intensity_key]
    calories = math.floor(raw + 0.5)
    logger.debug(
        f"{type_key} {duration_minutes}min @ {intensity_key}: {calories} kcal"
    )
    return int(calories)


def compute_calories_result(
    activity_type: Union[str, ActivityType],
    duration_minutes: int,
    intensity: Union[str, Intensity],
    rates: Optional[Mapping[str, float]] = None
) -> Result[int]:
    """compute_calories reporting bad input as a failed Result instead of raising"""
    try:
        return Result.success(compute_calories(activity_type, duration_minutes, intensity, rates))
    except ValidationError as e:
        return Result.failure(e)


def compute_points(duration_minutes: int) -> int:
    """Points for an activity: one per minute, never negative"""
    return max(int(duration_minutes), 0) * POINTS_PER_MINUTE
