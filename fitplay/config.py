"""Configuration management"""
import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from fitplay.exceptions import ConfigurationError

load_dotenv()


def _parse_rates(raw: str) -> dict[str, float]:
    """Parse 'running:12,walking:5' into a rate table"""
    rates: dict[str, float] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        name, _, value = item.partition(":")
        try:
            rates[name.strip()] = float(value)
        except ValueError:
            raise ConfigurationError(
                message=f"Invalid calorie rate '{item}'",
                config_key="CALORIE_RATES"
            )
    return rates


# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Calendar
# Zone used to turn activity timestamps into local calendar days/hours
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Rule policies
# - 'fixed' (default): a quest awards its catalog points
# - 'duration': a quest awards one point per minute actually done
QUEST_POINTS_POLICY: str = os.getenv("QUEST_POINTS_POLICY", "fixed").lower()
STREAK_REQUIRES_TODAY: bool = os.getenv("STREAK_REQUIRES_TODAY", "true").lower() == "true"

# Leaderboards
LEADERBOARD_LIMIT: int = int(os.getenv("LEADERBOARD_LIMIT", "50"))
USER_RANK_WINDOW: int = int(os.getenv("USER_RANK_WINDOW", "100"))

# Catalogs
_catalog_path = os.getenv("CATALOG_PATH", "")
CATALOG_PATH: Optional[Path] = Path(_catalog_path) if _catalog_path else None
CALORIE_RATES: dict[str, float] = _parse_rates(os.getenv("CALORIE_RATES", ""))

# Persistence
MAX_CONFLICT_RETRIES: int = int(os.getenv("MAX_CONFLICT_RETRIES", "3"))


# Validation
def validate_config() -> None:
    """Validate configuration"""
    if QUEST_POINTS_POLICY not in ("fixed", "duration"):
        raise ConfigurationError(
            message=f"QUEST_POINTS_POLICY must be 'fixed' or 'duration', got '{QUEST_POINTS_POLICY}'",
            config_key="QUEST_POINTS_POLICY"
        )
    try:
        ZoneInfo(DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(
            message=f"Unknown timezone '{DEFAULT_TIMEZONE}'",
            config_key="DEFAULT_TIMEZONE"
        )
    if LEADERBOARD_LIMIT <= 0 or USER_RANK_WINDOW <= 0:
        raise ConfigurationError(
            message="Leaderboard limits must be positive",
            config_key="LEADERBOARD_LIMIT"
        )
    if MAX_CONFLICT_RETRIES < 0:
        raise ConfigurationError(
            message="MAX_CONFLICT_RETRIES cannot be negative",
            config_key="MAX_CONFLICT_RETRIES"
        )
    if CATALOG_PATH is not None and not CATALOG_PATH.exists():
        raise ConfigurationError(
            message=f"Catalog file {CATALOG_PATH} does not exist",
            config_key="CATALOG_PATH"
        )
    for name, rate in CALORIE_RATES.items():
        if rate < 0:
            raise ConfigurationError(
                message=f"Calorie rate for '{name}' cannot be negative",
                config_key="CALORIE_RATES"
            )
