"""
Gamification engine for FitPlay

This module turns logged activity into motivation:
- Points and levels
- Daily quests
- Badges
- Streaks
- Challenges and leaderboards

All functions here are pure: they take snapshots and an explicit "today"
and return results without I/O.
"""

from fitplay.gamification.level_system import level_of, progress_to_next_level
from fitplay.gamification.activity_points import compute_calories, compute_points
from fitplay.gamification.streak_system import compute_streak, longest_streak
from fitplay.gamification.badge_system import evaluate
from fitplay.gamification.quest_system import complete_quest, list_daily_quests
from fitplay.gamification.challenges import compute_progress, rank
from fitplay.gamification.leaderboard import build_leaderboard, get_user_rank

__all__ = [
    "level_of",
    "progress_to_next_level",
    "compute_calories",
    "compute_points",
    "compute_streak",
    "longest_streak",
    "evaluate",
    "complete_quest",
    "list_daily_quests",
    "compute_progress",
    "rank",
    "build_leaderboard",
    "get_user_rank",
]
