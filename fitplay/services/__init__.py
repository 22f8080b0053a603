"""
Service Layer Package

Caller-side services around the pure gamification engine:
- GamificationService: activity logging, quests, rankings, summaries
- InMemoryStore: profile/activity store with compare-and-swap writes
"""

from fitplay.services.gamification_service import GamificationService
from fitplay.services.store import InMemoryStore

__all__ = [
    "GamificationService",
    "InMemoryStore",
]
