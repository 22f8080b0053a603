"""Global test fixtures and utilities for FitPlay tests"""
import pytest
from datetime import date, datetime, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

from fitplay.models.activity import Activity, ActivityType, Intensity
from fitplay.models.profile import UserProfile
from fitplay.services.gamification_service import GamificationService
from fitplay.services.store import InMemoryStore

UTC = ZoneInfo("UTC")
TODAY = date(2024, 1, 15)


# ============================================================================
# Calendar Fixtures
# ============================================================================

@pytest.fixture
def today():
    """Fixed 'today' for deterministic tests"""
    return TODAY


@pytest.fixture
def now():
    """Noon UTC on the fixed 'today'"""
    return datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


# ============================================================================
# User & Activity Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def profile_factory(test_user_id):
    """Factory for profile snapshots"""
    def _create(**kwargs):
        kwargs.setdefault("id", test_user_id)
        kwargs.setdefault("display_name", "Test User")
        return UserProfile(**kwargs)

    return _create


@pytest.fixture
def activity_factory(test_user_id):
    """
    Factory for activities

    days_ago counts back from TODAY; hour is UTC.
    """
    def _create(
        activity_type=ActivityType.RUNNING,
        duration_minutes=30,
        days_ago=0,
        hour=12,
        distance_km=0.0,
        calories_burned=0,
        intensity=Intensity.MEDIUM,
        user_id=None
    ):
        day = TODAY - timedelta(days=days_ago)
        return Activity(
            id=str(uuid4()),
            user_id=user_id or test_user_id,
            type=activity_type,
            duration_minutes=duration_minutes,
            intensity=intensity,
            distance_km=distance_km,
            calories_burned=calories_burned,
            created_at=datetime(day.year, day.month, day.day, hour, 0, tzinfo=UTC),
        )

    return _create


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def service(store):
    """GamificationService with explicit policies (independent of env)"""
    return GamificationService(
        store,
        tz="UTC",
        quest_policy="fixed",
        require_today=True,
        max_retries=3,
    )
