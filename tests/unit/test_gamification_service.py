"""Unit tests for GamificationService (fitplay/services/gamification_service.py)"""
import asyncio
import pytest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from fitplay.exceptions import ConfigurationError, ConflictError
from fitplay.gamification.challenges import create_challenge_from_template
from fitplay.services.gamification_service import GamificationService
from fitplay.services.store import InMemoryStore


class InterleavingStore(InMemoryStore):
    """Yields to the event loop after every profile read"""

    async def get_profile(self, user_id):
        profile = await super().get_profile(user_id)
        await asyncio.sleep(0)
        return profile


# ============================================================================
# Activity Logging Tests
# ============================================================================

@pytest.mark.asyncio
async def test_log_activity_success(service, store, now, test_user_id):
    """Test calories, points, counters, streak and first badge"""
    await store.create_profile(test_user_id, "Test User")

    result = await service.log_activity(test_user_id, "running", 30, now)

    assert result.ok
    data = result.value
    assert data["calories_burned"] == 540
    assert data["points_earned"] == 30
    assert data["new_total_points"] == 30
    assert data["new_level"].level == 1
    assert data["leveled_up"] is False
    assert data["streak"] == 1
    assert [b.id for b in data["new_badges"]] == ["beginner"]

    profile = await store.get_profile(test_user_id)
    assert profile.workout_count == 1
    assert profile.total_minutes == 30
    assert profile.badges == ["beginner"]
    assert profile.version == 2
    assert len(await store.list_activities(test_user_id)) == 1


@pytest.mark.asyncio
async def test_log_activity_builds_streak(service, store, now, test_user_id):
    """Test three consecutive days give a 3-day streak"""
    await store.create_profile(test_user_id)

    for days_back in (2, 1, 0):
        result = await service.log_activity(test_user_id, "walking", 20, now - timedelta(days=days_back))
        assert result.ok

    assert result.value["streak"] == 3
    assert "streakStarter" in [b.id for b in result.value["new_badges"]]


@pytest.mark.asyncio
async def test_log_activity_invalid_duration(service, store, now, test_user_id):
    """Test non-positive duration is rejected and nothing is stored"""
    await store.create_profile(test_user_id)

    result = await service.log_activity(test_user_id, "running", 0, now)

    assert result.kind == "validation"
    assert result.error.field == "duration_minutes"
    assert await store.list_activities(test_user_id) == []
    assert (await store.get_profile(test_user_id)).workout_count == 0


@pytest.mark.asyncio
async def test_log_activity_unknown_type(service, store, now, test_user_id):
    """Test unknown activity type is rejected"""
    await store.create_profile(test_user_id)

    result = await service.log_activity(test_user_id, "dancing", 30, now)

    assert result.kind == "validation"
    assert result.error.field == "type"


@pytest.mark.asyncio
async def test_log_activity_missing_profile(service, now):
    """Test logging for an unknown user"""
    result = await service.log_activity("ghost", "running", 30, now)

    assert result.kind == "not_found"


@pytest.mark.asyncio
async def test_log_activity_retries_conflict(service, store, now, test_user_id):
    """Test a conflicting write is re-run from a fresh read"""
    await store.create_profile(test_user_id)
    original_save = store.save_profile
    attempts = []

    async def flaky_save(profile, expected_version):
        attempts.append(expected_version)
        if len(attempts) == 1:
            raise ConflictError("stale", expected_version=expected_version)
        return await original_save(profile, expected_version)

    store.save_profile = flaky_save

    with patch("fitplay.services.retry.asyncio.sleep", AsyncMock()):
        result = await service.log_activity(test_user_id, "yoga", 30, now)

    assert result.ok
    assert len(attempts) == 2
    assert (await store.get_profile(test_user_id)).workout_count == 1


@pytest.mark.asyncio
async def test_log_activity_conflict_exhausted(service, store, now, test_user_id):
    """Test exhausted retries return a conflict and drop the activity"""
    await store.create_profile(test_user_id)
    store.save_profile = AsyncMock(side_effect=ConflictError("stale"))

    with patch("fitplay.services.retry.asyncio.sleep", AsyncMock()):
        result = await service.log_activity(test_user_id, "yoga", 30, now)

    assert result.kind == "conflict"
    assert store.save_profile.await_count == 4
    assert await store.list_activities(test_user_id) == []


# ============================================================================
# Activity Deletion Tests
# ============================================================================

@pytest.mark.asyncio
async def test_delete_activity_rolls_back_counters(service, store, now, today, test_user_id):
    """Test counters lose the activity, points and badges are kept"""
    await store.create_profile(test_user_id)
    await service.log_activity(test_user_id, "running", 30, now)
    long_session = (await service.log_activity(test_user_id, "cycling", 60, now)).value["activity"]

    result = await service.delete_activity(test_user_id, long_session.id, today)

    assert result.ok
    profile = result.value
    assert profile.workout_count == 1
    assert profile.total_minutes == 30
    assert profile.total_points == 90
    assert "hourWarrior" in profile.badges
    assert profile.streak == 1
    assert await store.get_activity(long_session.id) is None


@pytest.mark.asyncio
async def test_delete_last_activity_resets_streak(service, store, now, today, test_user_id):
    """Test deleting the only activity ends the streak"""
    await store.create_profile(test_user_id)
    activity = (await service.log_activity(test_user_id, "running", 30, now)).value["activity"]

    result = await service.delete_activity(test_user_id, activity.id, today)

    assert result.value.streak == 0
    assert result.value.workout_count == 0


@pytest.mark.asyncio
async def test_delete_activity_of_other_user(service, store, now, today, test_user_id):
    """Test a user cannot delete someone else's activity"""
    await store.create_profile(test_user_id)
    activity = (await service.log_activity(test_user_id, "running", 30, now)).value["activity"]

    result = await service.delete_activity("intruder", activity.id, today)

    assert result.kind == "not_found"
    assert await store.get_activity(activity.id) is not None


@pytest.mark.asyncio
async def test_refresh_streak_lapses(service, store, now, today, test_user_id):
    """Test a streak drops to 0 when the day passes without activity"""
    await store.create_profile(test_user_id)
    await service.log_activity(test_user_id, "running", 30, now - timedelta(days=1))
    assert (await store.get_profile(test_user_id)).streak == 1

    result = await service.refresh_streak(test_user_id, today)

    assert result.value.streak == 0


# ============================================================================
# Quest Tests
# ============================================================================

@pytest.mark.asyncio
async def test_complete_quest_persists(service, store, today, test_user_id):
    """Test a completion is written back"""
    await store.create_profile(test_user_id)

    result = await service.complete_quest(test_user_id, 1, 20, today)

    assert result.ok
    assert result.value.points_earned == 40
    assert result.value.profile.version == 2
    assert (await store.get_profile(test_user_id)).total_points == 40

    status = (await service.get_quest_status(test_user_id, today)).value
    assert status["completed_quest_ids"] == [1]


@pytest.mark.asyncio
async def test_complete_quest_twice(service, store, today, test_user_id):
    """Test the second completion on the same day is a duplicate"""
    await store.create_profile(test_user_id)

    await service.complete_quest(test_user_id, 1, 20, today)
    second = await service.complete_quest(test_user_id, 1, 20, today)

    assert second.kind == "duplicate_completion"
    assert (await store.get_profile(test_user_id)).total_points == 40


@pytest.mark.asyncio
async def test_complete_quest_concurrent_requests(today, test_user_id):
    """Test racing completions resolve to one success and one duplicate"""
    store = InterleavingStore()
    service = GamificationService(store, tz="UTC", quest_policy="fixed", require_today=True, max_retries=3)
    await store.create_profile(test_user_id)

    results = await asyncio.gather(
        service.complete_quest(test_user_id, 1, 20, today),
        service.complete_quest(test_user_id, 1, 20, today),
    )

    assert sorted(r.ok for r in results) == [False, True]
    assert [r.kind for r in results if not r.ok] == ["duplicate_completion"]
    profile = await store.get_profile(test_user_id)
    assert profile.total_points == 40
    assert len(profile.completed_quests) == 1


@pytest.mark.asyncio
async def test_complete_quest_missing_profile(service, today):
    """Test quest completion for an unknown user"""
    result = await service.complete_quest("ghost", 1, 20, today)
    assert result.kind == "not_found"


# ============================================================================
# Ranking Tests
# ============================================================================

@pytest.mark.asyncio
async def test_leaderboard_and_user_rank(service, store):
    """Test population ranking through the store"""
    for user_id, points in (("a", 100), ("b", 100), ("c", 90)):
        profile = await store.create_profile(user_id)
        await store.save_profile(profile.model_copy(update={"total_points": points}), expected_version=1)

    board = await service.get_leaderboard(limit=10)

    assert [e.rank for e in board] == [1, 1, 3]
    assert await service.get_user_rank("c", limit=10) == 3
    assert await service.get_user_rank("c", limit=2) is None


@pytest.mark.asyncio
async def test_challenge_standings(service, store, now, today):
    """Test standings recomputed from stored activities"""
    challenge = create_challenge_from_template("weekly_runner", "ann", today - timedelta(days=6)).unwrap()
    await store.create_profile("ann", "Ann")
    await store.create_profile("ben", "Ben")
    await service.log_activity("ann", "running", 120, now, distance_km=21.1)
    await service.log_activity("ben", "running", 40, now - timedelta(days=1), distance_km=7.5)
    await service.log_activity("ben", "running", 60, now - timedelta(days=10), distance_km=15.0)

    standings = await service.get_challenge_standings(challenge, ["ben", "ann"])

    assert [(p.user_id, p.rank) for p in standings] == [("ann", 1), ("ben", 2)]
    assert standings[0].completed is True
    assert standings[0].display_name == "Ann"
    assert standings[1].progress == 7.5


# ============================================================================
# Summary Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_profile_summary(service, store, now, today, test_user_id):
    """Test display summary"""
    await store.create_profile(test_user_id, "Test User")
    await service.log_activity(test_user_id, "running", 30, now, distance_km=5.0)

    summary = (await service.get_profile_summary(test_user_id, today)).value

    assert summary["level"] == 1
    assert summary["level_name"] == "Beginner"
    assert summary["points_to_next_level"] == 470
    assert summary["total_points"] == "30"
    assert summary["total_time"] == "30 min"
    assert summary["total_distance"] == "5.00 km"
    assert summary["workout_count"] == 1
    assert summary["streak"] == 1
    assert summary["streak_message"] == "You're doing amazing! Stay strong! 🔥"
    assert summary["badges"] == ["beginner"]
    assert summary["rank"] == 1


@pytest.mark.asyncio
async def test_get_profile_summary_missing(service, today):
    """Test summary for an unknown user"""
    result = await service.get_profile_summary("ghost", today)
    assert result.kind == "not_found"


# ============================================================================
# Configuration Tests
# ============================================================================

@pytest.mark.parametrize("policy", ["Fixed", "DURATION", "duration"])
def test_quest_policy_normalised(store, policy):
    """Test policy names are accepted case-insensitively"""
    service = GamificationService(store, tz="UTC", quest_policy=policy)
    assert service.quest_policy.value == policy.lower()


@pytest.mark.parametrize("policy", ["random", "fix", "per-minute"])
def test_quest_policy_rejected_at_construction(store, policy):
    """Test an unknown quest policy fails when the service is built"""
    with pytest.raises(ConfigurationError) as exc_info:
        GamificationService(store, tz="UTC", quest_policy=policy)

    assert exc_info.value.config_key == "QUEST_POINTS_POLICY"


@pytest.mark.asyncio
async def test_complete_quest_with_mixed_case_policy(store, today, test_user_id):
    """Test a mixed-case policy still completes quests as a Result"""
    service = GamificationService(store, tz="UTC", quest_policy="Fixed", require_today=True)
    await store.create_profile(test_user_id)

    result = await service.complete_quest(test_user_id, 1, 20, today)

    assert result.ok
    assert result.value.points_earned == 40


# ============================================================================
# Timestamp Tests
# ============================================================================

@pytest.mark.asyncio
async def test_log_activity_naive_and_aware_timestamps(service, store, test_user_id):
    """Test naive and aware timestamps can be logged for the same user"""
    await store.create_profile(test_user_id)

    first = await service.log_activity(test_user_id, "yoga", 30, datetime(2024, 1, 15, 8))
    second = await service.log_activity(
        test_user_id, "yoga", 30, datetime(2024, 1, 15, 9, tzinfo=timezone.utc)
    )

    assert first.ok
    assert second.ok
    activities = await store.list_activities(test_user_id)
    assert len(activities) == 2
    assert all(a.created_at.tzinfo is not None for a in activities)
    assert activities[0].created_at.hour == 9

    profile = await store.get_profile(test_user_id)
    assert profile.workout_count == 2
    assert profile.streak == 1

    summary = await service.get_profile_summary(test_user_id, date(2024, 1, 15))
    assert summary.ok


@pytest.mark.asyncio
async def test_log_activity_removes_activity_when_write_raises(service, store, now, test_user_id):
    """Test the stored activity is removed when the profile write raises"""
    await store.create_profile(test_user_id)
    store.save_profile = AsyncMock(side_effect=RuntimeError("store offline"))

    with pytest.raises(RuntimeError):
        await service.log_activity(test_user_id, "running", 30, now)

    assert await store.list_activities(test_user_id) == []
