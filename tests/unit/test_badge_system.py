"""Unit tests for Badge System (fitplay/gamification/badge_system.py)"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from fitplay.gamification.badge_system import (
    BADGE_CATALOG,
    RARITY_COLORS,
    award_badges,
    badge_progress,
    evaluate,
    get_badge,
)
from fitplay.models.activity import ActivityType
from fitplay.models.catalog import Badge, BadgeRequirement, Rarity
from fitplay.models.profile import SocialStats


def ids(badges):
    return [b.id for b in badges]


# ============================================================================
# Catalog Tests
# ============================================================================

def test_catalog_ids_unique():
    """Test every badge id appears once"""
    all_ids = ids(BADGE_CATALOG)
    assert len(all_ids) == len(set(all_ids))


def test_every_rarity_has_color():
    """Test rarity color table is complete"""
    assert set(RARITY_COLORS) == set(Rarity)


def test_distance_badge_requires_activity_type():
    """Test a distance badge without an activity filter is rejected"""
    with pytest.raises(PydanticValidationError):
        Badge(id="far", name="Far", requirement_type=BadgeRequirement.DISTANCE, requirement_value=10)


def test_get_badge():
    """Test badge lookup by id"""
    assert get_badge("yogi").requirement_value == 25
    assert get_badge("doesNotExist") is None


# ============================================================================
# Evaluation Tests
# ============================================================================

def test_evaluate_empty_history(profile_factory):
    """Test that a fresh profile earns nothing"""
    assert evaluate(profile_factory(), [], tz="UTC") == []


def test_evaluate_first_workout(profile_factory, activity_factory):
    """Test the first workout badge"""
    profile = profile_factory(workout_count=1)
    result = evaluate(profile, [activity_factory()], tz="UTC")

    assert ids(result) == ["beginner"]


def test_evaluate_returns_catalog_order(profile_factory):
    """Test multiple badges come back in catalog order"""
    profile = profile_factory(workout_count=20, total_points=5000, streak=3)
    result = evaluate(profile, [], tz="UTC")

    assert ids(result) == ["beginner", "consistent", "dedicated", "pointMaster", "streakStarter"]


def test_evaluate_is_idempotent(profile_factory, activity_factory):
    """Test that evaluating again after awarding returns nothing new"""
    profile = profile_factory(workout_count=5)
    history = [activity_factory()]

    first = evaluate(profile, history, tz="UTC")
    awarded = award_badges(profile, first)
    second = evaluate(awarded, history, tz="UTC")

    assert ids(first) == ["beginner", "consistent"]
    assert second == []


def test_evaluate_skips_held_badges(profile_factory):
    """Test a held badge is never returned"""
    profile = profile_factory(workout_count=5, badges=["beginner"])
    assert ids(evaluate(profile, [], tz="UTC")) == ["consistent"]


def test_evaluate_distance_per_activity_type(profile_factory, activity_factory):
    """Test running distance counts toward Marathon Runner, cycling does not"""
    profile = profile_factory()
    runs = [activity_factory(ActivityType.RUNNING, distance_km=25.0, days_ago=n) for n in range(4)]
    rides = [activity_factory(ActivityType.CYCLING, distance_km=150.0)]

    assert "marathonRunner" in ids(evaluate(profile, runs, tz="UTC"))
    assert "marathonRunner" not in ids(evaluate(profile, runs[:3] + rides, tz="UTC"))


def test_evaluate_activity_count(profile_factory, activity_factory):
    """Test 25 yoga sessions earn Yogi"""
    profile = profile_factory()
    sessions = [activity_factory(ActivityType.YOGA, days_ago=n % 3) for n in range(25)]

    assert "yogi" in ids(evaluate(profile, sessions, tz="UTC"))
    assert "yogi" not in ids(evaluate(profile, sessions[:24], tz="UTC"))


def test_evaluate_single_duration(profile_factory, activity_factory):
    """Test a 60-minute session earns Hour Warrior but not Iron Man"""
    result = ids(evaluate(profile_factory(), [activity_factory(duration_minutes=60)], tz="UTC"))

    assert "hourWarrior" in result
    assert "ironMan" not in result


def test_evaluate_early_bird(profile_factory, activity_factory):
    """Test a session before 7 AM local time earns Early Bird"""
    early = [activity_factory(hour=6)]
    on_the_hour = [activity_factory(hour=7)]

    assert "earlyBird" in ids(evaluate(profile_factory(), early, tz="UTC"))
    assert "earlyBird" not in ids(evaluate(profile_factory(), on_the_hour, tz="UTC"))


def test_evaluate_night_owl(profile_factory, activity_factory):
    """Test a session at or after 10 PM local time earns Night Owl"""
    late = [activity_factory(hour=22)]
    evening = [activity_factory(hour=21)]

    assert "nightOwl" in ids(evaluate(profile_factory(), late, tz="UTC"))
    assert "nightOwl" not in ids(evaluate(profile_factory(), evening, tz="UTC"))


def test_evaluate_time_of_day_uses_zone(profile_factory, activity_factory):
    """Test time of day is read in the rule zone (New York is UTC-5 in January)"""
    activity = [activity_factory(hour=14)]  # 09:00 in New York

    assert "earlyBird" not in ids(evaluate(profile_factory(), activity, tz="America/New_York"))
    assert "earlyBird" in ids(evaluate(profile_factory(), [activity_factory(hour=6)], tz="America/New_York"))


def test_evaluate_week_warrior(profile_factory, activity_factory):
    """Test seven consecutive active days earn Week Warrior"""
    week = [activity_factory(days_ago=n) for n in range(7)]
    six_days = [activity_factory(days_ago=n) for n in range(6)]

    assert "weekWarrior" in ids(evaluate(profile_factory(), week, tz="UTC"))
    assert "weekWarrior" not in ids(evaluate(profile_factory(), six_days, tz="UTC"))


def test_evaluate_social_badges(profile_factory):
    """Test friend and challenge badges use social stats"""
    social = SocialStats(friend_count=5, challenges_joined=3)
    result = ids(evaluate(profile_factory(), [], tz="UTC", social=social))

    assert "socialButterfly" in result
    assert "competitor" in result


def test_evaluate_custom_catalog(profile_factory):
    """Test an injected badge catalog replaces the built-ins"""
    catalog = [
        Badge(id="firstHundred", name="First Hundred",
              requirement_type=BadgeRequirement.POINTS, requirement_value=100),
    ]
    result = evaluate(profile_factory(total_points=150, workout_count=10), [], tz="UTC", catalog=catalog)

    assert ids(result) == ["firstHundred"]


# ============================================================================
# Award & Progress Tests
# ============================================================================

def test_award_badges_returns_copy(profile_factory):
    """Test awarding never mutates the input snapshot"""
    profile = profile_factory()
    updated = award_badges(profile, [get_badge("beginner")])

    assert profile.badges == []
    assert updated.badges == ["beginner"]


def test_award_badges_no_duplicates(profile_factory):
    """Test awarding an already-held badge is a no-op"""
    profile = profile_factory(badges=["beginner"])
    assert award_badges(profile, [get_badge("beginner")]).badges == ["beginner"]


def test_badge_progress_distance(profile_factory, activity_factory):
    """Test progress toward Marathon Runner"""
    runs = [activity_factory(ActivityType.RUNNING, distance_km=25.0)]
    result = badge_progress(get_badge("marathonRunner"), profile_factory(), runs, tz="UTC")

    assert result["current"] == 25.0
    assert result["required"] == 100
    assert result["percentage"] == 25
    assert result["earned"] is False


def test_badge_progress_capped(profile_factory):
    """Test progress never exceeds 100%"""
    result = badge_progress(get_badge("beginner"), profile_factory(workout_count=7), [], tz="UTC")

    assert result["percentage"] == 100
    assert result["earned"] is True
