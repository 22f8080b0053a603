"""
In-memory profile and activity store

Stands in for the document store the engine is embedded in. Profile writes
are compare-and-swap on `version`: a write built from a stale snapshot is
rejected with ConflictError so the caller can re-read and retry.
"""

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional

from fitplay.exceptions import ConflictError
from fitplay.models.activity import Activity
from fitplay.models.profile import UserProfile
from fitplay.utils.datetime_helpers import ZoneLike, is_within, local_date

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Profiles and activities kept in process memory (not persisted)"""

    def __init__(self):
        self._profiles: Dict[str, UserProfile] = {}
        self._activities: Dict[str, Activity] = {}
        self._lock = asyncio.Lock()

    async def create_profile(self, user_id: str, display_name: str = "Unknown") -> UserProfile:
        """Create an empty profile (returns the existing one if present)"""
        async with self._lock:
            existing = self._profiles.get(user_id)
            if existing is not None:
                return existing
            profile = UserProfile(id=user_id, display_name=display_name, version=1)
            self._profiles[user_id] = profile
            logger.debug(f"Created profile {user_id}")
            return profile

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Current profile snapshot"""
        return self._profiles.get(user_id)

    async def list_profiles(self) -> List[UserProfile]:
        """All profiles"""
        return list(self._profiles.values())

    async def save_profile(self, profile: UserProfile, expected_version: int) -> UserProfile:
        """
        Write a profile if nobody else wrote since it was read

        Args:
            profile: New snapshot
            expected_version: Version the snapshot was derived from

        Returns:
            Stored profile with its new version

        Raises:
            ConflictError: Stored version differs from expected_version
        """
        async with self._lock:
            current = self._profiles.get(profile.id)
            actual_version = current.version if current is not None else 0

            if actual_version != expected_version:
                raise ConflictError(
                    message=f"Profile {profile.id} changed (expected v{expected_version}, found v{actual_version})",
                    expected_version=expected_version,
                    actual_version=actual_version,
                    user_id=profile.id,
                    operation="save_profile"
                )

            stored = profile.model_copy(update={"version": actual_version + 1})
            self._profiles[profile.id] = stored
            logger.debug(f"Saved profile {profile.id} v{stored.version}")
            return stored

    async def add_activity(self, activity: Activity) -> Activity:
        async with self._lock:
            self._activities[activity.id] = activity
            return activity

    async def get_activity(self, activity_id: str) -> Optional[Activity]:
        return self._activities.get(activity_id)

    async def delete_activity(self, activity_id: str) -> Optional[Activity]:
        """Remove an activity; returns it, or None if it did not exist"""
        async with self._lock:
            return self._activities.pop(activity_id, None)

    async def list_activities(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        tz: ZoneLike = None
    ) -> List[Activity]:
        """
        A user's activities, newest first, optionally within [start, end]

        Args:
            user_id: Owner
            start: First local date to include
            end: Last local date to include
            tz: Zone used for the date filter
        """
        activities = [
            a for a in self._activities.values()
            if a.user_id == user_id and is_within(local_date(a.created_at, tz), start, end)
        ]
        activities.sort(key=lambda a: a.created_at, reverse=True)
        return activities
