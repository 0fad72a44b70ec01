"""Profile Store: latest derived UserPreferenceProfile per user."""

from threading import Lock
from typing import Dict, Optional, Protocol

from ..models.profile import UserPreferenceProfile


class ProfileStore(Protocol):
    def get(self, user_id: str) -> Optional[UserPreferenceProfile]:
        ...

    def get_or_create(self, user_id: str) -> UserPreferenceProfile:
        ...

    def put(self, profile: UserPreferenceProfile) -> None:
        ...


class InMemoryProfileStore:
    def __init__(self):
        self._profiles: Dict[str, UserPreferenceProfile] = {}
        self._lock = Lock()

    def get(self, user_id: str) -> Optional[UserPreferenceProfile]:
        return self._profiles.get(user_id)

    def get_or_create(self, user_id: str) -> UserPreferenceProfile:
        """Return the stored profile, or a cold-start profile (not persisted)."""
        return self._profiles.get(user_id) or UserPreferenceProfile.empty(user_id)

    def put(self, profile: UserPreferenceProfile) -> None:
        with self._lock:
            self._profiles[profile.user_id] = profile
