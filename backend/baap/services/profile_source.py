"""Traveler profile lookup.

The pipeline only reads profiles. Anything with a matching
`get_user_profile(user_id)` can serve them; unknown users return None.
"""

import logging
from typing import Protocol

from baap.services.guarantee.models import UserProfile

logger = logging.getLogger(__name__)


class UserProfileSource(Protocol):
    def get_user_profile(self, user_id: str) -> UserProfile | None: ...


class InMemoryProfileSource:
    """Serves a fixed set of profiles, keyed by user id."""

    def __init__(self, profiles: list[UserProfile] | None = None):
        self._profiles: dict[str, UserProfile] = {p.user_id: p for p in profiles or []}

    def add(self, profile: UserProfile) -> None:
        self._profiles[profile.user_id] = profile

    def get_user_profile(self, user_id: str) -> UserProfile | None:
        profile = self._profiles.get(user_id)
        if profile is None:
            logger.debug(f"No profile for user {user_id}")
        return profile
