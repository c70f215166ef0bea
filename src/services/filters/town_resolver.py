"""Default town derivation for a shopper."""

from __future__ import annotations

import logging

from src.services.filters.session_store import TownPreferenceStore
from src.services.profiles import ProfileStore

logger = logging.getLogger(__name__)


class TownResolver:
    """Remembered override first, then the profile's registered town."""

    def __init__(self, preferences: TownPreferenceStore, profiles: ProfileStore):
        self._preferences = preferences
        self._profiles = profiles

    async def resolve(self, user_id: str) -> str | None:
        override = await self._preferences.get_override(user_id)
        if override:
            return override

        town = await self._profiles.registered_town(user_id)
        if town is None:
            logger.info("No default town for user %s", user_id)
        return town

    async def remember(self, user_id: str, town: str) -> None:
        await self._preferences.remember(user_id, town)
