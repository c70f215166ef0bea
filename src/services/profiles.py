"""Read access to shopper profiles."""

from __future__ import annotations

import logging

import redis.asyncio as redis

from src.config import settings
from src.models.catalog import UserProfile

logger = logging.getLogger(__name__)


class ProfileStore:
    """Profiles stored as JSON documents in a Redis hash keyed by user id."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._key = settings.PROFILE_KEY

    async def get(self, user_id: str) -> UserProfile | None:
        raw = await self._client.hget(self._key, user_id)
        if not raw:
            return None
        return UserProfile.model_validate_json(raw)

    async def save(self, profile: UserProfile) -> None:
        await self._client.hset(self._key, profile.user_id, profile.model_dump_json())
        logger.info("Stored profile for user %s", profile.user_id)

    async def registered_town(self, user_id: str) -> str | None:
        profile = await self.get(user_id)
        if profile is None:
            return None
        return (profile.town or "").strip() or None
