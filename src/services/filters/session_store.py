"""Redis-backed persistence for filter state and remembered towns."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from pydantic import ValidationError

from src.config import settings
from src.models.filters import FilterState

logger = logging.getLogger(__name__)


class FilterSessionStore:
    """Stores the persisted-session filter layer, keyed by session id."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._prefix = settings.FILTER_SESSION_KEY_PREFIX
        self._ttl = settings.FILTER_SESSION_TTL_SECONDS

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def load(self, session_id: str) -> FilterState | None:
        raw = await self._client.get(self._key(session_id))
        if not raw:
            return None
        try:
            return FilterState.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable filter state for session %s", session_id)
            return None

    async def save(self, session_id: str, state: FilterState) -> None:
        await self._client.set(
            self._key(session_id), state.model_dump_json(), ex=self._ttl
        )

    async def delete(self, session_id: str) -> None:
        await self._client.delete(self._key(session_id))


class TownPreferenceStore:
    """Remembers the browsing town a user picked in the town selector."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._prefix = settings.TOWN_OVERRIDE_KEY_PREFIX

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}{user_id}"

    async def get_override(self, user_id: str) -> str | None:
        value = await self._client.get(self._key(user_id))
        return value or None

    async def remember(self, user_id: str, town: str) -> None:
        await self._client.set(self._key(user_id), town)
