"""Wishlist and booking ledgers with flip semantics."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.config import settings
from src.models.ledger import (
    LedgerItem,
    LedgerType,
    ToggleAction,
    ToggleEntry,
    VariantSnapshot,
)
from src.services.catalog.store import CatalogStore
from src.services.ledger.locks import KeyedLock

logger = logging.getLogger(__name__)


class LedgerWriteError(RuntimeError):
    """The toggle could not be persisted and did not take effect."""


class ToggleLedger:
    """Set membership per (user, product), stored as a Redis hash per user.

    A toggle creates the entry when absent and deletes it when present; the
    variant snapshot of an existing entry is never updated. Toggles on the
    same key are serialized, and creation uses HSETNX so that two racing
    toggles cannot both add.
    """

    def __init__(
        self,
        client: redis.Redis,
        ledger_type: LedgerType,
        store: CatalogStore,
        locks: KeyedLock,
    ):
        self._client = client
        self.ledger_type = ledger_type
        self._store = store
        self._locks = locks
        self._prefix = f"{settings.LEDGER_KEY_PREFIX}{ledger_type.value}:"

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}{user_id}"

    async def toggle(
        self,
        user_id: str,
        product_id: str,
        snapshot: VariantSnapshot | None = None,
    ) -> ToggleAction:
        snapshot = snapshot or VariantSnapshot()
        entry = ToggleEntry(
            user_id=user_id,
            product_id=product_id,
            **snapshot.model_dump(),
        )

        async with self._locks.hold((self.ledger_type, user_id, product_id)):
            try:
                created = await self._client.hsetnx(
                    self._key(user_id), product_id, entry.model_dump_json()
                )
                if created:
                    action: ToggleAction = "added"
                else:
                    await self._client.hdel(self._key(user_id), product_id)
                    action = "removed"
            except RedisError as exc:
                logger.error(
                    "Failed to toggle %s entry: %s",
                    self.ledger_type.value,
                    exc,
                    extra={"user_id": user_id, "product_id": product_id},
                )
                raise LedgerWriteError(
                    f"{self.ledger_type.value} toggle did not take effect"
                ) from exc

        logger.info(
            "[ledger-toggle]",
            extra={
                "ledger": self.ledger_type.value,
                "user_id": user_id,
                "product_id": product_id,
                "action": action,
            },
        )
        return action

    async def is_toggled(self, user_id: str, product_id: str) -> bool:
        return bool(await self._client.hexists(self._key(user_id), product_id))

    async def entries(self, user_id: str) -> list[ToggleEntry]:
        raw = await self._client.hgetall(self._key(user_id))
        entries = [ToggleEntry.model_validate_json(doc) for doc in raw.values()]
        return sorted(entries, key=lambda e: (-e.created_at.timestamp(), e.product_id))

    async def list_items(self, user_id: str) -> list[LedgerItem]:
        """Entries joined with current product data, newest first."""
        entries = await self.entries(user_id)
        products = await self._store.get_products([e.product_id for e in entries])
        shops = await self._store.get_shops(
            sorted({p.shop_id for p in products.values()})
        )

        items: list[LedgerItem] = []
        for entry in entries:
            product = products.get(entry.product_id)
            if product is None:
                logger.debug(
                    "Skipping %s entry for missing product %s",
                    self.ledger_type.value,
                    entry.product_id,
                )
                continue
            shop = shops.get(product.shop_id)
            items.append(
                LedgerItem(
                    product_id=product.id,
                    name=product.name,
                    brand=product.brand,
                    price=product.price,
                    original_price=product.original_price,
                    images=product.images,
                    rating=product.rating,
                    review_count=product.review_count,
                    shop_name=shop.name if shop else None,
                    size=entry.size,
                    variant=entry.variant,
                    color=entry.color,
                    created_at=entry.created_at,
                )
            )
        return items


_toggle_locks = KeyedLock()


def get_toggle_locks() -> KeyedLock:
    """Locks shared by every ledger instance in the process."""

    return _toggle_locks
