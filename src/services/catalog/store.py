"""Catalog store abstraction and its Redis-backed implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Annotated, Literal

import redis.asyncio as redis
from fastapi import Depends

from src.config import settings
from src.models.catalog import Product, Shop, Town
from src.services.catalog.query_compiler import CompiledQuery
from src.services.storage.redis_client import get_redis_client

logger = logging.getLogger(__name__)

FacetField = Literal["brand", "category", "shop"]


class DuplicateTownError(ValueError):
    """Raised when registering a town name that already exists."""


class CatalogStore(ABC):
    """Read access to products joined with their shops, plus seeding."""

    @abstractmethod
    async def query(
        self,
        compiled: CompiledQuery,
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        """Return one ordered slice of matching products and the total count."""

    @abstractmethod
    async def distinct(self, field: FacetField, towns: Iterable[str]) -> list[str]:
        """Distinct non-blank values of a field over active products in towns."""

    @abstractmethod
    async def get_products(self, product_ids: Sequence[str]) -> dict[str, Product]:
        """Fetch products by id; unknown ids are left out."""

    @abstractmethod
    async def get_shop(self, shop_id: str) -> Shop | None:
        """Fetch a shop by id."""

    @abstractmethod
    async def get_shops(self, shop_ids: Sequence[str]) -> dict[str, Shop]:
        """Fetch shops by id; unknown ids are left out."""

    @abstractmethod
    async def list_towns(self) -> list[Town]:
        """All registered towns sorted by name."""

    @abstractmethod
    async def upsert_products(self, products: Sequence[Product]) -> int:
        """Create or replace products."""

    @abstractmethod
    async def upsert_shop(self, shop: Shop) -> None:
        """Create or replace a shop."""

    @abstractmethod
    async def add_town(self, town: Town) -> None:
        """Register a town, raising DuplicateTownError when the name exists."""


class RedisCatalogStore(CatalogStore):
    """Keeps products, shops and towns as JSON documents in Redis hashes.

    Predicates are evaluated in process after loading the hashes, which keeps
    the store schema-free like the document collections it stands in for.
    """

    def __init__(self, client: redis.Redis, prefix: str | None = None):
        self._client = client
        self._prefix = prefix if prefix is not None else settings.CATALOG_KEY_PREFIX

    @property
    def _products_key(self) -> str:
        return f"{self._prefix}products"

    @property
    def _shops_key(self) -> str:
        return f"{self._prefix}shops"

    @property
    def _towns_key(self) -> str:
        return f"{self._prefix}towns"

    async def query(
        self,
        compiled: CompiledQuery,
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        products = await self._all_products()
        shops = await self._all_shops()
        matching = [
            product
            for product in products
            if compiled.matches(product, shops.get(product.shop_id))
        ]
        ordered = compiled.order(matching)
        logger.debug(
            "Catalog query matched %d products",
            len(ordered),
            extra={"query": compiled.describe(), "offset": offset, "limit": limit},
        )
        return ordered[offset : offset + limit], len(ordered)

    async def distinct(self, field: FacetField, towns: Iterable[str]) -> list[str]:
        scope = set(towns)
        products = await self._all_products()
        shops = await self._all_shops()
        values: set[str] = set()
        for product in products:
            shop = shops.get(product.shop_id)
            if not product.is_active or shop is None or shop.town not in scope:
                continue
            if field == "shop":
                value = shop.name
            elif field == "brand":
                value = product.brand
            else:
                value = product.category
            if value and value.strip():
                values.add(value)
        return sorted(values)

    async def get_products(self, product_ids: Sequence[str]) -> dict[str, Product]:
        if not product_ids:
            return {}
        raw = await self._client.hmget(self._products_key, list(product_ids))
        return {
            product.id: product
            for product in (Product.model_validate_json(doc) for doc in raw if doc)
        }

    async def get_shop(self, shop_id: str) -> Shop | None:
        raw = await self._client.hget(self._shops_key, shop_id)
        if not raw:
            return None
        return Shop.model_validate_json(raw)

    async def get_shops(self, shop_ids: Sequence[str]) -> dict[str, Shop]:
        if not shop_ids:
            return {}
        raw = await self._client.hmget(self._shops_key, list(shop_ids))
        return {
            shop.id: shop
            for shop in (Shop.model_validate_json(doc) for doc in raw if doc)
        }

    async def list_towns(self) -> list[Town]:
        raw = await self._client.hgetall(self._towns_key)
        towns = [Town.model_validate_json(doc) for doc in raw.values()]
        return sorted(towns, key=lambda town: town.name)

    async def upsert_products(self, products: Sequence[Product]) -> int:
        if not products:
            return 0
        await self._client.hset(
            self._products_key,
            mapping={product.id: product.model_dump_json() for product in products},
        )
        logger.info("Stored %d products", len(products))
        return len(products)

    async def upsert_shop(self, shop: Shop) -> None:
        await self._client.hset(self._shops_key, shop.id, shop.model_dump_json())
        logger.info("Stored shop %s in town %s", shop.id, shop.town)

    async def add_town(self, town: Town) -> None:
        created = await self._client.hsetnx(
            self._towns_key, town.name, town.model_dump_json()
        )
        if not created:
            raise DuplicateTownError(f"Town already exists: {town.name}")
        logger.info("Registered town %s", town.name)

    async def _all_products(self) -> list[Product]:
        raw = await self._client.hgetall(self._products_key)
        return [Product.model_validate_json(doc) for doc in raw.values()]

    async def _all_shops(self) -> dict[str, Shop]:
        raw = await self._client.hgetall(self._shops_key)
        return {shop_id: Shop.model_validate_json(doc) for shop_id, doc in raw.items()}


def get_catalog_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> CatalogStore:
    """FastAPI dependency factory."""

    return RedisCatalogStore(client)


CatalogStoreDependency = Annotated[CatalogStore, Depends(get_catalog_store)]
