"""Pytest configuration and fixtures for the catalog service."""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from src.models.catalog import Product, Shop, Town, UserProfile
from src.services.catalog.engine import get_session_registry
from src.services.catalog.store import RedisCatalogStore
from src.services.filters.session_store import FilterSessionStore, TownPreferenceStore
from src.services.filters.town_resolver import TownResolver
from src.services.profiles import ProfileStore
from src.services.storage.redis_client import get_redis_client

_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)

SHOPS = [
    Shop(id="shop-mum-1", name="Mumbai Fashion Store", town="Mumbai", is_verified=True),
    Shop(id="shop-mum-2", name="Bandra Styles", town="Mumbai"),
    Shop(id="shop-kun-1", name="Kundapura Market", town="Kundapura"),
    Shop(id="shop-kot-1", name="Koteshwara Local Store", town="KOTESHWARA"),
]


def _product(pid, name, brand, category, price, rating, shop_id, day, **extra):
    return Product(
        id=pid,
        name=name,
        brand=brand,
        category=category,
        price=price,
        rating=rating,
        shop_id=shop_id,
        created_at=_EPOCH + timedelta(days=day),
        **extra,
    )


PRODUCTS = [
    _product("p-001", "Classic Denim Jacket", "Levis", "Men's Clothing", 2499, 4.5, "shop-mum-1", 1),
    _product("p-002", "Cotton Kurta", "FabIndia", "Women's Clothing", 800, 4.5, "shop-mum-1", 5),
    _product("p-003", "Running Shoes", "Nike", "Footwear", 3200, 4.8, "shop-mum-2", 3, sizes=["8", "9"]),
    _product("p-004", "Leather Wallet", "Woodland", "Accessories", 450, 3.9, "shop-mum-2", 2),
    _product("p-005", "Kids T-Shirt", "Nike", "Kids Clothing", 1200, 4.0, "shop-mum-1", 4),
    _product("p-006", "Old Sneakers", "Nike", "Footwear", 999, 5.0, "shop-mum-2", 6, is_active=False),
    _product("p-007", "Silk Saree", "FabIndia", "Women's Clothing", 2999, 4.9, "shop-kun-1", 7),
    _product("p-008", "Denim Jeans", "Levis", "Men's Clothing", 1500, 4.2, "shop-kun-1", 8),
    _product("p-009", "Sports Bottle", "Decathlon", "Sports & Fitness", 300, 4.1, "shop-kot-1", 9),
]

TOWNS = ["Mumbai", "Kundapura", "KOTESHWARA"]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    from src.main import app

    client = fakeredis.FakeRedis(decode_responses=True)
    app.dependency_overrides[get_redis_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_redis_client, None)
        get_session_registry().clear()


@pytest.fixture()
def catalog_store(redis_client):
    return RedisCatalogStore(redis_client)


@pytest_asyncio.fixture()
async def seeded_store(catalog_store, redis_client):
    """Catalog with shops in Mumbai, Kundapura and KOTESHWARA plus profiles."""
    for index, name in enumerate(TOWNS):
        await catalog_store.add_town(Town(id=f"town-{index}", name=name))
    for shop in SHOPS:
        await catalog_store.upsert_shop(shop)
    await catalog_store.upsert_products(PRODUCTS)

    profiles = ProfileStore(redis_client)
    await profiles.save(UserProfile(user_id="user-mumbai", name="Asha", town="Mumbai"))
    await profiles.save(UserProfile(user_id="user-kundapura", name="Ravi", town="Kundapura"))
    await profiles.save(UserProfile(user_id="user-new", name="Neel"))
    return catalog_store


@pytest.fixture()
def session_store(redis_client):
    return FilterSessionStore(redis_client)


@pytest.fixture()
def town_resolver(redis_client):
    return TownResolver(TownPreferenceStore(redis_client), ProfileStore(redis_client))


@pytest_asyncio.fixture()
async def client(redis_client):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from src.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
