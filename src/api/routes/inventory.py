"""Routes used by merchant and admin tooling to seed the catalog."""

from __future__ import annotations

import logging
import uuid
from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends, HTTPException, status

from src.models.catalog import Product, Shop, Town, TownCreateRequest, UserProfile
from src.services.catalog.store import CatalogStoreDependency, DuplicateTownError
from src.services.profiles import ProfileStore
from src.services.storage.redis_client import get_redis_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])

RedisDependency = Annotated[redis.Redis, Depends(get_redis_client)]


@router.post(
    "/towns",
    response_model=Town,
    status_code=status.HTTP_201_CREATED,
    summary="Register a town",
)
async def register_town(
    payload: TownCreateRequest,
    store: CatalogStoreDependency,
) -> Town:
    try:
        town = Town(id=str(uuid.uuid4()), name=payload.name)
        await store.add_town(town)
    except DuplicateTownError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Town name is required") from exc
    return town


@router.post(
    "/shops",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Register or update a shop",
)
async def register_shop(
    payload: Shop,
    store: CatalogStoreDependency,
) -> dict[str, str]:
    await store.upsert_shop(payload)
    return {"status": "accepted", "shop_id": payload.id}


@router.post(
    "/products",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Register or update multiple products",
)
async def register_products(
    payload: list[Product],
    store: CatalogStoreDependency,
) -> dict:
    shop_ids = sorted({product.shop_id for product in payload})
    known = await store.get_shops(shop_ids)
    missing = [shop_id for shop_id in shop_ids if shop_id not in known]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown shops: {', '.join(missing)}",
        )

    count = await store.upsert_products(payload)
    logger.info(
        "[product-registration]",
        extra={"count": count, "shop_ids": shop_ids},
    )
    return {
        "status": "accepted",
        "count": count,
        "product_ids": [p.id for p in payload],
    }


@router.post(
    "/profiles",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Register or update a shopper profile",
)
async def register_profile(
    payload: UserProfile,
    client: RedisDependency,
) -> dict[str, str]:
    await ProfileStore(client).save(payload)
    return {"status": "accepted", "user_id": payload.user_id}
