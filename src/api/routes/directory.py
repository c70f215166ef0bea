"""Read-only town and shop lookups."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.models.catalog import Shop, Town
from src.services.catalog.store import CatalogStoreDependency

router = APIRouter(tags=["directory"])


@router.get("/towns", response_model=list[Town], summary="List towns by name")
async def list_towns(store: CatalogStoreDependency) -> list[Town]:
    return await store.list_towns()


@router.get("/shops/{shop_id}", response_model=Shop)
async def get_shop(shop_id: str, store: CatalogStoreDependency) -> Shop:
    shop = await store.get_shop(shop_id)
    if shop is None:
        raise HTTPException(status_code=404, detail="Shop not found")
    return shop
