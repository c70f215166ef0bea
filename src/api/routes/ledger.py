"""Routes for the wishlist and booking toggle ledgers."""

from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends, HTTPException, status

from src.api.auth import CurrentUser
from src.models.ledger import (
    LedgerListResponse,
    LedgerType,
    MembershipResponse,
    ToggleRequest,
    ToggleResponse,
    VariantSnapshot,
)
from src.services.catalog.store import CatalogStoreDependency
from src.services.ledger.locks import KeyedLock
from src.services.ledger.toggle_ledger import (
    LedgerWriteError,
    ToggleLedger,
    get_toggle_locks,
)
from src.services.storage.redis_client import get_redis_client

RedisDependency = Annotated[redis.Redis, Depends(get_redis_client)]
LocksDependency = Annotated[KeyedLock, Depends(get_toggle_locks)]


def _ledger_dependency(ledger_type: LedgerType):
    def _build(
        client: RedisDependency,
        store: CatalogStoreDependency,
        locks: LocksDependency,
    ) -> ToggleLedger:
        return ToggleLedger(client, ledger_type, store, locks)

    return _build


def _build_router(prefix: str, ledger_type: LedgerType) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[ledger_type.value])
    LedgerDependency = Annotated[ToggleLedger, Depends(_ledger_dependency(ledger_type))]

    @router.post(
        "",
        response_model=ToggleResponse,
        summary=f"Toggle a product in the {ledger_type.value} ledger",
    )
    async def toggle(
        payload: ToggleRequest,
        user_id: CurrentUser,
        ledger: LedgerDependency,
    ) -> ToggleResponse:
        snapshot = VariantSnapshot(
            size=payload.size,
            variant=payload.variant,
            color=payload.color,
        )
        try:
            action = await ledger.toggle(user_id, payload.product_id, snapshot)
        except LedgerWriteError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=str(exc),
            ) from exc
        return ToggleResponse(product_id=payload.product_id, action=action)

    @router.get("", response_model=LedgerListResponse)
    async def list_items(
        user_id: CurrentUser,
        ledger: LedgerDependency,
    ) -> LedgerListResponse:
        return LedgerListResponse(items=await ledger.list_items(user_id))

    @router.get("/{product_id}", response_model=MembershipResponse)
    async def membership(
        product_id: str,
        user_id: CurrentUser,
        ledger: LedgerDependency,
    ) -> MembershipResponse:
        toggled = await ledger.is_toggled(user_id, product_id)
        return MembershipResponse(product_id=product_id, toggled=toggled)

    return router


wishlist_router = _build_router("/wishlist", LedgerType.WISHLIST)
booking_router = _build_router("/booked", LedgerType.BOOKING)
