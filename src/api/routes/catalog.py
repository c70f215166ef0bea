"""Routes exposing the per-session catalog filter engine."""

from __future__ import annotations

import logging
from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.auth import CurrentUser
from src.models.filters import (
    DraftMutation,
    FacetOptions,
    FilterLayer,
    FilterState,
    QuickSelection,
    TownSwitchRequest,
)
from src.models.listing import CatalogSnapshot, SessionStartRequest
from src.services.catalog.engine import (
    CatalogSessionEngine,
    CatalogSessionRegistry,
    get_session_registry,
)
from src.services.catalog.store import CatalogStoreDependency
from src.services.filters.session_store import FilterSessionStore, TownPreferenceStore
from src.services.filters.town_resolver import TownResolver
from src.services.profiles import ProfileStore
from src.services.storage.redis_client import get_redis_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog/sessions", tags=["catalog"])

RedisDependency = Annotated[redis.Redis, Depends(get_redis_client)]
RegistryDependency = Annotated[CatalogSessionRegistry, Depends(get_session_registry)]


def _get_engine(
    session_id: str,
    user_id: CurrentUser,
    registry: RegistryDependency,
) -> CatalogSessionEngine:
    engine = registry.get(session_id)
    if engine is None:
        raise HTTPException(status_code=404, detail="Unknown catalog session")
    if engine.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Catalog session belongs to another user",
        )
    return engine


EngineDependency = Annotated[CatalogSessionEngine, Depends(_get_engine)]


@router.post(
    "",
    response_model=CatalogSnapshot,
    summary="Start or re-enter a catalog session",
)
async def start_session(
    payload: SessionStartRequest,
    user_id: CurrentUser,
    registry: RegistryDependency,
    store: CatalogStoreDependency,
    client: RedisDependency,
) -> CatalogSnapshot:
    engine = registry.get(payload.session_id)
    if engine is not None:
        if engine.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Catalog session belongs to another user",
            )
        return await engine.get_product_page()

    engine = await CatalogSessionEngine.start(
        payload.session_id,
        user_id,
        store=store,
        sessions=FilterSessionStore(client),
        resolver=TownResolver(TownPreferenceStore(client), ProfileStore(client)),
    )
    registry.put(engine)
    return engine.snapshot()


@router.get("/{session_id}", response_model=CatalogSnapshot)
async def get_session(engine: EngineDependency) -> CatalogSnapshot:
    return engine.snapshot()


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave the catalog view; persisted filters are kept",
)
async def leave_session(
    engine: EngineDependency,
    registry: RegistryDependency,
) -> None:
    registry.discard(engine.session_id)


@router.get("/{session_id}/filters", response_model=FilterState)
async def get_filters(
    engine: EngineDependency,
    layer: FilterLayer = Query("applied"),
) -> FilterState:
    state = engine.current_filter_state(layer)
    if state is None:
        raise HTTPException(status_code=404, detail=f"No {layer} filters")
    return state


@router.post("/{session_id}/filters/open", response_model=FilterState)
async def open_filter_panel(engine: EngineDependency) -> FilterState:
    return engine.open_filter_panel()


@router.patch("/{session_id}/filters/draft", response_model=FilterState)
async def mutate_draft(
    payload: DraftMutation,
    engine: EngineDependency,
) -> FilterState:
    try:
        return engine.mutate_draft(payload.dimension, payload.value)
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from exc


@router.post("/{session_id}/filters/apply", response_model=CatalogSnapshot)
async def apply_filters(engine: EngineDependency) -> CatalogSnapshot:
    return await engine.apply_filters()


@router.post("/{session_id}/filters/clear", response_model=CatalogSnapshot)
async def clear_filters(engine: EngineDependency) -> CatalogSnapshot:
    return await engine.clear_all()


@router.post(
    "/{session_id}/filters/select",
    response_model=CatalogSnapshot,
    summary="Apply a category tab, sort or search change immediately",
)
async def quick_select(
    payload: QuickSelection,
    engine: EngineDependency,
) -> CatalogSnapshot:
    try:
        return await engine.quick_select(payload.dimension, payload.value)
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from exc


@router.post("/{session_id}/town", response_model=CatalogSnapshot)
async def switch_town(
    payload: TownSwitchRequest,
    engine: EngineDependency,
) -> CatalogSnapshot:
    logger.info("Session %s switching town to %s", engine.session_id, payload.town)
    return await engine.switch_town(payload.town)


@router.get("/{session_id}/products", response_model=CatalogSnapshot)
async def get_products(engine: EngineDependency) -> CatalogSnapshot:
    return await engine.get_product_page()


@router.post("/{session_id}/products/next", response_model=CatalogSnapshot)
async def load_next_page(
    engine: EngineDependency,
    generation: int | None = Query(
        None,
        description="Generation the caller's listing belongs to",
    ),
) -> CatalogSnapshot:
    return await engine.load_next_page(generation)


@router.get("/{session_id}/facets", response_model=FacetOptions)
async def get_facets(
    engine: EngineDependency,
    layer: FilterLayer = Query("applied"),
) -> FacetOptions:
    if layer == "persisted":
        raise HTTPException(status_code=422, detail="Facets exist for applied or draft")
    options = await engine.get_facet_options(layer)
    if options is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Town is not resolved yet",
        )
    return options
