"""Per-session catalog engine exposed to the UI layer."""

from __future__ import annotations

import asyncio
import logging
from threading import RLock
from typing import Any

from src.models.filters import FacetOptions, FilterDimension, FilterLayer, FilterState
from src.models.listing import CatalogSnapshot
from src.services.catalog.facets import FacetIndexBuilder
from src.services.catalog.pagination import ListingState, PaginationController
from src.services.catalog.query_compiler import compile_query
from src.services.catalog.store import CatalogStore
from src.services.filters.session_store import FilterSessionStore
from src.services.filters.state_machine import FilterStateMachine, Transition
from src.services.filters.town_resolver import TownResolver

logger = logging.getLogger(__name__)


class CatalogSessionEngine:
    """Wires filter layers, query compilation, paging and facets together.

    Every public coroutine returns a fresh snapshot; re-rendering is up to
    the caller. Queries stay suspended until a town is resolved.
    """

    def __init__(
        self,
        session_id: str,
        user_id: str,
        *,
        machine: FilterStateMachine,
        store: CatalogStore,
        sessions: FilterSessionStore,
        resolver: TownResolver,
        page_size: int | None = None,
    ) -> None:
        self.session_id = session_id
        self.user_id = user_id
        self._machine = machine
        self._sessions = sessions
        self._resolver = resolver
        self._paginator = PaginationController(store, page_size)
        self._facets = FacetIndexBuilder(store)
        self._listing = ListingState(self._paginator.page_size)

    @classmethod
    async def start(
        cls,
        session_id: str,
        user_id: str,
        *,
        store: CatalogStore,
        sessions: FilterSessionStore,
        resolver: TownResolver,
        page_size: int | None = None,
    ) -> CatalogSessionEngine:
        """Build an engine, restoring persisted filters when present."""
        default_town = await resolver.resolve(user_id)
        restored = await sessions.load(session_id)
        machine = FilterStateMachine(default_town, restored)
        engine = cls(
            session_id,
            user_id,
            machine=machine,
            store=store,
            sessions=sessions,
            resolver=resolver,
            page_size=page_size,
        )
        logger.info(
            "Catalog session started",
            extra={
                "session_id": session_id,
                "user_id": user_id,
                "restored": restored is not None,
                "default_town": default_town,
            },
        )
        if machine.is_ready:
            await engine._refresh(refresh_facets=True)
        return engine

    @property
    def generation(self) -> int:
        return self._machine.generation

    def current_filter_state(self, layer: FilterLayer = "applied") -> FilterState | None:
        return self._machine.layer(layer)

    def open_filter_panel(self) -> FilterState:
        return self._machine.open_filter_panel()

    def mutate_draft(self, dimension: FilterDimension, value: Any) -> FilterState:
        return self._machine.set_draft_dimension(dimension, value)

    async def apply_filters(self) -> CatalogSnapshot:
        return await self._after_commit(self._machine.apply_filters())

    async def clear_all(self) -> CatalogSnapshot:
        return await self._after_commit(self._machine.clear_all())

    async def quick_select(self, dimension: FilterDimension, value: Any) -> CatalogSnapshot:
        return await self._after_commit(self._machine.quick_select(dimension, value))

    async def switch_town(self, town: str) -> CatalogSnapshot:
        transition = self._machine.switch_town(town)
        try:
            await self._resolver.remember(self.user_id, town)
        except Exception as exc:
            logger.warning(
                "Failed to remember town %s for user %s, continuing: %s",
                town,
                self.user_id,
                exc,
            )
        return await self._after_commit(transition)

    async def get_product_page(self) -> CatalogSnapshot:
        if not await self._ensure_town():
            return self.snapshot()
        if not self._listing.is_current:
            await self._load_page(1, self._machine.generation)
        return self.snapshot()

    async def load_next_page(self, expected_generation: int | None = None) -> CatalogSnapshot:
        """Append the next page; requests from an older generation are ignored."""
        if expected_generation is not None and expected_generation != self.generation:
            logger.debug(
                "Ignoring load-more for stale generation %s (current %s)",
                expected_generation,
                self.generation,
            )
            return self.snapshot()
        if not await self._ensure_town():
            return self.snapshot()

        next_page = self._listing.next_page_number()
        if next_page is not None:
            await self._load_page(next_page, self._machine.generation)
        return self.snapshot()

    async def get_facet_options(self, layer: FilterLayer = "applied") -> FacetOptions | None:
        if not await self._ensure_town():
            return None
        if layer == "draft":
            draft = self._machine.draft
            return await self._facets.preview(draft.towns or self._machine.applied.towns)
        towns = self._machine.applied.towns
        if not self._facets.is_fresh_for(towns):
            return await self._facets.refresh(towns)
        return self._facets.current

    def snapshot(self) -> CatalogSnapshot:
        ready = self._machine.is_ready
        return CatalogSnapshot(
            session_id=self.session_id,
            status="ready" if ready else "awaiting_town",
            generation=self._machine.generation,
            filters=self._machine.applied,
            listing=self._listing.snapshot() if ready else None,
            facets=self._facets.current if ready else None,
        )

    async def _ensure_town(self) -> bool:
        if self._machine.is_ready:
            return True
        town = await self._resolver.resolve(self.user_id)
        if town is None:
            return False
        self._machine.resolve_default_town(town)
        await self._refresh(refresh_facets=True)
        return True

    async def _after_commit(self, transition: Transition) -> CatalogSnapshot:
        try:
            await self._sessions.save(self.session_id, transition.current)
        except Exception as exc:
            logger.warning(
                "Failed to persist filters for session %s, continuing: %s",
                self.session_id,
                exc,
            )
        if not self._machine.is_ready:
            return self.snapshot()
        await self._refresh(
            refresh_facets=not self._facets.is_fresh_for(self._machine.applied.towns)
        )
        return self.snapshot()

    async def _refresh(self, *, refresh_facets: bool) -> None:
        generation = self._machine.generation
        self._listing.begin(generation)
        tasks = [self._load_page(1, generation)]
        if refresh_facets:
            tasks.append(self._facets.refresh(self._machine.applied.towns))
        await asyncio.gather(*tasks)

    async def _load_page(self, page_number: int, generation: int) -> None:
        compiled = compile_query(self._machine.applied)
        try:
            page = await self._paginator.fetch_page(
                compiled, page_number, generation=generation
            )
        except Exception as exc:
            logger.warning(
                "Product page %d fetch failed for session %s: %s",
                page_number,
                self.session_id,
                exc,
            )
            self._listing.fail(generation, exc)
            return

        if self._listing.accept(page) and page_number > 1:
            self._machine.advance_page(page_number)


class CatalogSessionRegistry:
    """In-process registry of live session engines."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._engines: dict[str, CatalogSessionEngine] = {}

    def get(self, session_id: str) -> CatalogSessionEngine | None:
        with self._lock:
            return self._engines.get(session_id)

    def put(self, engine: CatalogSessionEngine) -> CatalogSessionEngine:
        with self._lock:
            self._engines[engine.session_id] = engine
        return engine

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._engines.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._engines.clear()


_registry = CatalogSessionRegistry()


def get_session_registry() -> CatalogSessionRegistry:
    """FastAPI dependency factory."""

    return _registry
