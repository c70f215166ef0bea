"""Facet option lists scoped to a town set."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from src.models.filters import FacetOptions
from src.services.catalog.store import CatalogStore

logger = logging.getLogger(__name__)


def _clean(values: Iterable[str | None]) -> list[str]:
    return sorted({value for value in values if value and value.strip()})


class FacetIndexBuilder:
    """Derives brand, shop and category options for a town scope.

    Options depend on the town set only; other selected facets never narrow
    them. When a refresh fails the last successful lists stay current, flagged
    stale, until a later refresh succeeds.
    """

    def __init__(self, store: CatalogStore):
        self._store = store
        self._current: FacetOptions | None = None

    @property
    def current(self) -> FacetOptions | None:
        return self._current

    def is_fresh_for(self, towns: Sequence[str]) -> bool:
        """True when current options were built successfully for exactly these towns."""
        current = self._current
        return (
            current is not None
            and not current.stale
            and current.towns_scope == sorted(set(towns))
        )

    async def build(self, towns: Sequence[str]) -> FacetOptions:
        """Compute options for the given towns without touching the cache."""
        brands, shops, categories, all_towns = await asyncio.gather(
            self._store.distinct("brand", towns),
            self._store.distinct("shop", towns),
            self._store.distinct("category", towns),
            self._store.list_towns(),
        )
        return FacetOptions(
            towns_scope=sorted(set(towns)),
            brands=_clean(brands),
            shops=_clean(shops),
            categories=_clean(categories),
            towns=_clean(town.name for town in all_towns),
        )

    async def refresh(self, towns: Sequence[str]) -> FacetOptions:
        """Recompute and cache options, falling back to stale ones on failure."""
        try:
            options = await self.build(towns)
        except Exception as exc:
            logger.warning(
                "Facet refresh failed, keeping previous options: %s",
                exc,
                extra={"towns": list(towns)},
            )
            self._current = self._stale(towns)
            return self._current

        self._current = options
        logger.debug(
            "Facets refreshed",
            extra={
                "towns": options.towns_scope,
                "brands": len(options.brands),
                "shops": len(options.shops),
                "categories": len(options.categories),
            },
        )
        return options

    async def preview(self, towns: Sequence[str]) -> FacetOptions:
        """Options for a draft town set; the cached options stay untouched."""
        try:
            return await self.build(towns)
        except Exception as exc:
            logger.warning("Draft facet preview failed: %s", exc)
            return self._stale(towns)

    def _stale(self, towns: Sequence[str]) -> FacetOptions:
        if self._current is None:
            return FacetOptions(towns_scope=sorted(set(towns)), stale=True)
        return self._current.model_copy(update={"stale": True})
