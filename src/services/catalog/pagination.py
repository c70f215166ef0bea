"""Fixed-size paging over compiled catalog queries."""

from __future__ import annotations

import logging
import math

from src.config import settings
from src.models.catalog import Product
from src.models.listing import ProductListing, ProductPage
from src.services.catalog.query_compiler import CompiledQuery
from src.services.catalog.store import CatalogStore

logger = logging.getLogger(__name__)


def total_pages_for(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / page_size) if total_count else 0


class PaginationController:
    """Stateless page fetcher; identical calls may run concurrently."""

    def __init__(self, store: CatalogStore, page_size: int | None = None):
        self._store = store
        self.page_size = page_size or settings.CATALOG_PAGE_SIZE
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    async def fetch_page(
        self,
        compiled: CompiledQuery,
        page_number: int,
        *,
        generation: int = 0,
    ) -> ProductPage:
        if page_number < 1:
            raise ValueError("page_number is 1-based")

        offset = (page_number - 1) * self.page_size
        items, total = await self._store.query(
            compiled, offset=offset, limit=self.page_size
        )
        return ProductPage(
            page=page_number,
            page_size=self.page_size,
            items=items,
            total_count=total,
            total_pages=total_pages_for(total, self.page_size),
            generation=generation,
        )


class ListingState:
    """Accumulated "load more" listing guarded by a filter generation.

    Pages fetched under an older generation are dropped. Items shown belong
    to ``loaded_generation``, which lags ``generation`` until page 1 of the
    current filters arrives; failures never clear what is shown.
    """

    def __init__(self, page_size: int):
        self.page_size = page_size
        self.generation = 0
        self.loaded_generation: int | None = None
        self.items: list[Product] = []
        self.page = 1
        self.total_count = 0
        self.total_pages = 0
        self.error: str | None = None

    def begin(self, generation: int) -> None:
        """Start a new filter generation."""
        self.generation = generation
        self.error = None

    @property
    def is_current(self) -> bool:
        return self.loaded_generation == self.generation

    @property
    def exhausted(self) -> bool:
        return self.is_current and self.page >= self.total_pages

    def next_page_number(self) -> int | None:
        """Page to request next, or None when nothing more can be loaded."""
        if not self.is_current:
            return 1
        if self.exhausted:
            return None
        return self.page + 1

    def accept(self, page: ProductPage) -> bool:
        """Merge a fetched page; returns False when it was discarded."""
        if page.generation != self.generation:
            logger.debug(
                "Dropping page from stale generation",
                extra={
                    "page": page.page,
                    "page_generation": page.generation,
                    "current_generation": self.generation,
                },
            )
            return False

        if page.page == 1:
            self.items = list(page.items)
        elif self.is_current and page.page == self.page + 1:
            self.items = [*self.items, *page.items]
        else:
            logger.debug("Dropping out-of-order page %d", page.page)
            return False

        self.loaded_generation = page.generation
        self.page = page.page
        self.total_count = page.total_count
        self.total_pages = page.total_pages
        self.error = None
        return True

    def fail(self, generation: int, error: Exception) -> None:
        if generation != self.generation:
            return
        self.error = f"Failed to load products: {error}"

    def snapshot(self) -> ProductListing:
        return ProductListing(
            items=list(self.items),
            page=self.page,
            page_size=self.page_size,
            total_count=self.total_count,
            total_pages=self.total_pages,
            generation=self.generation,
            exhausted=self.exhausted,
            error=self.error,
        )
