"""Models describing paginated product listings and session snapshots."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from src.models.catalog import Product
from src.models.filters import FacetOptions, FilterState


class ProductPage(BaseModel):
    """One fetched page of a compiled query."""

    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    items: list[Product] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    generation: int = Field(
        default=0,
        description="Filter generation the page was requested under",
    )


class ProductListing(BaseModel):
    """Accumulated "load more" listing shown to the shopper."""

    items: list[Product] = Field(default_factory=list)
    page: int = 1
    page_size: int
    total_count: int = 0
    total_pages: int = 0
    generation: int = 0
    exhausted: bool = True
    error: str | None = Field(
        default=None,
        description="Set when the last fetch failed; the fetch can be retried",
    )


class CatalogSnapshot(BaseModel):
    """Everything the UI needs to render the catalog view."""

    session_id: str
    status: Literal["ready", "awaiting_town"]
    generation: int
    filters: FilterState
    listing: ProductListing | None = None
    facets: FacetOptions | None = None


class SessionStartRequest(BaseModel):
    """Request body for starting or re-entering a catalog session."""

    session_id: str = Field(..., min_length=1, max_length=128)
