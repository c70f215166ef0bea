"""Filter state models shared by the filter engine and the API."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

FilterLayer = Literal["applied", "draft", "persisted"]


class SortKey(str, Enum):
    """Result orderings; ties are always broken by product id ascending."""

    RATING = "rating"
    NEWEST = "createdAt"
    PRICE_ASC = "price"
    PRICE_DESC = "-price"


class FilterDimension(str, Enum):
    """Every mutable dimension of a FilterState (page excluded)."""

    SEARCH_TERM = "search_term"
    CATEGORY = "category"
    CATEGORIES = "categories"
    BRANDS = "brands"
    SHOPS = "shops"
    TOWNS = "towns"
    PRICE_RANGES = "price_ranges"
    CUSTOM_MIN_PRICE = "custom_min_price"
    CUSTOM_MAX_PRICE = "custom_max_price"
    SORT_KEY = "sort_key"


ALL_CATEGORIES = "all"


def _unique(values: tuple[str, ...]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        value = str(value).strip()
        if value:
            seen.setdefault(value, None)
    return tuple(seen)


class FilterState(BaseModel):
    """Immutable snapshot of one filter layer.

    Multi-select dimensions are OR within the dimension and AND across
    dimensions. Values are de-duplicated with their first-seen order kept.
    """

    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    category: str = ALL_CATEGORIES
    categories: tuple[str, ...] = ()
    brands: tuple[str, ...] = ()
    shops: tuple[str, ...] = ()
    towns: tuple[str, ...] = ()
    price_ranges: tuple[str, ...] = ()
    custom_min_price: str = ""
    custom_max_price: str = ""
    sort_key: SortKey = SortKey.RATING
    page: int = Field(default=1, ge=1)

    @field_validator("categories", "brands", "shops", "towns", "price_ranges")
    @classmethod
    def _dedupe(cls, values: tuple[str, ...]) -> tuple[str, ...]:
        return _unique(values)

    @field_validator("search_term", "custom_min_price", "custom_max_price", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        if value is None or not str(value).strip():
            return ALL_CATEGORIES
        return str(value).strip()

    @classmethod
    def for_town(cls, town: str | None) -> FilterState:
        """Default state: only the given town selected."""
        return cls(towns=(town,) if town else ())

    def with_dimension(self, dimension: FilterDimension, value: Any) -> FilterState:
        """Return a validated copy with one dimension replaced and page reset."""
        data = self.model_dump()
        data[dimension.value] = value
        data["page"] = 1
        return FilterState.model_validate(data)

    def same_filters(self, other: FilterState) -> bool:
        """Compare every dimension except page."""
        return self.model_dump(exclude={"page"}) == other.model_dump(exclude={"page"})


class DraftMutation(BaseModel):
    """Request body for mutating one draft dimension."""

    dimension: FilterDimension
    value: Any = None


QUICK_DIMENSIONS = frozenset(
    {FilterDimension.CATEGORY, FilterDimension.SORT_KEY, FilterDimension.SEARCH_TERM}
)


class QuickSelection(BaseModel):
    """Request body for an immediately applied tab, sort or search change."""

    dimension: FilterDimension
    value: Any = None

    @field_validator("dimension")
    @classmethod
    def _quick_only(cls, value: FilterDimension) -> FilterDimension:
        if value not in QUICK_DIMENSIONS:
            raise ValueError(f"{value.value} must be changed through the filter panel")
        return value


class TownSwitchRequest(BaseModel):
    """Request body for the header town selector."""

    town: str = Field(..., min_length=1)

    @field_validator("town")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Town is required")
        return value


class FacetOptions(BaseModel):
    """Still-valid filter options for a town scope."""

    towns_scope: list[str] = Field(default_factory=list)
    brands: list[str] = Field(default_factory=list)
    shops: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    towns: list[str] = Field(
        default_factory=list,
        description="Every admin-managed town, for the town selector",
    )
    stale: bool = Field(
        default=False,
        description="True when the last refresh failed and older lists are shown",
    )
