"""Compile an applied FilterState into a predicate over Product joined with Shop."""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict

from src.models.catalog import Product, Shop
from src.models.filters import ALL_CATEGORIES, FilterState, SortKey

logger = logging.getLogger(__name__)

# Leading integer of a custom bound; "1000.5" and "1000rs" read as 1000.
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Upper bound None means unbounded.
PRICE_BUCKETS: dict[str, tuple[int, int | None]] = {
    "0-500": (0, 500),
    "501-1000": (501, 1000),
    "1001-1500": (1001, 1500),
    "1501-2000": (1501, 2000),
    "2001-3000": (2001, 3000),
    "3000+": (3000, None),
}

CATEGORY_TABS: dict[str, str] = {
    "men": "Men's Clothing",
    "women": "Women's Clothing",
    "kids": "Kids Clothing",
    "home": "Home & Living",
    "beauty": "Beauty & Personal Care",
    "footwear": "Footwear",
    "accessories": "Accessories",
    "sports": "Sports & Fitness",
    "electronics": "Electronics",
}


class TownUnresolvedError(RuntimeError):
    """Raised when a query would run without any town in scope."""


class PriceBounds(BaseModel):
    """Closed price interval in minor units."""

    model_config = ConfigDict(frozen=True)

    minimum: int = 0
    maximum: int | None = None

    def contains(self, price: int) -> bool:
        if price < self.minimum:
            return False
        return self.maximum is None or price <= self.maximum


class CompiledQuery(BaseModel):
    """Structured, side-effect free predicate plus ordering."""

    model_config = ConfigDict(frozen=True)

    towns: frozenset[str]
    category_name: str | None = None
    categories: frozenset[str] = frozenset()
    brands: frozenset[str] = frozenset()
    shops: frozenset[str] = frozenset()
    price: PriceBounds | None = None
    search_term: str | None = None
    sort_key: SortKey = SortKey.RATING

    def matches(self, product: Product, shop: Shop | None) -> bool:
        if not product.is_active or shop is None:
            return False
        if shop.town not in self.towns:
            return False
        if self.category_name is not None and (
            (product.category or "").casefold() != self.category_name.casefold()
        ):
            return False
        if self.categories and product.category not in self.categories:
            return False
        if self.brands and product.brand not in self.brands:
            return False
        if self.shops and shop.name not in self.shops:
            return False
        if self.price is not None and not self.price.contains(product.price):
            return False
        if self.search_term and self.search_term not in product.name.casefold():
            return False
        return True

    def order(self, products: list[Product]) -> list[Product]:
        """Sort by the sort key, then by product id for a stable tiebreak."""
        if self.sort_key is SortKey.NEWEST:
            return sorted(
                products, key=lambda p: (-p.created_at.timestamp(), p.id)
            )
        if self.sort_key is SortKey.PRICE_ASC:
            return sorted(products, key=lambda p: (p.price, p.id))
        if self.sort_key is SortKey.PRICE_DESC:
            return sorted(products, key=lambda p: (-p.price, p.id))
        return sorted(products, key=lambda p: (-p.rating, p.id))

    def describe(self) -> dict[str, Any]:
        """Plain representation used for logging."""
        return {
            "is_active": True,
            "shop.town": sorted(self.towns),
            "category": self.category_name,
            "categories": sorted(self.categories),
            "brands": sorted(self.brands),
            "shops": sorted(self.shops),
            "price": self.price.model_dump() if self.price else None,
            "search": self.search_term,
            "sort": self.sort_key.value,
        }


def compile_query(state: FilterState) -> CompiledQuery:
    """Translate an applied filter state into a CompiledQuery."""

    if not state.towns:
        raise TownUnresolvedError("Cannot compile a catalog query without a town")

    search = state.search_term.strip().casefold()
    return CompiledQuery(
        towns=frozenset(state.towns),
        category_name=resolve_category_tab(state.category),
        categories=frozenset(state.categories),
        brands=frozenset(state.brands),
        shops=frozenset(state.shops),
        price=resolve_price_bounds(state),
        search_term=search or None,
        sort_key=state.sort_key,
    )


def resolve_category_tab(tab: str) -> str | None:
    """Map a category tab id to the catalog category it selects."""
    tab = (tab or "").strip()
    if not tab or tab.lower() == ALL_CATEGORIES:
        return None
    return CATEGORY_TABS.get(tab.lower(), tab)


def resolve_price_bounds(state: FilterState) -> PriceBounds | None:
    """Resolve the effective price interval.

    A custom pair with any bound set wins over bucket selections. Selected
    buckets collapse into the single interval enclosing all of them, so a gap
    between two buckets is included as well.
    """

    raw_min = state.custom_min_price.strip()
    raw_max = state.custom_max_price.strip()
    if raw_min or raw_max:
        try:
            minimum = _parse_price(raw_min) if raw_min else 0
            maximum = _parse_price(raw_max) if raw_max else None
        except ValueError:
            logger.debug(
                "Ignoring invalid custom price bounds",
                extra={"min": raw_min, "max": raw_max},
            )
            return None
        if maximum is not None and minimum > maximum:
            logger.debug(
                "Ignoring inverted custom price bounds",
                extra={"min": minimum, "max": maximum},
            )
            return None
        return PriceBounds(minimum=minimum, maximum=maximum)

    if not state.price_ranges:
        return None

    bounds = [PRICE_BUCKETS.get(name, (0, None)) for name in state.price_ranges]
    lowers = [low for low, _ in bounds]
    uppers = [high for _, high in bounds]
    maximum = None if any(high is None for high in uppers) else max(uppers)
    return PriceBounds(minimum=min(lowers), maximum=maximum)


def _parse_price(raw: str) -> int:
    match = _LEADING_INT.match(raw)
    if match is None:
        raise ValueError(f"Not a price bound: {raw}")
    value = int(match.group(1))
    if value < 0:
        raise ValueError(f"Negative price bound: {raw}")
    return value
