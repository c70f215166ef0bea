"""Models for the wishlist and booking ledgers."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

ToggleAction = Literal["added", "removed"]


class LedgerType(str, Enum):
    WISHLIST = "wishlist"
    BOOKING = "booking"


class VariantSnapshot(BaseModel):
    """Size/variant/color picked when the product was toggled."""

    size: str | None = None
    variant: str | None = None
    color: str | None = None


class ToggleEntry(VariantSnapshot):
    """Persisted ledger membership for one (user, product) pair."""

    user_id: str
    product_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ToggleRequest(VariantSnapshot):
    """Request body for toggling a product in a ledger."""

    product_id: str = Field(..., min_length=1)


class ToggleResponse(BaseModel):
    product_id: str
    action: ToggleAction


class MembershipResponse(BaseModel):
    product_id: str
    toggled: bool


class LedgerItem(VariantSnapshot):
    """Ledger entry joined with the product as it is now."""

    product_id: str
    name: str
    brand: str | None = None
    price: int
    original_price: int | None = None
    images: list[str] = Field(default_factory=list)
    rating: float = 0.0
    review_count: int = 0
    shop_name: str | None = None
    created_at: datetime


class LedgerListResponse(BaseModel):
    items: list[LedgerItem] = Field(default_factory=list)
