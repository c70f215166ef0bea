"""Catalog domain models: products, shops, towns and shopper profiles."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator


class Town(BaseModel):
    """Admin-managed town; the name is the identity."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Town name is required")
        return value


class Shop(BaseModel):
    """A merchant shop; each shop belongs to exactly one town."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    town: str = Field(..., min_length=1)
    is_verified: bool = False
    address: str | None = None
    contact_details: str | None = None
    description: str = ""


class Product(BaseModel):
    """Catalog product. Prices are integer minor currency units."""

    id: str = Field(..., min_length=1, description="Opaque, stable identifier")
    name: str
    brand: str | None = None
    category: str | None = None
    price: int = Field(..., ge=0)
    original_price: int | None = Field(default=None, ge=0)
    shop_id: str = Field(..., min_length=1)
    is_active: bool = True
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    description: str = ""
    images: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    variants: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_original_price(self) -> Product:
        if self.original_price is not None and self.original_price < self.price:
            raise ValueError("original_price must be >= price")
        return self

    @computed_field
    @property
    def requires_variant(self) -> bool:
        """True when a size/variant must be picked before booking."""
        return bool(self.sizes or self.variants)


class UserProfile(BaseModel):
    """Shopper profile as far as the catalog needs it."""

    user_id: str = Field(..., min_length=1)
    name: str | None = None
    town: str | None = Field(
        default=None,
        description="Registered town used as the default browsing town",
    )


class TownCreateRequest(BaseModel):
    """Request body for registering a town."""

    name: str = Field(..., min_length=1)
