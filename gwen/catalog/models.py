"""Pydantic models shared by the catalog sources and the search pipeline."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class StockStatus(BaseModel):
    """Stock information attached to a product during a search."""

    in_stock: bool = Field(..., description="Whether the product can be sold now.")
    stock_level: int | None = Field(
        None, description="Units available, or ``None`` when the level is unknown."
    )
    message: str = Field(..., description="Customer-facing stock wording.")

    @classmethod
    def unknown(cls) -> "StockStatus":
        """Absence of inventory data is never treated as out of stock."""

        return cls(in_stock=True, stock_level=None, message="In stock")

    @classmethod
    def from_quantity(cls, quantity: int) -> "StockStatus":
        in_stock = quantity > 0
        return cls(
            in_stock=in_stock,
            stock_level=quantity,
            message="In stock" if in_stock else "Currently out of stock",
        )


class Product(BaseModel):
    """Normalized product shape used regardless of the originating source."""

    sku: str = Field(..., description="Variant SKU.")
    title: str = Field(..., description="Display title of the product.")
    price: Decimal = Field(..., description="Unit price in GBP with two decimals.")
    description: str = Field("", description="Plain-text product description.")
    image_url: str | None = Field(None, description="Primary product image.")
    url: str | None = Field(None, description="Storefront page for the product.")
    stock_quantity: int | None = Field(
        None, description="Raw stock quantity; ``None`` when the source has none."
    )
    available: bool | None = Field(
        None, description="Explicit availability flag from the live catalog."
    )
    primary: bool = Field(
        True, description="False for secondary variants of a multi-variant product."
    )
    source: Literal["live", "local"] = Field("local", description="Originating source.")
    seat_count: int | None = Field(
        None, description="Seating capacity derived from the product text."
    )
    stock: StockStatus | None = Field(
        None, description="Stock status attached by the search pipeline."
    )

    @property
    def search_text(self) -> str:
        """Lower-cased title and description used by substring filters."""

        return f"{self.title} {self.description}".lower()

    @property
    def display_price(self) -> str:
        return f"{self.price:.2f}"


class SearchCriteria(BaseModel):
    """Filters requested for one catalog search."""

    material: str | None = None
    furniture_type: Literal["dining", "lounge"] | None = None
    seat_count: int | None = Field(None, ge=0)
    product_name: str | None = None
    sku: str | None = None
    max_results: int = Field(3, ge=1)
    maintenance_level: str | None = None
    assembly_difficulty: str | None = None
    weight_class: str | None = None


__all__ = ["Product", "SearchCriteria", "StockStatus"]
