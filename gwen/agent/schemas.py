"""Pydantic models used by the sales assistant agent and its tools."""

from __future__ import annotations

import re
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from ..catalog.models import Product

_EMOJI = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF\u2600-\u26FF\u2700-\u27BF]"
)


def strip_emojis(text: str) -> str:
    """Remove emoji code points the storefront widget cannot render."""

    return _EMOJI.sub("", text).strip()


class ProductCard(BaseModel):
    """Product fields the assistant needs to render a product card."""

    sku: str = Field(..., description="Variant SKU.")
    product_title: str = Field(..., description="Display title.")
    price: str = Field(..., description="Price in GBP with two decimals, without the symbol.")
    stock_message: str = Field(..., description="Customer-facing stock wording.")
    image_url: str | None = Field(
        None, description="Product image; omit the image line when missing."
    )
    website_url: str | None = Field(None, description="Storefront page for the product.")
    seat_count: int | None = Field(None, description="Derived seating capacity.")
    bundle_name: str | None = Field(
        None, description="Bundle the product was recommended from, when relevant."
    )

    @classmethod
    def from_product(cls, product: Product, bundle_name: str | None = None) -> "ProductCard":
        return cls(
            sku=product.sku,
            product_title=product.title,
            price=product.display_price,
            stock_message=product.stock.message if product.stock else "In stock",
            image_url=product.image_url,
            website_url=product.url,
            seat_count=product.seat_count,
            bundle_name=bundle_name,
        )


class ProductSearchResult(BaseModel):
    """Outcome of a catalog search."""

    success: bool = Field(..., description="False when nothing in stock matched.")
    products: List[ProductCard] = Field(
        default_factory=list,
        description="Matching in-stock products, cheapest first; an exact SKU lookup may be out of stock.",
    )
    count: int = Field(0, ge=0)
    note: str = Field("", description="Guidance on how to present the result.")
    suggestions: List[str] = Field(
        default_factory=list, description="Follow-up searches worth offering when empty."
    )


class ToolMessage(BaseModel):
    """Generic success flag plus a message for the assistant."""

    success: bool
    message: str


class KnowledgeResult(BaseModel):
    """Text answer drawn from the knowledge base."""

    success: bool = Field(..., description="False when no specific record exists.")
    content: str = Field(..., description="Answer text to paraphrase for the customer.")


class AvailabilityResult(BaseModel):
    sku: str
    in_stock: bool
    stock_level: int | None = Field(None, description="Units available when known.")
    message: str


class CoverSuggestion(BaseModel):
    """Matching cover for a furniture family, if one exists."""

    success: bool
    family: str | None = None
    cover: ProductCard | None = None
    note: str


class BundleOfferResult(BaseModel):
    success: bool
    message: str
    offer_text: str | None = Field(
        None, description="Wording to use when offering the bundle to the customer."
    )


class BundleCheckResult(BaseModel):
    """Bundles related to a product and their resolved member products."""

    success: bool
    bundles: List[Dict[str, Any]] = Field(default_factory=list)
    products: List[ProductCard] = Field(default_factory=list)
    message: str


class AgentReply(BaseModel):
    """Structured response emitted by the agent."""

    message: str = Field(..., description="Assistant message to display to the customer.")

    def cleaned(self) -> "AgentReply":
        """Return a copy with emojis removed."""

        return AgentReply(message=strip_emojis(self.message))


__all__ = [
    "AgentReply",
    "AvailabilityResult",
    "BundleCheckResult",
    "BundleOfferResult",
    "CoverSuggestion",
    "KnowledgeResult",
    "ProductCard",
    "ProductSearchResult",
    "ToolMessage",
    "strip_emojis",
]
