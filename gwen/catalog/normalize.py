"""Normalization of live and local product records into :class:`Product`."""

from __future__ import annotations

import html
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping

from .models import Product

_SEAT_PATTERNS = (
    re.compile(r"(\d+)\s*-?\s*seater"),
    re.compile(r"for\s*(\d+)\s*people"),
    re.compile(r"seat\s*(\d+)"),
    re.compile(r"(\d+)\s*person"),
    re.compile(r"(\d+)\s*people"),
)
_BARE_NUMBER = re.compile(r"\d+")
_NON_SEATING_TERMS = ("parasol", "cover")
_HTML_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

_CENT = Decimal("0.01")


def parse_price(value: Any) -> Decimal:
    """Return a two-decimal price, or zero when the value is not numeric."""

    if value is None:
        return Decimal("0.00")
    try:
        price = Decimal(str(value).strip().lstrip("£"))
    except InvalidOperation:
        return Decimal("0.00")
    if not price.is_finite():
        return Decimal("0.00")
    return price.quantize(_CENT)


def _parse_quantity(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def derive_seat_count(title: str, description: str = "") -> int | None:
    """Extract a seating capacity from free text.

    Parasols and covers always report zero seats. The ordered patterns are
    tried against title and description first; the largest bare number in the
    title is the last resort. ``None`` means no capacity could be derived.
    """

    lowered_title = title.lower()
    if any(term in lowered_title for term in _NON_SEATING_TERMS):
        return 0

    text = f"{lowered_title} {description.lower()}"
    for pattern in _SEAT_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))

    bare = [int(number) for number in _BARE_NUMBER.findall(lowered_title)]
    return max(bare) if bare else None


def strip_html(value: str | None) -> str:
    """Turn a Shopify ``body_html`` fragment into single-spaced plain text."""

    if not value:
        return ""
    text = html.unescape(_HTML_TAG.sub(" ", value))
    return _WHITESPACE.sub(" ", text).strip()


def normalize_local_product(
    row: Mapping[str, Any], inventory: Mapping[str, Any] | None = None
) -> Product:
    """Build a product from a ``product_database.json`` row."""

    title = str(row.get("product_title") or row.get("title") or "").strip()
    description = str(row.get("description") or "")
    stock_quantity = None
    if inventory is not None:
        stock_quantity = _parse_quantity(inventory.get("available"))

    return Product(
        sku=str(row.get("sku") or "").strip(),
        title=title,
        price=parse_price(row.get("price", row.get("variant_price"))),
        description=description,
        image_url=row.get("image_url") or None,
        url=row.get("website_url") or row.get("url") or None,
        stock_quantity=stock_quantity,
        source="local",
        seat_count=derive_seat_count(title, description),
    )


def normalize_shopify_product(
    raw: Mapping[str, Any], storefront_product_url: str
) -> List[Product]:
    """Expand one Shopify product into a product per variant.

    The first variant is flagged as primary; criteria searches only consider
    primary variants while exact SKU lookups consider all of them.
    """

    title = str(raw.get("title") or "").strip()
    description = strip_html(raw.get("body_html"))
    images: Iterable[Mapping[str, Any]] = raw.get("images") or []
    image_url = next((image.get("src") for image in images if image.get("src")), None)
    handle = raw.get("handle")
    url = f"{storefront_product_url}/{handle}" if handle else None
    seat_count = derive_seat_count(title, description)

    products: List[Product] = []
    for index, variant in enumerate(raw.get("variants") or []):
        sku = str(variant.get("sku") or "").strip()
        if not sku:
            continue
        products.append(
            Product(
                sku=sku,
                title=title,
                price=parse_price(variant.get("price")),
                description=description,
                image_url=image_url,
                url=url,
                stock_quantity=_parse_quantity(variant.get("inventory_quantity")),
                available=variant.get("available"),
                primary=index == 0,
                source="live",
                seat_count=seat_count,
            )
        )
    return products


__all__ = [
    "derive_seat_count",
    "normalize_local_product",
    "normalize_shopify_product",
    "parse_price",
    "strip_html",
]
