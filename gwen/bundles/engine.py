"""Accessory recommendations, bundle pricing and the offer eligibility gate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping, Protocol, Sequence

import logfire
from pydantic import BaseModel, Field

from ..catalog.models import Product
from ..conversation.state import Session
from ..knowledge.store import KnowledgeStore

logger = logging.getLogger(__name__)

BUNDLE_DISCOUNT_RATE = Decimal("0.12")
MAX_ACCESSORIES = 3
MIN_HISTORY_FOR_OFFER = 3
PRICE_MARKER = "Price: £"
PEAK_SEASON_MONTHS = range(5, 10)
OFF_SEASON_BUNDLE_LIMIT = 2

_CENT = Decimal("0.01")


class ProductResolver(Protocol):
    """Anything that can resolve an exact SKU to a live product."""

    async def find_by_sku(self, sku: str) -> Product | None:
        ...


class BundleAccessory(BaseModel):
    """An accessory product tagged with the bundle it was recommended from."""

    product: Product
    bundle_name: str = Field(..., description="Name of the source bundle.")
    bundle_description: str = Field("", description="Description of the source bundle.")


@dataclass(frozen=True)
class BundlePricing:
    total_price: Decimal
    bundle_price: Decimal
    savings: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def calculate_bundle_price(main_price: Decimal, accessory_prices: Sequence[Decimal]) -> BundlePricing:
    """Apply the accessory-only discount.

    The discount is 12% of the accessory subtotal; the main product is always
    charged in full.
    """

    accessory_total = sum(accessory_prices, Decimal("0"))
    total = main_price + accessory_total
    discount = accessory_total * BUNDLE_DISCOUNT_RATE
    return BundlePricing(
        total_price=_money(total),
        bundle_price=_money(total - discount),
        savings=_money(discount),
    )


def should_offer_bundle_naturally(session: Session) -> bool:
    """Products were shown, the chat has some depth, and nothing was offered yet."""

    has_shown_products = any(
        entry.role == "assistant" and PRICE_MARKER in entry.content
        for entry in session.history
    )
    has_depth = len(session.history) >= MIN_HISTORY_FOR_OFFER
    return has_shown_products and has_depth and not session.offered_bundle


def _bundle_ids_for(knowledge: KnowledgeStore, sku: str) -> List[Any]:
    ids: List[Any] = []
    for item in knowledge.bundle_items:
        if item.get("product_sku") == sku and item.get("bundle_id") not in ids:
            ids.append(item.get("bundle_id"))
    return ids


def _bundle_skus(knowledge: KnowledgeStore, bundle_id: Any) -> List[str]:
    return [
        str(item.get("product_sku"))
        for item in knowledge.bundle_items
        if item.get("bundle_id") == bundle_id and item.get("product_sku")
    ]


async def recommend_bundle_accessories(
    main_sku: str,
    knowledge: KnowledgeStore,
    catalog: ProductResolver,
    limit: int = MAX_ACCESSORIES,
) -> List[BundleAccessory]:
    """Return up to ``limit`` distinct accessories bundled with ``main_sku``.

    Bundles are walked in table order and each accessory SKU is resolved with
    an exact-SKU search. SKUs that do not resolve are skipped.
    """

    with logfire.span("bundles.recommend", main_sku=main_sku):
        bundle_ids = _bundle_ids_for(knowledge, main_sku)
        if not bundle_ids:
            logger.info("No bundles list SKU %s", main_sku)
            return []

        recommendations: List[BundleAccessory] = []
        seen: set[str] = set()
        for bundle in knowledge.bundle_suggestions:
            if bundle.get("bundle_id") not in bundle_ids:
                continue
            for sku in _bundle_skus(knowledge, bundle.get("bundle_id")):
                if sku == main_sku or sku in seen:
                    continue
                seen.add(sku)
                try:
                    product = await catalog.find_by_sku(sku)
                except Exception:  # noqa: BLE001
                    logger.exception("Failed to resolve bundle accessory %s", sku)
                    continue
                if product is None:
                    logger.info("Bundle accessory %s not found in catalog", sku)
                    continue
                recommendations.append(
                    BundleAccessory(
                        product=product,
                        bundle_name=str(bundle.get("name") or ""),
                        bundle_description=str(bundle.get("description") or ""),
                    )
                )

        logfire.info("bundles.recommended", count=len(recommendations))
        return recommendations[:limit]


def identify_bundle_opportunities(
    knowledge: KnowledgeStore, product_interest: str, month: int
) -> List[Dict[str, Any]]:
    """Bundles related to a product or phrase, capped outside peak season.

    A bundle qualifies when one of its item SKUs contains the interest, or
    when its name or description mentions it. ``month`` is 1-12.
    """

    wanted = product_interest.lower().strip()
    if not wanted:
        return []

    matches: List[Dict[str, Any]] = []
    for bundle in knowledge.bundle_suggestions:
        name = str(bundle.get("name") or "").lower()
        description = str(bundle.get("description") or "").lower()
        skus = [sku.lower() for sku in _bundle_skus(knowledge, bundle.get("bundle_id"))]
        if wanted in name or wanted in description or any(wanted in sku for sku in skus):
            matches.append(dict(bundle))

    if month not in PEAK_SEASON_MONTHS:
        return matches[:OFF_SEASON_BUNDLE_LIMIT]
    return matches


async def resolve_bundle_products(
    bundles: Sequence[Mapping[str, Any]],
    knowledge: KnowledgeStore,
    catalog: ProductResolver,
) -> List[Product]:
    """Resolve every member SKU of ``bundles`` for display, once each."""

    products: List[Product] = []
    seen: set[str] = set()
    for bundle in bundles:
        for sku in _bundle_skus(knowledge, bundle.get("bundle_id")):
            if sku in seen:
                continue
            seen.add(sku)
            product = await catalog.find_by_sku(sku)
            if product is not None:
                products.append(product)
    return products


__all__ = [
    "BUNDLE_DISCOUNT_RATE",
    "BundleAccessory",
    "BundlePricing",
    "PRICE_MARKER",
    "ProductResolver",
    "calculate_bundle_price",
    "identify_bundle_opportunities",
    "recommend_bundle_accessories",
    "resolve_bundle_products",
    "should_offer_bundle_naturally",
]
