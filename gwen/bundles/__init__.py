"""Bundle recommendations, pricing and category room bundles."""

from __future__ import annotations

from .engine import (
    BundleAccessory,
    BundlePricing,
    calculate_bundle_price,
    identify_bundle_opportunities,
    recommend_bundle_accessories,
    resolve_bundle_products,
    should_offer_bundle_naturally,
)
from .rooms import (
    ROOM_BUNDLES,
    RoomBundle,
    build_room_bundle_offer,
    detect_room_category,
    find_room_accessories,
)

__all__ = [
    "BundleAccessory",
    "BundlePricing",
    "ROOM_BUNDLES",
    "RoomBundle",
    "build_room_bundle_offer",
    "calculate_bundle_price",
    "detect_room_category",
    "find_room_accessories",
    "identify_bundle_opportunities",
    "recommend_bundle_accessories",
    "resolve_bundle_products",
    "should_offer_bundle_naturally",
]
