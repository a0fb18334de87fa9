"""Category ("complete outdoor room") bundles built from catalog title matches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Sequence

from ..catalog.models import Product
from .engine import BundlePricing

RoomCategory = Literal["dining-set", "lounge-set", "corner-set", "teak-furniture"]


@dataclass(frozen=True)
class RoomBundle:
    name: str
    accessories: tuple[str, ...]
    theme: str
    social_proof: str


ROOM_BUNDLES: Dict[str, RoomBundle] = {
    "dining-set": RoomBundle(
        name="Complete Outdoor Dining Experience",
        accessories=("parasol", "cushions", "furniture-cover", "side-table"),
        theme="dining room",
        social_proof="87% of customers complete their outdoor dining setup with these essentials",
    ),
    "lounge-set": RoomBundle(
        name="Complete Outdoor Lounge Haven",
        accessories=("cushions", "weather-cover", "ottoman", "side-table"),
        theme="lounge area",
        social_proof="83% of customers create the perfect relaxation space with these additions",
    ),
    "corner-set": RoomBundle(
        name="Complete Corner Garden Suite",
        accessories=("weather-cover", "throw-pillows", "drinks-table"),
        theme="corner garden",
        social_proof="91% of customers maximize their corner space with these complementary items",
    ),
    "teak-furniture": RoomBundle(
        name="Complete Teak Care & Protection System",
        accessories=("teak-care-kit", "protective-cover", "cleaning-kit"),
        theme="teak maintenance",
        social_proof="94% of teak owners protect their investment with professional care products",
    ),
}


def _is_cover(title: str) -> bool:
    return "cover" in title and "book" not in title


# Accessory type -> predicate over a lower-cased product title.
_ACCESSORY_MATCHERS: Dict[str, Callable[[str], bool]] = {
    "parasol": lambda title: "parasol" in title or "umbrella" in title,
    "cushions": lambda title: "cushion" in title or "pillow" in title,
    "furniture-cover": _is_cover,
    "weather-cover": _is_cover,
    "side-table": lambda title: "side table" in title or "coffee table" in title,
    "ottoman": lambda title: "ottoman" in title or "footstool" in title,
    "teak-care-kit": lambda title: "teak" in title and ("care" in title or "oil" in title),
    "throw-pillows": lambda title: "pillow" in title or "throw" in title,
    "drinks-table": lambda title: "drinks" in title or "coffee table" in title,
}


def detect_room_category(product: Product) -> str | None:
    """Pick the room bundle category that fits a product's text."""

    text = product.search_text
    if "dining" in text and ("set" in text or "table" in text):
        return "dining-set"
    if "lounge" in text or "sofa" in text or "seating" in text:
        return "lounge-set"
    if "corner" in text and "set" in text:
        return "corner-set"
    if "teak" in text:
        return "teak-furniture"
    return None


def find_room_accessories(
    products: Sequence[Product], accessory_types: Sequence[str], exclude_sku: str | None = None
) -> List[Product]:
    """Return the first catalog product matching each accessory type.

    Types without a matcher (``protective-cover``, ``cleaning-kit``) and types
    with no matching product contribute nothing.
    """

    accessories: List[Product] = []
    used: set[str] = set()
    for accessory_type in accessory_types:
        matcher = _ACCESSORY_MATCHERS.get(accessory_type)
        if matcher is None:
            continue
        for product in products:
            if product.sku == exclude_sku or product.sku in used:
                continue
            if matcher(product.title.lower()):
                accessories.append(product)
                used.add(product.sku)
                break
    return accessories


def build_room_bundle_offer(
    main: Product, bundle: RoomBundle, accessories: Sequence[Product], pricing: BundlePricing
) -> str:
    """Render the room bundle offer with its bundle pricing."""

    lines = [f"Perfect choice! {bundle.social_proof}:", ""]
    lines.append(f"- **{main.title}** - £{main.display_price}")
    lines.extend(f"- **{item.title}** - £{item.display_price}" for item in accessories)
    lines.append("")
    lines.append(f"**{bundle.name}**: £{pricing.bundle_price}")
    lines.append(f"**Save £{pricing.savings}** vs buying separately")
    lines.append("")
    lines.append(f"This bundle gives you everything needed for your complete {bundle.theme}.")
    return "\n".join(lines)


__all__ = [
    "ROOM_BUNDLES",
    "RoomBundle",
    "RoomCategory",
    "build_room_bundle_offer",
    "detect_room_category",
    "find_room_accessories",
]
