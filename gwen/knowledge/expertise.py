"""Lookups over the knowledge store that back the expertise tools.

Every function here is pure: it reads the :class:`KnowledgeStore` and returns
customer-facing text (or a small structured result). When a record is absent
the wording stays honest and generic; nothing is invented.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Mapping, Sequence

from .store import KnowledgeStore

WarrantyQuery = Literal[
    "full_breakdown", "material_specific", "company_policy", "replacement_parts"
]
MaterialQuery = Literal["maintenance", "properties", "climate", "all"]

COMPANY_WARRANTY_YEARS = 1

_COMPANY_GUARANTEE = (
    "**MINT Outdoor 1-Year Guarantee:**\n"
    "- Structural defects and manufacturing faults\n"
    "- Free replacement parts within the first year\n"
    "- Unexpected material degradation coverage\n"
)

_POLYWOOD_ALIAS = "polystyrene imitation wood plank"


@dataclass(frozen=True)
class KnowledgeAnswer:
    """Rendered answer plus the education topics it covered."""

    text: str
    found: bool
    topics: tuple[str, ...] = ()


def _joined(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return str(value)


def _find_named(records: Sequence[Mapping[str, Any]], name: str, exact: bool) -> Mapping[str, Any] | None:
    wanted = name.lower()
    for record in records:
        candidate = str(record.get("name", "")).lower()
        if (candidate == wanted) if exact else (wanted in candidate):
            return record
    return None


def _pros_cons(record: Mapping[str, Any]) -> tuple[List[str], List[str]]:
    pros_cons = record.get("pros_cons") or {}
    return list(pros_cons.get("pros") or []), list(pros_cons.get("cons") or [])


# --- stock -----------------------------------------------------------------


@dataclass(frozen=True)
class AvailabilityReport:
    sku: str
    in_stock: bool
    stock_level: int | None
    message: str


def stock_status(knowledge: KnowledgeStore, sku: str) -> AvailabilityReport:
    """Report stock for an SKU from the inventory table; unknown counts as in stock."""

    record = knowledge.inventory_for(sku)
    if record is None:
        return AvailabilityReport(
            sku=sku,
            in_stock=True,
            stock_level=None,
            message="Stock information not available for this product",
        )
    try:
        available = int(float(record.get("available") or 0))
    except (TypeError, ValueError):
        available = 0
    in_stock = available > 0
    return AvailabilityReport(
        sku=sku,
        in_stock=in_stock,
        stock_level=available,
        message="In stock" if in_stock else "Currently out of stock",
    )


# --- warranty --------------------------------------------------------------


def _material_record(
    knowledge: KnowledgeStore, material_type: str, material_name: str
) -> Mapping[str, Any] | None:
    """Join a product material to its master table entry by type."""

    if material_type == "wood":
        return _find_named(knowledge.wood_master, material_name, exact=True)
    if material_type == "metal":
        return _find_named(knowledge.metals_master, material_name, exact=True)
    if material_type == "fabric":
        return _find_named(knowledge.fabrics_master, material_name, exact=True)
    if material_type == "synthetic":
        if material_name == "polywood_slats":
            return _find_named(knowledge.synthetics_master, _POLYWOOD_ALIAS, exact=False)
        return _find_named(knowledge.synthetics_master, material_name, exact=False)
    if material_type == "glass":
        return _find_named(knowledge.stone_composites_master, "glass", exact=False)
    if material_type == "stone_composite":
        return _find_named(knowledge.stone_composites_master, material_name, exact=False)
    return None


def warranty_breakdown(
    knowledge: KnowledgeStore, sku: str, query_type: WarrantyQuery = "full_breakdown"
) -> KnowledgeAnswer:
    """Company guarantee plus the per-material warranties of a product."""

    entry = next(
        (item for item in knowledge.product_material_index if item.get("sku") == sku),
        None,
    )
    if entry is None:
        return KnowledgeAnswer(
            text=(
                "All MINT Outdoor products come with our 1-year structural guarantee "
                "covering replacement parts and manufacturing defects. I don't have the "
                f'individual material warranties for "{sku}" on record, so our team can '
                "confirm those details for you."
            ),
            found=False,
            topics=("warranty",),
        )

    title = entry.get("product_title") or sku
    if query_type == "company_policy":
        return KnowledgeAnswer(
            text=f"**{title} - Company Guarantee:**\n\n{_COMPANY_GUARANTEE}",
            found=True,
            topics=("warranty",),
        )
    if query_type == "replacement_parts":
        return KnowledgeAnswer(
            text=(
                f"**{title} - Replacement Parts:**\n\n"
                "Replacement parts are free within the first year under our "
                "1-year guarantee. Our team will arrange them once they have your "
                "order details."
            ),
            found=True,
            topics=("warranty",),
        )

    lines: List[str] = [f"**{title} - Complete Warranty Protection:**", ""]
    if query_type == "full_breakdown":
        lines.extend([_COMPANY_GUARANTEE, ""])
    lines.extend(["**Individual Material Warranties:**", ""])

    longest = COMPANY_WARRANTY_YEARS
    for material in entry.get("materials") or []:
        material_name = str(material.get("material_name", ""))
        component = material.get("component") or "component"
        record = _material_record(
            knowledge, str(material.get("material_type", "")), material_name
        )
        warranty = (record or {}).get("warranty") or {}
        years = warranty.get("period_years")
        if record is None or years is None:
            lines.append(
                f"**{material_name}** ({component}): covered under the 1-year guarantee"
            )
            lines.append("")
            continue

        longest = max(longest, int(years))
        lines.append(f"**{record.get('name')}** ({component}):")
        lines.append(f"- {years} year warranty - {warranty.get('coverage', '')}".rstrip(" -"))
        if record.get("level"):
            lines.append(f"- Quality level: {record['level']}")
        pros, _ = _pros_cons(record)
        if pros:
            lines.append(f"- Key benefits: {', '.join(pros[:2])}")
        lines.append("")

    lines.extend(
        [
            "**Your Protection Summary:**",
            f"- Immediate: {COMPANY_WARRANTY_YEARS}-year full product guarantee",
            f"- Extended: up to {longest} years on individual materials",
            "- Support: free replacement parts in the first year",
        ]
    )
    return KnowledgeAnswer(text="\n".join(lines), found=True, topics=("warranty",))


# --- materials, fabrics, seasons --------------------------------------------


_MATERIAL_MASTERS = {
    "teak": ("wood_master", True),
    "aluminium": ("metals_master", True),
    "rattan": ("synthetics_master", False),
    "olefin": ("fabrics_master", False),
    "polyester": ("fabrics_master", False),
}


def material_expertise(
    knowledge: KnowledgeStore, material: str, query_type: MaterialQuery = "all"
) -> KnowledgeAnswer:
    """Maintenance, properties and climate guidance for one material."""

    material = material.lower()
    sections: List[str] = []
    topics: List[str] = ["materials"]

    maintenance = knowledge.material_maintenance.get(material)
    if query_type in ("maintenance", "all") and isinstance(maintenance, Mapping):
        block = [f"**{material.capitalize()} Maintenance:**"]
        if maintenance.get("why"):
            block.append(f"Why maintain: {maintenance['why']}")
        if maintenance.get("cleaning"):
            block.append(f"Cleaning: {_joined(maintenance['cleaning'])}")
        if maintenance.get("protection"):
            block.append(f"Protection: {_joined(maintenance['protection'])}")
        sections.append("\n".join(block))
        topics.append("maintenance")

    master = _MATERIAL_MASTERS.get(material)
    details = None
    if master is not None:
        attribute, exact = master
        details = _find_named(getattr(knowledge, attribute), material, exact=exact)
    if query_type in ("properties", "all") and details is not None:
        block = ["**Material Properties:**", str(details.get("description", ""))]
        pros, cons = _pros_cons(details)
        if pros:
            block.append(f"Pros: {', '.join(pros)}")
        if cons:
            block.append(f"Considerations: {', '.join(cons)}")
        sections.append("\n".join(block))

    climate = knowledge.climate_master.get(material)
    if query_type in ("climate", "all") and isinstance(climate, Mapping):
        block = ["**Climate Performance:**"]
        block.extend(
            f"{str(condition).replace('_', ' ')}: {advice}"
            for condition, advice in climate.items()
        )
        sections.append("\n".join(block))

    if not sections:
        return KnowledgeAnswer(
            text=(
                f"I don't have detailed {material} guidance on record. It is part of "
                "our outdoor furniture collection and our team can share specifics."
            ),
            found=False,
            topics=tuple(topics),
        )
    return KnowledgeAnswer(text="\n\n".join(sections), found=True, topics=tuple(topics))


def fabric_expertise(knowledge: KnowledgeStore, fabric_type: str) -> KnowledgeAnswer:
    """Performance details for an outdoor fabric."""

    record = _find_named(knowledge.fabrics_master, fabric_type, exact=False)
    if record is None:
        return KnowledgeAnswer(
            text=(
                f"{fabric_type} is used in our outdoor furniture. Our team can share "
                "detailed fabric specifications."
            ),
            found=False,
        )

    header = f"**{record.get('name')}**"
    if record.get("level"):
        header += f" ({record['level']})"
    lines = [f"{header}:", str(record.get("description", "")), ""]
    pros, cons = _pros_cons(record)
    if pros:
        lines.append(f"Pros: {', '.join(pros)}")
    if cons:
        lines.append(f"Considerations: {', '.join(cons)}")
    warranty = record.get("warranty") or {}
    if warranty.get("period_years") is not None:
        lines.append(
            f"Warranty: {warranty['period_years']} years - {warranty.get('coverage', '')}".rstrip(" -")
        )
    return KnowledgeAnswer(text="\n".join(lines), found=True, topics=("materials",))


def seasonal_advice(knowledge: KnowledgeStore, season: str) -> KnowledgeAnswer:
    patterns = knowledge.market_master.get("seasonal_demand_patterns") or {}
    data = patterns.get(season)
    if not isinstance(data, Mapping):
        return KnowledgeAnswer(
            text=(
                "Seasonal advice is available year-round. Our outdoor furniture is "
                "designed for UK weather conditions."
            ),
            found=False,
        )
    lines = [f"**{season.capitalize()} Recommendations:**"]
    if data.get("focus"):
        lines.append(f"Focus: {data['focus']}")
    if data.get("products"):
        lines.append(f"Recommended products: {', '.join(map(str, data['products']))}")
    if data.get("marketing_tips"):
        lines.append(f"Tip: {data['marketing_tips']}")
    return KnowledgeAnswer(text="\n".join(lines), found=True)


# --- dimensions ------------------------------------------------------------


def _find_space_record(
    records: Sequence[Mapping[str, Any]], sku: str
) -> Mapping[str, Any] | None:
    for record in records:
        if record.get("sku") == sku:
            return record

    term = sku.lower().strip()
    if not term:
        return None
    for record in records:
        title = str(record.get("product_title") or "").lower()
        first_word = title.split(" ")[0] if title else ""
        if term in title or (first_word and first_word in term):
            return record
    return None


def product_dimensions(knowledge: KnowledgeStore, sku: str) -> KnowledgeAnswer:
    """Measurements and assembly details from the space configuration table."""

    record = _find_space_record(knowledge.space_config, sku)
    if record is None:
        return KnowledgeAnswer(
            text=(
                f'I don\'t have detailed dimension data for "{sku}" yet. Our support '
                "team can confirm precise measurements."
            ),
            found=False,
            topics=("dimensions",),
        )

    topics = ["dimensions"]
    lines = [
        f"**{record.get('product_title')} - Dimensions & Details:**",
        (
            f"Dimensions: {record.get('dimensions_width_cm')}cm W x "
            f"{record.get('dimensions_depth_cm')}cm D x {record.get('dimensions_height_cm')}cm H"
        ),
    ]
    if record.get("seats") is not None:
        lines.append(f"Seating: {record['seats']} people")
    if record.get("assembly_required"):
        difficulty = record.get("assembly_difficulty") or "standard"
        lines.append(f"Assembly: required ({difficulty} difficulty)")
        topics.append("assembly")
    if record.get("seat_height_cm"):
        lines.append(f"Seat height: {record['seat_height_cm']}cm")
    if record.get("cushion_thickness_cm"):
        lines.append(f"Cushion thickness: {record['cushion_thickness_cm']}cm")
    if record.get("cover_available"):
        lines.append("Cover available: yes")
    if record.get("instructions_url"):
        lines.append(f"[View Assembly Guide]({record['instructions_url']})")
    return KnowledgeAnswer(text="\n".join(lines), found=True, topics=tuple(topics))


# --- FAQ and covers --------------------------------------------------------


def find_faq_answer(knowledge: KnowledgeStore, keyword: str) -> str | None:
    """Return the first FAQ answer whose question or keywords mention ``keyword``."""

    wanted = keyword.lower().strip()
    if not wanted:
        return None
    words = wanted.split()
    for faq in knowledge.product_faqs:
        question = str(faq.get("question", "")).lower()
        keywords = [str(item).lower() for item in faq.get("keywords") or []]
        if wanted in question or any(wanted in item or item in wanted for item in keywords):
            return faq.get("answer")
        if all(word in question for word in words):
            return faq.get("answer")
    return None


def find_cover_family(knowledge: KnowledgeStore, furniture_sku: str) -> tuple[str, str] | None:
    """Return ``(family_name, cover_sku)`` when a family explicitly lists the SKU."""

    families: Dict[str, Any] = knowledge.product_families.get("furniture_families") or {}
    for family_name, data in families.items():
        if furniture_sku in (data.get("furniture_skus") or []) and data.get("cover_sku"):
            return family_name, str(data["cover_sku"])
    return None


__all__ = [
    "AvailabilityReport",
    "KnowledgeAnswer",
    "MaterialQuery",
    "WarrantyQuery",
    "fabric_expertise",
    "find_cover_family",
    "find_faq_answer",
    "material_expertise",
    "product_dimensions",
    "seasonal_advice",
    "stock_status",
    "warranty_breakdown",
]
