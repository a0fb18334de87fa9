"""Tool definitions and helper functions for the sales assistant."""

from __future__ import annotations

import logging
from typing import Dict, List, Literal

import logfire
from pydantic_ai.tools import RunContext, Tool

from ..bundles.engine import (
    identify_bundle_opportunities,
    resolve_bundle_products,
    should_offer_bundle_naturally,
)
from ..catalog.models import SearchCriteria
from ..config import settings
from ..conversation.state import AwaitingBundleResponse
from ..knowledge.expertise import (
    KnowledgeAnswer,
    fabric_expertise,
    find_cover_family,
    find_faq_answer,
    material_expertise,
    product_dimensions,
    seasonal_advice,
    stock_status,
    warranty_breakdown,
)
from .dependencies import AgentDependencies
from .schemas import (
    AvailabilityResult,
    BundleCheckResult,
    BundleOfferResult,
    CoverSuggestion,
    KnowledgeResult,
    ProductCard,
    ProductSearchResult,
    ToolMessage,
)

logger = logging.getLogger(__name__)

BUNDLE_OFFER_TEXT = (
    "By the way, we have bundle offers available for this product that could save you "
    "money. Would you like to see what bundle deals we have?"
)
NOT_READY_MESSAGE = "Continue natural conversation - not ready for bundle offer yet"
FAQ_FALLBACK = "I can't find a specific FAQ for that, but I can provide general advice."


def _unavailable(feature: str) -> ToolMessage:
    return ToolMessage(
        success=False,
        message=f"{feature} temporarily unavailable - continue with normal conversation",
    )


def _knowledge_result(ctx: RunContext[AgentDependencies], answer: KnowledgeAnswer) -> KnowledgeResult:
    """Record the covered education topics and wrap the answer."""

    education = ctx.deps.session.education
    for topic in answer.topics:
        education.track(topic)
    return KnowledgeResult(success=answer.found, content=answer.text)


def enrich_criteria(criteria: SearchCriteria) -> SearchCriteria:
    """Infer material and furniture type from a free-text product name."""

    if not criteria.product_name:
        return criteria
    name = criteria.product_name.lower()
    updates: Dict[str, str] = {}
    if "teak" in name and ("lounge" in name or "sofa" in name):
        updates.update(material="teak", furniture_type="lounge")
    if "dining" in name and not (criteria.furniture_type or updates.get("furniture_type")):
        updates["furniture_type"] = "dining"
    material = criteria.material or updates.get("material")
    if "aluminium" in name and not material:
        updates["material"] = material = "aluminium"
    if "rattan" in name and not material:
        updates["material"] = "rattan"
    return criteria.model_copy(update=updates) if updates else criteria


def _empty_search_suggestions(criteria: SearchCriteria) -> List[str]:
    suggestions: List[str] = []
    if criteria.material:
        suggestions.append(f"Try browsing all {criteria.material} products")
    if criteria.furniture_type:
        suggestions.append(f"Try browsing all {criteria.furniture_type} furniture")
    if criteria.product_name:
        suggestions.append("Try searching for similar products")
    return suggestions


async def _search_products(
    ctx: RunContext[AgentDependencies],
    material: str | None = None,
    furnitureType: Literal["dining", "lounge"] | None = None,
    seatCount: int | None = None,
    productName: str | None = None,
    sku: str | None = None,
    maintenance_level: Literal["very low", "low", "requires sealing"] | None = None,
    assembly_difficulty: Literal["easy", "medium", "hard"] | None = None,
    weight_class: Literal["light", "medium", "heavy", "very heavy"] | None = None,
) -> ProductSearchResult | ToolMessage:
    """Search in-stock products, or look one product up by exact SKU whatever its stock.

    Args:
        material: Material such as teak, aluminium or rattan.
        furnitureType: dining or lounge.
        seatCount: Minimum number of people to seat.
        productName: Product name or free-text description, e.g. "Havana".
        sku: Exact SKU; when given every other filter is ignored.
        maintenance_level: Maintenance preference.
        assembly_difficulty: Assembly preference.
        weight_class: Weight preference.
    """

    criteria = enrich_criteria(
        SearchCriteria(
            material=material,
            furniture_type=furnitureType,
            seat_count=seatCount if seatCount and seatCount > 0 else None,
            product_name=productName,
            sku=sku,
            maintenance_level=maintenance_level,
            assembly_difficulty=assembly_difficulty,
            weight_class=weight_class,
        )
    )
    try:
        products = await ctx.deps.catalog.search(criteria)
    except Exception:  # noqa: BLE001
        logger.exception("Product search failed for %s", criteria)
        return _unavailable("Product search")

    if not products:
        return ProductSearchResult(
            success=False,
            note=(
                "No in-stock products found matching these criteria. Out-of-stock "
                "products were excluded."
            ),
            suggestions=_empty_search_suggestions(criteria),
        )
    cards = [ProductCard.from_product(product) for product in products]
    note = "Products found. Format them using the product card template."
    if criteria.sku and not all(product.stock and product.stock.in_stock for product in products):
        note = (
            "Exact SKU match, but it is out of stock. Show the card with its stock message "
            "and do not present it as available to buy now."
        )
    return ProductSearchResult(
        success=True,
        products=cards,
        count=len(cards),
        note=note,
    )


async def _suggest_cover_with_furniture(
    ctx: RunContext[AgentDependencies], furniture_sku: str
) -> CoverSuggestion:
    family = find_cover_family(ctx.deps.knowledge, furniture_sku)
    if family is not None:
        family_name, cover_sku = family
        cover = await ctx.deps.catalog.find_by_sku(cover_sku)
        if cover is not None:
            return CoverSuggestion(
                success=True,
                family=family_name,
                cover=ProductCard.from_product(cover),
                note=f"Matching cover for {family_name}. Suggest it as an add-on card.",
            )
    return CoverSuggestion(success=False, note="No cover - do not suggest one.")


async def _get_comprehensive_warranty(
    ctx: RunContext[AgentDependencies],
    sku: str,
    query_type: Literal[
        "full_breakdown", "material_specific", "company_policy", "replacement_parts"
    ] = "full_breakdown",
) -> KnowledgeResult | ToolMessage:
    try:
        answer = warranty_breakdown(ctx.deps.knowledge, sku, query_type)
    except Exception:  # noqa: BLE001
        logger.exception("Warranty lookup failed for %s", sku)
        return _unavailable("Warranty lookup")
    return _knowledge_result(ctx, answer)


async def _get_faq_answer(
    ctx: RunContext[AgentDependencies], question_keyword: str
) -> KnowledgeResult:
    answer = find_faq_answer(ctx.deps.knowledge, question_keyword)
    if answer is None:
        return KnowledgeResult(success=False, content=FAQ_FALLBACK)
    return KnowledgeResult(success=True, content=str(answer))


async def _marketing_handoff(ctx: RunContext[AgentDependencies], reason: str) -> ToolMessage:
    session = ctx.deps.session
    sent = await ctx.deps.handoff.send(session.session_id, reason, session.history)
    if sent:
        return ToolMessage(
            success=True,
            message=(
                "Perfect! I've sent your details to our team. Someone will contact you "
                "within 2 hours to help with your inquiry."
            ),
        )
    return ToolMessage(
        success=False,
        message=(
            "I'm having trouble with our email system right now. Please email "
            f"{settings.marketing_email} directly or call us, and mention session ID: "
            f"{session.session_id}"
        ),
    )


async def _get_product_availability(
    ctx: RunContext[AgentDependencies], sku: str
) -> AvailabilityResult:
    product = await ctx.deps.catalog.find_by_sku(sku)
    if product is not None and product.stock is not None:
        return AvailabilityResult(
            sku=product.sku,
            in_stock=product.stock.in_stock,
            stock_level=product.stock.stock_level,
            message=product.stock.message,
        )
    report = stock_status(ctx.deps.knowledge, sku)
    return AvailabilityResult(
        sku=report.sku,
        in_stock=report.in_stock,
        stock_level=report.stock_level,
        message=report.message,
    )


async def _get_material_expertise(
    ctx: RunContext[AgentDependencies],
    material: Literal["teak", "aluminium", "rattan", "olefin", "polyester"],
    query_type: Literal["maintenance", "properties", "climate", "all"] = "all",
) -> KnowledgeResult | ToolMessage:
    try:
        answer = material_expertise(ctx.deps.knowledge, material, query_type)
    except Exception:  # noqa: BLE001
        logger.exception("Material expertise lookup failed for %s", material)
        return _unavailable("Material expertise")
    return _knowledge_result(ctx, answer)


async def _get_fabric_expertise(
    ctx: RunContext[AgentDependencies],
    fabric_type: Literal["sunbrella", "olefin", "polyester", "acrylic"],
) -> KnowledgeResult:
    return _knowledge_result(ctx, fabric_expertise(ctx.deps.knowledge, fabric_type))


async def _get_seasonal_advice(
    ctx: RunContext[AgentDependencies],
    season: Literal["spring", "summer", "autumn", "winter"],
) -> KnowledgeResult:
    return _knowledge_result(ctx, seasonal_advice(ctx.deps.knowledge, season))


async def _get_product_dimensions(
    ctx: RunContext[AgentDependencies], sku: str
) -> KnowledgeResult | ToolMessage:
    try:
        answer = product_dimensions(ctx.deps.knowledge, sku)
    except Exception:  # noqa: BLE001
        logger.exception("Dimension lookup failed for %s", sku)
        return _unavailable("Dimension lookup")
    return _knowledge_result(ctx, answer)


def _offer_bundle(
    ctx: RunContext[AgentDependencies], sku: str, category: str | None
) -> BundleOfferResult:
    """Open a bundle offer when the eligibility gate passes."""

    session = ctx.deps.session
    if not should_offer_bundle_naturally(session):
        logfire.info("bundles.offer_declined", session_id=session.session_id, sku=sku)
        return BundleOfferResult(success=False, message=NOT_READY_MESSAGE)

    session.offered_bundle = True
    session.pending = AwaitingBundleResponse(sku=sku, category=category)
    logfire.info("bundles.offer_opened", session_id=session.session_id, sku=sku)
    return BundleOfferResult(
        success=True,
        message="Offer the bundle to the customer and wait for their answer.",
        offer_text=BUNDLE_OFFER_TEXT,
    )


async def _offer_package_deal(
    ctx: RunContext[AgentDependencies], productSku: str
) -> BundleOfferResult | ToolMessage:
    try:
        return _offer_bundle(ctx, productSku, None)
    except Exception:  # noqa: BLE001
        logger.exception("Package deal offer failed for %s", productSku)
        return _unavailable("Bundle system")


async def _offer_bundle_naturally(
    ctx: RunContext[AgentDependencies],
    mainProductSku: str,
    productCategory: Literal["dining-set", "lounge-set", "corner-set", "teak-furniture"],
) -> BundleOfferResult | ToolMessage:
    try:
        return _offer_bundle(ctx, mainProductSku, productCategory)
    except Exception:  # noqa: BLE001
        logger.exception("Bundle offer failed for %s", mainProductSku)
        return _unavailable("Bundle system")


async def _trigger_bundle_check(
    ctx: RunContext[AgentDependencies],
    trigger_type: Literal["product_view", "cart_add", "budget_discussion", "seasonal_prompt"],
    product_sku: str,
    customer_budget: float | None = None,
) -> BundleCheckResult | ToolMessage:
    deps = ctx.deps
    try:
        bundles = identify_bundle_opportunities(deps.knowledge, product_sku, deps.now.month)
        products = await resolve_bundle_products(bundles, deps.knowledge, deps.catalog)
    except Exception:  # noqa: BLE001
        logger.exception("Bundle check failed for %s", product_sku)
        return _unavailable("Bundle system")

    logfire.info(
        "bundles.check", trigger=trigger_type, sku=product_sku, budget=customer_budget,
        bundles=len(bundles),
    )
    return BundleCheckResult(
        success=bool(bundles),
        bundles=bundles,
        products=[ProductCard.from_product(product) for product in products],
        message=(
            "Bundles available - suggest them as cards" if bundles else "No bundles found"
        ),
    )


SEARCH_PRODUCTS_TOOL = Tool(
    _search_products,
    name="search_products",
    description=(
        "Search real, in-stock MINT Outdoor products. Combine criteria when the customer gives several: "
        "an '8 seater teak dining set' is furnitureType='dining', material='teak', seatCount=8. "
        "Use productName for named products such as Havana or Malai, and sku for an exact lookup. "
        "An sku lookup skips every other filter, stock included: always relay its stock_message. "
        "Returns at most three products, cheapest first; never invent products or prices."
    ),
)

SUGGEST_COVER_TOOL = Tool(
    _suggest_cover_with_furniture,
    name="suggest_cover_with_furniture",
    description=(
        "Find the matching protective cover for a furniture SKU. Only suggest a cover when this tool "
        "returns one, and always present it together with the furniture."
    ),
)

WARRANTY_TOOL = Tool(
    _get_comprehensive_warranty,
    name="get_comprehensive_warranty",
    description=(
        "Explain the 1-year MINT Outdoor guarantee plus the individual material warranties of a product."
    ),
)

FAQ_TOOL = Tool(
    _get_faq_answer,
    name="get_faq_answer",
    description=(
        "Look up a product FAQ by a keyword from the customer's question, e.g. 'prolong life', "
        "'machine wash', 'clean polyrattan'."
    ),
)

MARKETING_HANDOFF_TOOL = Tool(
    _marketing_handoff,
    name="marketing_handoff",
    description=(
        "Send the conversation to the MINT Outdoor team when the customer wants a person, a callback, "
        "or to place an order. The reason should say why, e.g. 'Customer ready to purchase', "
        "'Callback requested', 'Cannot answer question'."
    ),
)

AVAILABILITY_TOOL = Tool(
    _get_product_availability,
    name="get_product_availability",
    description="Check current stock for a single SKU.",
)

MATERIAL_EXPERTISE_TOOL = Tool(
    _get_material_expertise,
    name="get_material_expertise",
    description="Maintenance, properties and UK climate performance of a furniture material.",
)

FABRIC_EXPERTISE_TOOL = Tool(
    _get_fabric_expertise,
    name="get_fabric_expertise",
    description="Performance details of an outdoor fabric such as Sunbrella, olefin or polyester.",
)

SEASONAL_ADVICE_TOOL = Tool(
    _get_seasonal_advice,
    name="get_seasonal_advice",
    description="Seasonal recommendations and market intelligence for outdoor furniture.",
)

DIMENSIONS_TOOL = Tool(
    _get_product_dimensions,
    name="get_product_dimensions",
    description=(
        "Dimensions, seating capacity and assembly details for a product SKU. Search for the SKU "
        "first when only the name is known."
    ),
)

PACKAGE_DEAL_TOOL = Tool(
    _offer_package_deal,
    name="offer_package_deal",
    description=(
        "Use ONLY when the customer shows strong buying interest in a specific product. When it "
        "succeeds, ask whether they would like to see the bundle deals; never for general browsing."
    ),
)

BUNDLE_NATURALLY_TOOL = Tool(
    _offer_bundle_naturally,
    name="offer_bundle_naturally",
    description=(
        "Offer to show bundle deals once the customer has seen products and asked questions. "
        "A natural, helpful offer; it succeeds at most once per conversation."
    ),
)

BUNDLE_CHECK_TOOL = Tool(
    _trigger_bundle_check,
    name="trigger_bundle_check",
    description=(
        "Check for bundles on product views, cart adds, budget talks or seasonal prompts. When "
        "bundles exist, suggest them as product cards using the returned prices."
    ),
)


ALL_TOOLS: List[Tool[AgentDependencies]] = [
    SEARCH_PRODUCTS_TOOL,
    SUGGEST_COVER_TOOL,
    WARRANTY_TOOL,
    FAQ_TOOL,
    MARKETING_HANDOFF_TOOL,
    AVAILABILITY_TOOL,
    MATERIAL_EXPERTISE_TOOL,
    FABRIC_EXPERTISE_TOOL,
    SEASONAL_ADVICE_TOOL,
    DIMENSIONS_TOOL,
    PACKAGE_DEAL_TOOL,
    BUNDLE_NATURALLY_TOOL,
    BUNDLE_CHECK_TOOL,
]

TOOL_REGISTRY: Dict[str, Tool[AgentDependencies]] = {tool.name: tool for tool in ALL_TOOLS}


__all__ = [
    "ALL_TOOLS",
    "BUNDLE_OFFER_TEXT",
    "TOOL_REGISTRY",
    "enrich_criteria",
]
