"""Deterministic replies for a pending bundle offer; these turns never reach the LLM."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Sequence

import logfire

from ..bundles.engine import (
    BundleAccessory,
    calculate_bundle_price,
    recommend_bundle_accessories,
)
from ..bundles.rooms import (
    ROOM_BUNDLES,
    build_room_bundle_offer,
    detect_room_category,
    find_room_accessories,
)
from ..catalog.models import Product
from ..catalog.sources import CatalogService
from ..config import settings
from ..handoff.email import ContactDetails, MarketingHandoff
from ..knowledge.store import KnowledgeStore
from .state import AwaitingBundleResponse, AwaitingContactDetails, Session

logger = logging.getLogger(__name__)

AFFIRMATIVE_KEYWORDS = ("yes", "sure", "show", "see", "please", "ok")
NEGATIVE_KEYWORDS = ("no", "not interested")

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
POSTCODE_PATTERN = re.compile(r"\b[A-Z]{1,2}[0-9][A-Z0-9]?\s?[0-9][A-Z]{2}\b", re.IGNORECASE)

CLAIM_EXAMPLE = 'Example: "john@email.com SW1A 1AA"'


@dataclass(frozen=True)
class FlowReply:
    message: str


def is_affirmative(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in AFFIRMATIVE_KEYWORDS)


def is_negative(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in NEGATIVE_KEYWORDS)


def extract_contact_details(message: str) -> ContactDetails:
    """Pull the first email address and UK postcode out of free text."""

    email = EMAIL_PATTERN.search(message)
    postcode = POSTCODE_PATTERN.search(message)
    return ContactDetails(
        email=email.group() if email else None,
        postcode=postcode.group() if postcode else None,
    )


def _claim_instructions(refund: int) -> List[str]:
    return [
        f"**Special Offer:** Add any of these and get a £{refund} refund within 48 hours!",
        "",
        "Reply with your **email and postcode** to claim.",
        CLAIM_EXAMPLE,
    ]


def render_accessories(
    accessories: Sequence[BundleAccessory], main: Product | None, refund: int
) -> str:
    lines = ["Excellent! Here are some popular accessories:", ""]
    for accessory in accessories:
        product = accessory.product
        lines.append(f"**{product.title}**")
        lines.append(f"Price: £{product.display_price}")
        if product.image_url:
            lines.append(
                f'<img src="{product.image_url}" alt="{product.title}" style="width: 100%; '
                'max-width: 400px; height: auto; border-radius: 8px; margin: 10px 0;">'
            )
        lines.extend(["", "---", ""])

    if main is not None:
        pricing = calculate_bundle_price(
            main.price, [accessory.product.price for accessory in accessories]
        )
        lines.append(
            f"Together with the **{main.title}** that comes to £{pricing.bundle_price} "
            f"instead of £{pricing.total_price}, saving £{pricing.savings}."
        )
        lines.append("")

    lines.extend(_claim_instructions(refund))
    return "\n".join(lines)


async def _room_bundle_offer(
    session: Session, pending: AwaitingBundleResponse, main: Product | None, catalog: CatalogService
) -> str | None:
    if main is None:
        return None
    category = pending.category or detect_room_category(main)
    bundle = ROOM_BUNDLES.get(category or "")
    if bundle is None:
        return None
    accessories = find_room_accessories(
        await catalog.sellable_products(), bundle.accessories, exclude_sku=main.sku
    )
    if not accessories:
        return None
    pricing = calculate_bundle_price(main.price, [item.price for item in accessories])
    logfire.info(
        "bundles.room_offer", session_id=session.session_id, category=category,
        skus=[item.sku for item in accessories],
    )
    return build_room_bundle_offer(main, bundle, accessories, pricing)


async def _show_bundle(
    session: Session,
    pending: AwaitingBundleResponse,
    knowledge: KnowledgeStore,
    catalog: CatalogService,
    refund: int,
) -> FlowReply:
    session.offered_bundle = True
    try:
        accessories = await recommend_bundle_accessories(pending.sku, knowledge, catalog)
        main = await catalog.find_by_sku(pending.sku)
        if accessories:
            session.pending = AwaitingContactDetails(sku=pending.sku)
            return FlowReply(render_accessories(accessories, main, refund))

        room_offer = await _room_bundle_offer(session, pending, main, catalog)
    except Exception:  # noqa: BLE001
        logger.exception("Bundle lookup failed for %s", pending.sku)
        session.clear_pending()
        return FlowReply(
            "I'm having trouble with our bundle system. This product is still excellent though!"
        )

    if room_offer is not None:
        session.pending = AwaitingContactDetails(sku=pending.sku)
        return FlowReply("\n".join([room_offer, "", *_claim_instructions(refund)]))

    session.clear_pending()
    return FlowReply(
        "I checked our current offers but don't have specific bundles available right now. "
        "This is still a great product though!"
    )


async def handle_bundle_response(
    message: str,
    session: Session,
    knowledge: KnowledgeStore,
    catalog: CatalogService,
    refund: int | None = None,
) -> FlowReply | None:
    """Answer a reply to a bundle offer.

    Returns ``None`` when the reply is still ambiguous after one re-prompt;
    the pending offer is then dropped and the message goes to the LLM.
    """

    pending = session.pending
    if not isinstance(pending, AwaitingBundleResponse):
        raise ValueError("session is not awaiting a bundle response")
    refund = settings.bundle_refund_amount if refund is None else refund

    # Affirmative wins over negative: "yes, no problem" accepts.
    if is_affirmative(message):
        with logfire.span("bundles.accepted", session_id=session.session_id, sku=pending.sku):
            return await _show_bundle(session, pending, knowledge, catalog, refund)

    if is_negative(message):
        session.offered_bundle = True
        session.clear_pending()
        return FlowReply("No problem! How else can I help you?")

    if not pending.reprompted:
        session.pending = pending.model_copy(update={"reprompted": True})
        return FlowReply(
            "Would you like to see the bundle deals for this product? Just reply yes or no."
        )

    session.offered_bundle = True
    session.clear_pending()
    return None


async def handle_contact_details(
    message: str,
    session: Session,
    handoff: MarketingHandoff,
    refund: int | None = None,
) -> FlowReply:
    """Collect email and postcode for the refund claim and notify marketing."""

    if not isinstance(session.pending, AwaitingContactDetails):
        raise ValueError("session is not awaiting contact details")
    refund = settings.bundle_refund_amount if refund is None else refund

    contact = extract_contact_details(message)
    if not (contact.email and contact.postcode):
        missing = []
        if not contact.email:
            missing.append("email address")
        if not contact.postcode:
            missing.append("postcode")
        return FlowReply(
            f"I need your {' and '.join(missing)} to process the £{refund} refund. "
            f"Please provide both in your next message.\n\n{CLAIM_EXAMPLE}"
        )

    session.clear_pending()
    sent = await handoff.send(
        session.session_id,
        f"Bundle Purchase with £{refund} Refund Claim",
        session.history,
        contact,
    )
    if sent:
        return FlowReply(
            f"Excellent! I have your details:\nEmail: {contact.email}\n"
            f"Postcode: {contact.postcode}\n\nPlease place your bundle order using the "
            f"email and postcode you gave me and I will arrange the £{refund} refund "
            "within 48 hours.\n\nThank you for choosing MINT Outdoor!"
        )
    return FlowReply(
        "I have your details, but I'm having trouble with our system. Please email "
        f"{settings.marketing_email} with:\n\n"
        f'- Subject: "Bundle Order + £{refund} Refund"\n'
        f"- Your email: {contact.email}\n"
        f"- Your postcode: {contact.postcode}\n"
        f"- Session ID: {session.session_id}\n\n"
        "Our team will process this quickly!"
    )


__all__ = [
    "EMAIL_PATTERN",
    "FlowReply",
    "POSTCODE_PATTERN",
    "extract_contact_details",
    "handle_bundle_response",
    "handle_contact_details",
    "is_affirmative",
    "is_negative",
    "render_accessories",
]
