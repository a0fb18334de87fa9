"""Keyword routing between the order desk and the sales pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Sequence

from .state import ConversationMode, Session

ORDER_NUMBER_PATTERN = re.compile(r"\b\d{6,}\b")

ORDER_KEYWORDS = (
    "order",
    "delivery",
    "tracking",
    "shipped",
    "dispatch",
    "courier",
    "when will",
    "where is",
    "status of",
    "delayed",
    "late",
    "received",
    "order number",
    "tracking number",
    "delivered",
    "refund",
    "return",
    "cancel",
    "change order",
    "modify order",
    "update order",
)

STRONG_BUYING_SIGNALS = (
    "love this", "love it", "perfect for", "exactly what i need", "exactly what we need",
    "this is perfect", "looks perfect", "that's perfect", "i want this", "i want that",
    "how much", "what's the price", "cost", "when can i get", "when can we get",
    "i'm interested in buying", "interested in purchasing", "ready to buy",
    "looks great", "that looks great", "beautiful", "gorgeous", "stunning",
    "i need this", "we need this", "this would be ideal", "this would work",
    "delivery", "assembly", "how long", "available", "in stock",
    "would like to buy", "i would like to buy", "would like to purchase",
    "i'd like this", "i'd like to buy", "i'll take it", "let's do it",
    "want to order", "ready to order", "looks good", "sounds good",
    "i like", "like this", "like that", "like the", "i want to buy", "want to buy",
    "want to purchase", "interested in this", "interested in that",
    "this looks good", "that looks good", "this one", "that one",
)

BROWSING_PHRASES = (
    "what about", "do you have", "got any", "show me", "tell me about",
    "what is", "what's", "how about", "any other", "anything else",
)

ESCALATION_TRIGGERS = (
    "want to place an order", "ready to buy", "purchase this",
    "call me", "phone me", "email me", "contact me back",
    "speak to someone", "human", "real person", "customer service",
    "complaint", "manager", "supervisor", "not satisfied",
)

_MIN_INTEREST_LENGTH = 5


@dataclass(frozen=True)
class IntentDecision:
    """Routing outcome for one inbound message."""

    target: ConversationMode
    reason: str


@dataclass(frozen=True)
class IntentRule:
    name: str
    target: ConversationMode
    matches: Callable[[str, Session], bool]


def has_order_number(message: str) -> bool:
    return ORDER_NUMBER_PATTERN.search(message) is not None


def extract_order_number(message: str) -> str | None:
    match = ORDER_NUMBER_PATTERN.search(message)
    return match.group() if match else None


def has_order_keyword(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in ORDER_KEYWORDS)


# First match wins; the final rule is the explicit default.
INTENT_RULES: Sequence[IntentRule] = (
    IntentRule("order_number", ConversationMode.ORDER, lambda message, _: has_order_number(message)),
    IntentRule("order_keyword", ConversationMode.ORDER, lambda message, _: has_order_keyword(message)),
    IntentRule(
        "sticky_order_mode",
        ConversationMode.ORDER,
        lambda _, session: session.mode is ConversationMode.ORDER,
    ),
    IntentRule("default_sales", ConversationMode.SALES, lambda _message, _session: True),
)


def classify(message: str, session: Session) -> IntentDecision:
    """Route a message using the ordered rule table."""

    for rule in INTENT_RULES:
        if rule.matches(message, session):
            return IntentDecision(target=rule.target, reason=rule.name)
    raise RuntimeError("intent rule table has no default rule")  # pragma: no cover


def detect_buying_interest(message: str) -> bool:
    """True for strong purchase signals that are not browsing questions."""

    if len(message) < _MIN_INTEREST_LENGTH:
        return False
    lowered = message.lower()
    if any(phrase in lowered for phrase in BROWSING_PHRASES):
        return False
    return any(signal in lowered for signal in STRONG_BUYING_SIGNALS)


def detect_escalation(message: str) -> bool:
    """True when the customer asks for a person, a callback or raises a complaint."""

    lowered = message.lower()
    return any(trigger in lowered for trigger in ESCALATION_TRIGGERS)


__all__ = [
    "INTENT_RULES",
    "IntentDecision",
    "IntentRule",
    "classify",
    "detect_buying_interest",
    "detect_escalation",
    "extract_order_number",
    "has_order_keyword",
    "has_order_number",
]
