"""Quick-reply suggestions returned alongside each answer."""

from __future__ import annotations

from typing import List

from .state import ConversationMode

TEAK_SUGGESTIONS = ["Teak maintenance guide", "Show teak dining sets", "Assembly options"]
DINING_SUGGESTIONS = ["How many people to seat?", "Assembly service", "Delivery information"]
DEFAULT_SALES_SUGGESTIONS = ["Dining sets", "Lounge furniture", "Material guide"]
ORDER_SUGGESTIONS = ["Track my order", "Returns information", "Contact support"]
FLOW_SUGGESTIONS = ["Continue", "Tell me more"]
MISSING_INPUT_SUGGESTIONS = ["Hello", "I need help"]


def generate_suggestions(message: str, mode: ConversationMode) -> List[str]:
    if mode is ConversationMode.ORDER:
        return list(ORDER_SUGGESTIONS)
    lowered = message.lower()
    if "teak" in lowered:
        return list(TEAK_SUGGESTIONS)
    if "dining" in lowered:
        return list(DINING_SUGGESTIONS)
    return list(DEFAULT_SALES_SUGGESTIONS)


__all__ = [
    "FLOW_SUGGESTIONS",
    "MISSING_INPUT_SUGGESTIONS",
    "ORDER_SUGGESTIONS",
    "generate_suggestions",
]
