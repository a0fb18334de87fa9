"""Tests for order/sales routing and the per-turn signals."""

from __future__ import annotations

import pytest

from gwen.conversation.intent import (
    classify,
    detect_buying_interest,
    detect_escalation,
    extract_order_number,
)
from gwen.conversation.state import AwaitingBundleResponse, ConversationMode, Session


@pytest.mark.parametrize(
    ("message", "reason"),
    [
        ("Where is my order 1234567?", "order_number"),
        ("1234567", "order_number"),
        ("When will my delivery arrive", "order_keyword"),
        ("I want to return a chair", "order_keyword"),
    ],
)
def test_order_messages_route_to_order_desk(message: str, reason: str) -> None:
    decision = classify(message, Session(session_id="s"))

    assert decision.target is ConversationMode.ORDER
    assert decision.reason == reason


def test_sales_is_the_default_route() -> None:
    decision = classify("Show me teak dining sets", Session(session_id="s"))

    assert decision.target is ConversationMode.SALES
    assert decision.reason == "default_sales"


def test_order_mode_is_sticky() -> None:
    session = Session(session_id="s", mode=ConversationMode.ORDER)

    decision = classify("Smith SW1A 1AA", session)

    assert decision.target is ConversationMode.ORDER
    assert decision.reason == "sticky_order_mode"


def test_short_numbers_are_not_order_numbers() -> None:
    assert extract_order_number("a table for 12345 people") is None
    assert extract_order_number("order 7654321 please") == "7654321"


def test_buying_interest_ignores_browsing_questions() -> None:
    assert detect_buying_interest("I love this, ready to buy") is True
    assert detect_buying_interest("What about the one you like?") is False
    assert detect_buying_interest("cost") is False


def test_escalation_phrases_are_detected() -> None:
    assert detect_escalation("Can I speak to someone please") is True
    assert detect_escalation("Show me parasols") is False


def test_order_number_pre_empts_a_pending_sales_offer() -> None:
    session = Session(session_id="s", pending=AwaitingBundleResponse(sku="HAV-DIN-8"))

    decision = classify("what's the status of order 482913, I also want a new sofa", session)

    assert decision.target is ConversationMode.ORDER
    assert decision.reason == "order_number"
