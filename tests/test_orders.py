"""Tests for order lookup, verification and the order desk reply."""

from __future__ import annotations

import pytest

from gwen.config import settings
from gwen.conversation.orders import OrderBook, handle_order_turn, order_desk_reply
from gwen.conversation.state import AwaitingOrderVerification, NormalState, Session


@pytest.fixture
def orders(knowledge) -> OrderBook:
    return OrderBook(knowledge.orders)


def test_verification_is_case_and_space_insensitive(orders: OrderBook) -> None:
    assert orders.verify("1234567", "smith", "sw1a1aa").verified is True
    assert orders.verify("1234567", "SMI", "SW1A 1AA").verified is True
    assert orders.verify("1234567", "Jones", "SW1A 1AA").verified is False
    assert orders.verify("9999999", "Smith", "SW1A 1AA").verified is False


def test_known_order_number_asks_for_verification(orders: OrderBook) -> None:
    session = Session(session_id="s")

    reply = handle_order_turn("Where is order 1234567?", session, orders)

    assert reply.message.startswith("I found your order 1234567!")
    assert isinstance(session.pending, AwaitingOrderVerification)
    assert reply.handoff is None


def test_unknown_order_number_points_to_support(orders: OrderBook) -> None:
    session = Session(session_id="s")

    reply = handle_order_turn("order 5555555", session, orders)

    assert "couldn't find order 5555555" in reply.message
    assert settings.support_email in reply.message
    assert isinstance(session.pending, NormalState)


def test_postcode_with_a_space_verifies(orders: OrderBook) -> None:
    session = Session(session_id="s", pending=AwaitingOrderVerification(order_id="1234567"))

    reply = handle_order_turn("Smith SW1A 1AA", session, orders)

    assert "Your order 1234567 is confirmed" in reply.message
    assert session.verified is True
    assert session.verified_order_id == "1234567"
    assert isinstance(session.pending, NormalState)


def test_single_word_reply_asks_for_both_details(orders: OrderBook) -> None:
    session = Session(session_id="s", pending=AwaitingOrderVerification(order_id="1234567"))

    reply = handle_order_turn("Smith", session, orders)

    assert reply.message == "Please provide both your surname and postcode separated by a space."
    assert isinstance(session.pending, AwaitingOrderVerification)


def test_failed_verification_keeps_waiting(orders: OrderBook) -> None:
    session = Session(session_id="s", pending=AwaitingOrderVerification(order_id="1234567"))

    reply = handle_order_turn("Jones M1 2AB", session, orders)

    assert reply.message.startswith("I couldn't verify those details.")
    assert session.verified is False
    assert isinstance(session.pending, AwaitingOrderVerification)


def test_other_order_questions_go_to_the_order_desk(orders: OrderBook) -> None:
    reply = handle_order_turn("When will my delivery arrive?", Session(session_id="s"), orders)

    assert reply == order_desk_reply()
    assert reply.handoff == "order_desk"
    assert reply.handoff_url == settings.order_desk_url
    assert "ORDER HELPDESK" in reply.message


def test_unknown_order_number_keeps_the_pending_verification(orders: OrderBook) -> None:
    session = Session(session_id="s", pending=AwaitingOrderVerification(order_id="1234567"))

    reply = handle_order_turn("sorry, it's order 5555555", session, orders)

    assert "couldn't find order 5555555" in reply.message
    assert session.pending == AwaitingOrderVerification(order_id="1234567")

    verified = handle_order_turn("Smith SW1A 1AA", session, orders)

    assert "Your order 1234567 is confirmed" in verified.message
