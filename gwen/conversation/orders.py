"""Order lookup and the surname + postcode verification sub-flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Sequence

import logfire

from ..config import settings
from .intent import extract_order_number
from .state import AwaitingOrderVerification, Session

logger = logging.getLogger(__name__)

_ORDER_ID_FIELDS = ("order_id", "Order_ID", "id")
_SURNAME_FIELDS = ("surname", "last_name", "Surname")
_POSTCODE_FIELDS = ("postcode", "postal_code", "Postcode")


def _first_present(record: Mapping[str, Any], names: Sequence[str]) -> str | None:
    for name in names:
        value = record.get(name)
        if value not in (None, ""):
            return str(value)
    return None


def _normalize_postcode(value: str) -> str:
    return "".join(value.lower().split())


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    order: Dict[str, Any] | None = None


class OrderBook:
    """Read-only view over the order report."""

    def __init__(self, orders: Sequence[Mapping[str, Any]]) -> None:
        self._orders = orders

    def find_order(self, order_id: str) -> Dict[str, Any] | None:
        for order in self._orders:
            if any(
                order.get(name) is not None and str(order.get(name)) == order_id
                for name in _ORDER_ID_FIELDS
            ):
                return dict(order)
        return None

    def verify(self, order_id: str, surname: str, postcode: str) -> VerificationResult:
        """Match the surname as a substring and the postcode ignoring case and spaces.

        The result never says which of the two fields failed.
        """

        order = self.find_order(order_id)
        if order is None:
            return VerificationResult(verified=False)

        stored_surname = _first_present(order, _SURNAME_FIELDS)
        stored_postcode = _first_present(order, _POSTCODE_FIELDS)
        surname_match = bool(
            stored_surname and surname and surname.lower() in stored_surname.lower()
        )
        postcode_match = bool(
            stored_postcode
            and postcode
            and _normalize_postcode(stored_postcode) == _normalize_postcode(postcode)
        )
        if surname_match and postcode_match:
            return VerificationResult(verified=True, order=order)
        return VerificationResult(verified=False)


@dataclass(frozen=True)
class OrderReply:
    message: str
    handoff: str | None = None
    handoff_url: str | None = None


def order_desk_reply() -> OrderReply:
    url = settings.order_desk_url
    return OrderReply(
        message=(
            "I can see you're asking about an existing order. Our order handling team "
            f"can help you with that. Please visit our <a href='{url}' style='color: "
            "#9FDCC2; font-weight: bold; text-decoration: none;' target='_blank'>ORDER "
            "HELPDESK</a> where you can check your order status, delivery updates, "
            "and returns."
        ),
        handoff="order_desk",
        handoff_url=url,
    )


def handle_order_turn(message: str, session: Session, orders: OrderBook) -> OrderReply:
    """Look up, verify, or hand an order enquiry over to the order desk."""

    support = settings.support_email
    order_number = extract_order_number(message)

    if order_number and not session.verified:
        with logfire.span("orders.lookup", order_id=order_number):
            order = orders.find_order(order_number)
        if order is None:
            return OrderReply(
                message=(
                    f"I couldn't find order {order_number}. Please double-check the number "
                    f"or contact {support} for assistance."
                )
            )
        session.pending = AwaitingOrderVerification(order_id=order_number)
        return OrderReply(
            message=(
                f"I found your order {order_number}! For security, I'll need to verify "
                "your identity with your surname and postcode before I can share details."
            )
        )

    if isinstance(session.pending, AwaitingOrderVerification):
        parts = message.split()
        if len(parts) < 2:
            return OrderReply(
                message="Please provide both your surname and postcode separated by a space."
            )
        order_id = session.pending.order_id
        result = orders.verify(order_id, parts[0], " ".join(parts[1:]))
        logfire.info("orders.verification", order_id=order_id, verified=result.verified)
        if not result.verified:
            logger.info("Order verification failed for session %s", session.session_id)
            return OrderReply(
                message=(
                    "I couldn't verify those details. Please double-check your surname and "
                    f"postcode, or contact us at {support} for assistance."
                )
            )
        session.verified = True
        session.verified_order_id = order_id
        session.clear_pending()
        return OrderReply(
            message=(
                f"Thank you! I've verified your identity. Your order {order_id} is "
                "confirmed. How can I help you with this order?"
            )
        )

    return order_desk_reply()


__all__ = [
    "OrderBook",
    "OrderReply",
    "VerificationResult",
    "handle_order_turn",
    "order_desk_reply",
]
