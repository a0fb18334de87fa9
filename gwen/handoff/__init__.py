"""Human handoff sinks."""

from __future__ import annotations

from .email import (
    ContactDetails,
    EmailSender,
    HandoffDeliveryError,
    HandoffNotification,
    MarketingHandoff,
    SmtpEmailSender,
    build_notification,
    get_marketing_handoff,
)

__all__ = [
    "ContactDetails",
    "EmailSender",
    "HandoffDeliveryError",
    "HandoffNotification",
    "MarketingHandoff",
    "SmtpEmailSender",
    "build_notification",
    "get_marketing_handoff",
]
