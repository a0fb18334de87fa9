"""Tests for handoff notifications, email rendering and the backup log."""

from __future__ import annotations

import pytest

from gwen.conversation.state import HistoryEntry
from gwen.handoff.email import (
    ContactDetails,
    HandoffDeliveryError,
    MarketingHandoff,
    SmtpEmailSender,
    build_notification,
    format_transcript,
    subject_and_priority,
)
from gwen.logging import ConversationLogger

HISTORY = [
    HistoryEntry(role="user", content="Can someone call me about the Havana set?"),
    HistoryEntry(role="assistant", content="Of course, I'll pass this on."),
]


@pytest.mark.parametrize(
    ("reason", "subject", "priority"),
    [
        ("Bundle Purchase with £30 Refund Claim", "HIGH PRIORITY - Customer Ready to Purchase", "High"),
        ("Customer complaint about delivery", "URGENT - Customer Service Issue", "High"),
        ("Callback requested", "Customer Requests Human Contact", "Normal"),
        ("Cannot answer question", "Gwen AI - Customer Inquiry", "Normal"),
    ],
)
def test_subject_and_priority(reason: str, subject: str, priority: str) -> None:
    assert subject_and_priority(reason) == (subject, priority)


def test_transcript_labels_each_speaker() -> None:
    transcript = format_transcript(HISTORY)

    assert transcript.splitlines() == [
        "=== CHAT TRANSCRIPT ===",
        "[CUSTOMER]: Can someone call me about the Havana set?",
        "[GWEN]: Of course, I'll pass this on.",
        "=== END TRANSCRIPT ===",
    ]


def test_email_message_carries_priority_headers_and_escaped_html() -> None:
    notification = build_notification(
        "s-1",
        "Bundle <purchase>",
        HISTORY,
        ContactDetails(email="jane@example.com", postcode="SW1A 1AA"),
    )
    sender = SmtpEmailSender(
        host="smtp.example", port=587, sender="gwen@example.com", recipient="marketing@example.com"
    )

    message = sender.build_message(notification)

    assert message["X-Priority"] == "1"
    assert message["Subject"] == "HIGH PRIORITY - Customer Ready to Purchase"
    html_part = message.get_body(preferencelist=("html",)).get_content()
    assert "Bundle &lt;purchase&gt;" in html_part
    assert "jane@example.com" in message.get_body(preferencelist=("plain",)).get_content()


class _FailingSender:
    async def send(self, notification) -> None:
        raise HandoffDeliveryError("relay refused")


@pytest.mark.anyio
async def test_failed_delivery_writes_a_backup(tmp_path) -> None:
    backup_path = tmp_path / "handoff-backup.jsonl"
    handoff = MarketingHandoff(sender=_FailingSender(), backup=ConversationLogger(backup_path))

    sent = await handoff.send("s-1", "Callback requested", HISTORY)

    assert sent is False
    [record] = ConversationLogger(backup_path).read()
    assert record["session_id"] == "s-1"
    assert record["subject"] == "Customer Requests Human Contact"
    assert "[CUSTOMER]: Can someone call me" in record["transcript"]
    assert "timestamp" in record


@pytest.mark.anyio
async def test_unconfigured_email_still_backs_up(tmp_path) -> None:
    backup_path = tmp_path / "backup.jsonl"
    handoff = MarketingHandoff(backup=ConversationLogger(backup_path))

    assert await handoff.send("s-2", "Cannot answer question", HISTORY) is False
    assert backup_path.read_text(encoding="utf-8").count("\n") == 1


@pytest.mark.anyio
async def test_successful_delivery(handoff, sender) -> None:
    assert await handoff.send("s-3", "Customer ready to purchase", HISTORY) is True
    assert sender.sent[0].message_count == 2
