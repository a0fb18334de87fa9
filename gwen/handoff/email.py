"""Marketing handoff: transcript emails with a JSON lines backup on failure."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from functools import lru_cache
from typing import Protocol, Sequence

import logfire

from ..config import settings
from ..conversation.state import HistoryEntry
from ..logging import ConversationLogger

logger = logging.getLogger(__name__)


class HandoffDeliveryError(RuntimeError):
    """Raised by an email sender when a handoff could not be delivered."""


@dataclass(frozen=True)
class ContactDetails:
    email: str | None = None
    postcode: str | None = None


@dataclass(frozen=True)
class HandoffNotification:
    """Everything the marketing team receives about one conversation."""

    session_id: str
    reason: str
    subject: str
    priority: str
    transcript: str
    message_count: int
    contact: ContactDetails | None
    created_at: datetime

    @property
    def is_high_priority(self) -> bool:
        return self.priority == "High"

    def plain_text(self) -> str:
        lines = [
            "MINT Outdoor - Gwen AI Handoff",
            "",
            f"Session ID: {self.session_id}",
            f"Timestamp: {self.created_at.strftime('%d/%m/%Y, %H:%M:%S')}",
            f"Reason: {self.reason}",
            f"Priority: {self.priority}",
            f"Messages: {self.message_count}",
        ]
        if self.contact is not None:
            lines.extend(
                [
                    "",
                    "=== CUSTOMER DETAILS ===",
                    f"Email: {self.contact.email or 'Not provided'}",
                    f"Postcode: {self.contact.postcode or 'Not provided'}",
                    "========================",
                ]
            )
        lines.extend(["", self.transcript])
        return "\n".join(lines)

    def html_body(self) -> str:
        esc = html.escape
        priority_colour = "#dc2626" if self.is_high_priority else "#059669"
        contact_block = ""
        if self.contact is not None:
            contact_block = (
                '<div style="background: white; padding: 20px; border-left: 4px solid #2196F3;">'
                '<h2 style="color: #2E6041;">Customer Contact Details</h2>'
                f"<p><strong>Email:</strong> {esc(self.contact.email or 'Not provided')}</p>"
                f"<p><strong>Postcode:</strong> {esc(self.contact.postcode or 'Not provided')}</p>"
                "</div>"
            )
        return (
            '<html><body style="font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto;">'
            '<div style="background: #2E6041; color: white; padding: 20px; text-align: center;">'
            f"<h1>MINT Outdoor - Gwen AI Handoff</h1><p>{esc(self.reason)}</p></div>"
            '<div style="padding: 20px; background: #f8f9fa;">'
            '<div style="background: white; padding: 20px; border-left: 4px solid #9FDCC2;">'
            '<h2 style="color: #2E6041;">Inquiry Details</h2>'
            f"<p><strong>Session ID:</strong> {esc(self.session_id)}</p>"
            f"<p><strong>Timestamp:</strong> {self.created_at.strftime('%d/%m/%Y, %H:%M:%S')}</p>"
            f"<p><strong>Reason:</strong> {esc(self.reason)}</p>"
            f'<p><strong>Priority:</strong> <span style="color: {priority_colour};">'
            f"{self.priority}</span></p>"
            f"<p><strong>Messages:</strong> {self.message_count}</p></div>"
            f"{contact_block}"
            '<div style="background: white; padding: 20px; border-left: 4px solid #f59e0b;">'
            '<h2 style="color: #2E6041;">Full Conversation</h2>'
            f'<pre style="white-space: pre-wrap;">{esc(self.transcript)}</pre></div></div>'
            '<div style="background: #2E6041; color: white; padding: 15px; text-align: center;">'
            "<p>This email was automatically generated by the Gwen AI system</p></div>"
            "</body></html>"
        )


def subject_and_priority(reason: str) -> tuple[str, str]:
    """Map a handoff reason onto the email subject and priority."""

    lowered = reason.lower()
    if "bundle" in lowered or "purchase" in lowered:
        return "HIGH PRIORITY - Customer Ready to Purchase", "High"
    if "complaint" in lowered or "issue" in lowered:
        return "URGENT - Customer Service Issue", "High"
    if "callback" in lowered or "human" in lowered:
        return "Customer Requests Human Contact", "Normal"
    return "Gwen AI - Customer Inquiry", "Normal"


def format_transcript(history: Sequence[HistoryEntry]) -> str:
    lines = ["=== CHAT TRANSCRIPT ==="]
    for entry in history:
        speaker = "CUSTOMER" if entry.role == "user" else "GWEN"
        lines.append(f"[{speaker}]: {entry.content}")
    lines.append("=== END TRANSCRIPT ===")
    return "\n".join(lines)


def build_notification(
    session_id: str,
    reason: str,
    history: Sequence[HistoryEntry],
    contact: ContactDetails | None = None,
) -> HandoffNotification:
    subject, priority = subject_and_priority(reason)
    return HandoffNotification(
        session_id=session_id,
        reason=reason,
        subject=subject,
        priority=priority,
        transcript=format_transcript(history),
        message_count=len(history),
        contact=contact,
        created_at=datetime.now(tz=timezone.utc),
    )


class EmailSender(Protocol):
    """Delivers a handoff notification or raises :class:`HandoffDeliveryError`."""

    async def send(self, notification: HandoffNotification) -> None:
        ...


class SmtpEmailSender:
    """Sends handoff emails through an SMTP relay using STARTTLS."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        recipient: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 15.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._recipient = recipient
        self._username = username
        self._password = password
        self._timeout = timeout

    def build_message(self, notification: HandoffNotification) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"MINT Outdoor - Gwen AI <{self._sender}>"
        message["To"] = self._recipient
        message["Subject"] = notification.subject
        message["X-Priority"] = "1" if notification.is_high_priority else "3"
        message["X-MSMail-Priority"] = notification.priority
        message["Importance"] = notification.priority
        message.set_content(notification.plain_text())
        message.add_alternative(notification.html_body(), subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(message)

    async def send(self, notification: HandoffNotification) -> None:
        message = self.build_message(notification)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (OSError, smtplib.SMTPException) as exc:
            raise HandoffDeliveryError(f"SMTP delivery failed: {exc}") from exc


class MarketingHandoff:
    """Sends conversations to the marketing inbox, keeping a backup when that fails."""

    def __init__(
        self,
        sender: EmailSender | None = None,
        backup: ConversationLogger | None = None,
    ) -> None:
        self._sender = sender
        self._backup = backup

    async def send(
        self,
        session_id: str,
        reason: str,
        history: Sequence[HistoryEntry],
        contact: ContactDetails | None = None,
    ) -> bool:
        """Return ``True`` when the email went out; otherwise log a backup copy."""

        notification = build_notification(session_id, reason, history, contact)
        with logfire.span(
            "handoff.send", session_id=session_id, reason=reason, priority=notification.priority
        ):
            if self._sender is not None:
                try:
                    await self._sender.send(notification)
                except HandoffDeliveryError:
                    logger.exception("Handoff email failed for session %s", session_id)
                else:
                    logger.info(
                        "Handoff email sent for session %s: %s", session_id, notification.subject
                    )
                    return True
            else:
                logger.warning("Email delivery is not configured; keeping a backup log only")

            await self._write_backup(notification)
            return False

    async def _write_backup(self, notification: HandoffNotification) -> None:
        logger.warning(
            "Handoff backup (reason=%s session=%s)\n%s",
            notification.reason,
            notification.session_id,
            notification.plain_text(),
        )
        if self._backup is None:
            return
        try:
            await self._backup.log(
                {
                    "session_id": notification.session_id,
                    "reason": notification.reason,
                    "subject": notification.subject,
                    "priority": notification.priority,
                    "email": notification.contact.email if notification.contact else None,
                    "postcode": notification.contact.postcode if notification.contact else None,
                    "transcript": notification.transcript,
                }
            )
        except OSError:
            logger.exception("Failed to write handoff backup")


def build_marketing_handoff() -> MarketingHandoff:
    """Wire the configured SMTP relay and backup log into a handoff sink."""

    sender: EmailSender | None = None
    if settings.email_enabled and settings.email_sender:
        sender = SmtpEmailSender(
            host=settings.smtp_host or "",
            port=settings.smtp_port,
            sender=settings.email_sender,
            recipient=settings.marketing_email,
            username=settings.smtp_username,
            password=settings.smtp_password,
        )
    return MarketingHandoff(sender=sender, backup=ConversationLogger(settings.handoff_backup_path))


@lru_cache(maxsize=1)
def get_marketing_handoff() -> MarketingHandoff:
    """Return the process-wide handoff sink."""

    return build_marketing_handoff()


__all__ = [
    "ContactDetails",
    "EmailSender",
    "HandoffDeliveryError",
    "HandoffNotification",
    "MarketingHandoff",
    "SmtpEmailSender",
    "build_marketing_handoff",
    "build_notification",
    "format_transcript",
    "get_marketing_handoff",
    "subject_and_priority",
]
