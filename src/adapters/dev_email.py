"""
Dev email adapter.

Logs emails instead of sending and keeps them in memory so tests can
assert on what would have gone out. Returns SKIPPED, never SENT.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from src.core.ports.email import (
    EmailMessage,
    EmailResult,
    EmailSenderPort,
    EmailStatus,
    mask_email,
)

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """Record of a logged email for test assertions."""

    id: str
    recipient: str
    subject: str
    body_html: str
    body_text: str
    sender: str | None
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    sent_emails: list[SentEmail] = field(default_factory=list)
    log_level: int = logging.INFO

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailResult:
        return self._record(recipient, subject, body_html, body_text or "", None)

    def send(self, message: EmailMessage) -> EmailResult:
        sender = str(message.sender) if message.sender else None
        return self._record(
            message.recipient.email, message.subject, message.body_html, message.body_text, sender
        )

    def _record(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str,
        sender: str | None,
    ) -> EmailResult:
        message_id = f"dev-{uuid4().hex[:12]}"
        self.sent_emails.append(
            SentEmail(
                id=message_id,
                recipient=recipient,
                subject=subject,
                body_html=body_html,
                body_text=body_text,
                sender=sender,
                logged_at=datetime.now(UTC),
            )
        )
        logger.log(
            self.log_level,
            f"EMAIL (dev): To={mask_email(recipient)}, Subject={subject}, MessageID={message_id}",
        )
        return EmailResult(
            status=EmailStatus.SKIPPED,
            message_id=message_id,
            recipient=recipient,
            error="Dev mode - email logged, not sent",
        )

    # --- Test helpers ---

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.recipient == recipient]

    def get_emails_with_subject(self, subject_contains: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if subject_contains in e.subject]

    def clear(self) -> None:
        self.sent_emails.clear()

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)


def _verify_protocol_compliance() -> None:
    adapter: EmailSenderPort = DevEmailAdapter()
    _ = adapter


_verify_protocol_compliance()
