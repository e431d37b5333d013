"""
Dev Email Adapter (P2 Implementation).

Logs emails instead of sending them.
Used for local development (email_client.provider: dev) and tests.

Key behaviors:
- Logs email details through the injected event recorder
- Returns SKIPPED status (not SENT)
- Stores emails in memory for test assertions
- Can be switched to fail, to exercise delivery-failure paths
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from src.adapters.telemetry import LoggingEventRecorder
from src.core.ports.email import (
    DeliveryFailure,
    EmailAddress,
    EmailMessage,
    EmailResult,
)
from src.core.ports.events import EventRecorderPort


@dataclass
class SentEmail:
    """Record of a logged email for test assertions."""

    id: str
    sender: str
    recipient: str
    subject: str
    body_html: str
    body_text: str
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    """
    Dev email adapter that logs instead of sending.

    Implements EmailPort. Setting fail_with makes every send return a
    failed result of that kind.
    """

    sender: EmailAddress = field(default_factory=lambda: EmailAddress("newsletter@localhost"))
    sent_emails: list[SentEmail] = field(default_factory=list)
    events: EventRecorderPort = field(default_factory=lambda: LoggingEventRecorder(__name__))

    log_body: bool = True
    body_preview_length: int = 100
    fail_with: DeliveryFailure | None = None

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> EmailResult:
        """Log an email from the configured sender."""
        return self.send(
            EmailMessage(
                sender=self.sender,
                recipient=EmailAddress(recipient),
                subject=subject,
                body_html=body_html,
                body_text=body_text,
            )
        )

    def send(self, message: EmailMessage) -> EmailResult:
        """Log a structured email message."""
        recipient = message.recipient.email
        if self.fail_with is not None:
            self.events.error("email.dev_failure", recipient=recipient, failure=self.fail_with.value)
            return EmailResult.failed(
                recipient,
                self.fail_with,
                f"Dev adapter configured to fail ({self.fail_with.value})",
                status_code=500 if self.fail_with == DeliveryFailure.REJECTED else None,
            )

        message_id = f"dev-{uuid4().hex[:12]}"
        self.sent_emails.append(
            SentEmail(
                id=message_id,
                sender=str(message.sender),
                recipient=recipient,
                subject=message.subject,
                body_html=message.body_html,
                body_text=message.body_text,
                logged_at=datetime.now(UTC),
            )
        )

        fields: dict[str, str] = {
            "recipient": recipient,
            "subject": message.subject,
            "message_id": message_id,
        }
        if self.log_body:
            preview = message.body_text[: self.body_preview_length]
            if len(message.body_text) > self.body_preview_length:
                preview += "..."
            fields["body"] = preview
        self.events.record("email.logged", **fields)

        return EmailResult.skipped(
            recipient,
            "Dev mode - email logged, not sent",
            message_id=message_id,
        )

    # --- Test Helper Methods ---

    def get_last_email(self) -> SentEmail | None:
        """Get the most recently logged email."""
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        """Get all emails logged to a specific recipient."""
        return [e for e in self.sent_emails if e.recipient == recipient]

    def clear(self) -> None:
        """Clear all stored emails (for test isolation)."""
        self.sent_emails.clear()

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)
