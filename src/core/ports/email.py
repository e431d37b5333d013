"""
Email Transport Interface (P2).

Protocol-based interface for sending one transactional email.
Used by the subscription intake to deliver confirmation links.

Key requirements:
- Exactly one message per call: one sender, one recipient
- Both HTML and plain text renderings are required by providers
- Exactly one delivery attempt; retry policy belongs to the caller
- Failures are returned as a typed EmailResult, never swallowed

Implementations:
1. HttpEmailClient: JSON over HTTPS with basic auth (src/adapters/http_email.py)
2. DevEmailAdapter: logs and records messages (src/adapters/dev_email.py)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol


class EmailStatus(Enum):
    """Email send result status."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"  # Dev adapter


class DeliveryFailure(Enum):
    """Why a send attempt failed."""

    TIMEOUT = "timeout"  # Client-wide timeout fired; provider may have accepted
    REJECTED = "rejected"  # Provider answered with a non-2xx status
    TRANSPORT = "transport"  # Connection-level failure


@dataclass(frozen=True)
class EmailAddress:
    """
    Email address with optional display name.

    Examples:
        EmailAddress("user@example.com")
        EmailAddress("user@example.com", "Jane Doe")
    """

    email: str
    name: str | None = None

    def __str__(self) -> str:
        """Format as RFC 5322 address."""
        if self.name:
            safe_name = self.name.replace('"', '\\"')
            return f'"{safe_name}" <{self.email}>'
        return self.email


@dataclass(frozen=True)
class EmailMessage:
    """
    Email message to be sent.

    Constructed fresh per send and never reused across calls.
    """

    sender: EmailAddress
    recipient: EmailAddress
    subject: str
    body_html: str
    body_text: str

    def __post_init__(self) -> None:
        if not self.sender.email:
            raise ValueError("Sender email is required")
        if not self.recipient.email:
            raise ValueError("Recipient email is required")
        if not self.subject:
            raise ValueError("Subject is required")
        if not self.body_html or not self.body_text:
            raise ValueError("Both body_html and body_text are required")


@dataclass
class EmailResult:
    """Result of an email send attempt."""

    status: EmailStatus
    recipient: str = ""
    failure: DeliveryFailure | None = None
    status_code: int | None = None  # Provider HTTP status, when one was received
    error: str | None = None
    message_id: str | None = None
    sent_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status != EmailStatus.FAILED

    @classmethod
    def success(
        cls,
        recipient: str,
        status_code: int | None = None,
        message_id: str | None = None,
    ) -> EmailResult:
        """Create a successful send result."""
        return cls(
            status=EmailStatus.SENT,
            recipient=recipient,
            status_code=status_code,
            message_id=message_id,
            sent_at=datetime.now(UTC),
        )

    @classmethod
    def skipped(
        cls, recipient: str, reason: str = "Dev mode", message_id: str | None = None
    ) -> EmailResult:
        """Create a skipped result (dev adapter)."""
        return cls(
            status=EmailStatus.SKIPPED,
            recipient=recipient,
            error=reason,
            message_id=message_id,
        )

    @classmethod
    def failed(
        cls,
        recipient: str,
        failure: DeliveryFailure,
        error: str,
        status_code: int | None = None,
    ) -> EmailResult:
        """Create a failed result."""
        return cls(
            status=EmailStatus.FAILED,
            recipient=recipient,
            failure=failure,
            error=error,
            status_code=status_code,
        )

    def raise_for_failure(self) -> None:
        """Raise the matching EmailDeliveryError if this result is a failure."""
        if self.ok:
            return
        error = self.error or "delivery failed"
        if self.failure == DeliveryFailure.TIMEOUT:
            raise DeliveryTimeoutError(self.recipient, error)
        if self.failure == DeliveryFailure.REJECTED:
            raise DeliveryRejectedError(self.recipient, self.status_code or 0, error)
        raise DeliveryTransportError(self.recipient, error)


class EmailPort(Protocol):
    """
    Email sending interface.

    Implementations must not raise on delivery failure; they return a
    failed EmailResult instead.
    """

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> EmailResult:
        """
        Send a transactional email from the configured sender.

        Args:
            recipient: Previously validated email address
            subject: Email subject line
            body_html: HTML rendering
            body_text: Plain text rendering of the same content

        Returns:
            EmailResult with send outcome
        """
        ...

    def send(self, message: EmailMessage) -> EmailResult:
        """Send a fully built message."""
        ...


# --- Error Types ---


class EmailError(Exception):
    """Base exception for email-related errors."""

    pass


class EmailDeliveryError(EmailError):
    """A single delivery attempt failed."""

    failure: DeliveryFailure = DeliveryFailure.TRANSPORT

    def __init__(self, recipient: str, error: str) -> None:
        self.recipient = recipient
        self.error = error
        super().__init__(f"Failed to send email to {recipient}: {error}")


class DeliveryTimeoutError(EmailDeliveryError):
    """The send exceeded the client timeout."""

    failure = DeliveryFailure.TIMEOUT


class DeliveryRejectedError(EmailDeliveryError):
    """The provider answered with a non-2xx status."""

    failure = DeliveryFailure.REJECTED

    def __init__(self, recipient: str, status_code: int, error: str) -> None:
        self.status_code = status_code
        super().__init__(recipient, error)


class DeliveryTransportError(EmailDeliveryError):
    """The provider could not be reached."""

    failure = DeliveryFailure.TRANSPORT
