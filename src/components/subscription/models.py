"""
Subscription component models (C2).

Data models for subscription intake: validating a candidate, storing it as
pending_confirmation with one token, and sending the confirmation link.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from src.core.ports.email import EmailResult

# --- Input Models ---


@dataclass(frozen=True)
class SubscribeInput:
    """Input for new subscription."""

    name: str
    email: str


# --- Output Models ---


@dataclass(frozen=True)
class ValidationError:
    """Validation error detail."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidateEmailOutput:
    """Output from email validation."""

    is_valid: bool
    normalized_email: str | None = None  # Lowercase, trimmed
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ValidateNameOutput:
    """Output from name validation."""

    is_valid: bool
    normalized_name: str | None = None  # Trimmed
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class SubscribeOutput:
    """Output from subscription attempt."""

    success: bool
    subscriber_id: UUID | None = None
    errors: list[ValidationError] = field(default_factory=list)
    already_confirmed: bool = False  # Email already confirmed, nothing sent
    confirmation_sent: bool = False
    delivery: EmailResult | None = None


# --- Configuration ---


@dataclass(frozen=True)
class SubscriptionConfig:
    """Subscription intake configuration."""

    base_url: str = "http://127.0.0.1:8000"
    confirmation_path: str = "/subscriptions/confirm"
    site_name: str = "Our Newsletter"
    token_length: int = 32  # Random bytes before URL-safe encoding


# --- Error Codes ---

DELIVERY_FAILED = "DELIVERY_FAILED"
VALIDATION_CODES = frozenset(
    {
        "EMPTY_EMAIL",
        "EMAIL_TOO_LONG",
        "INVALID_FORMAT",
        "EMPTY_NAME",
        "NAME_TOO_LONG",
        "INVALID_NAME",
    }
)
