"""
SubscriptionService component (C2).

Subscription intake for the double opt-in flow.

Key behaviors:
- Email normalized (trimmed, lowercased) and format-checked
- Name trimmed, bounded and free of markup characters
- New email: pending subscriber + one token written in one unit of work,
  committed before the confirmation email is sent
- Pending email: the existing token is re-sent; a second token is never minted
- Confirmed email: idempotent success, no email
- Exactly one delivery attempt; a failure is reported, the pending row and
  its token stay so a later attempt re-sends the same link
"""

from __future__ import annotations

import html
import re
import secrets
from dataclasses import dataclass
from uuid import UUID

from src.adapters.telemetry import LoggingEventRecorder
from src.components.confirmation.ports import UnitOfWorkFactory
from src.components.subscription.models import (
    DELIVERY_FAILED,
    SubscribeInput,
    SubscribeOutput,
    SubscriptionConfig,
    ValidateEmailOutput,
    ValidateNameOutput,
    ValidationError,
)
from src.components.subscription.ports import ActiveTokenLookupPort, SubscriberLookupPort
from src.core.entities import Subscriber
from src.core.ports.db import StoreConflictError
from src.core.ports.email import EmailPort
from src.core.ports.events import EventRecorderPort

# --- Validation Constants ---

EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)
MAX_EMAIL_LENGTH = 254
MAX_NAME_LENGTH = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')


# --- Pure Functions (Functional Core) ---


def validate_email(email: str) -> ValidateEmailOutput:
    """
    Validate and normalize an email address.

    Args:
        email: Raw email address from the caller

    Returns:
        ValidateEmailOutput with the lowercased address when valid
    """
    normalized = email.strip().lower() if email else ""

    if not normalized:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("EMPTY_EMAIL", "Email address is required", "email")],
        )

    if len(normalized) > MAX_EMAIL_LENGTH:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("EMAIL_TOO_LONG", "Email address is too long", "email")],
        )

    if not EMAIL_REGEX.match(normalized):
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("INVALID_FORMAT", "Invalid email format", "email")],
        )

    return ValidateEmailOutput(is_valid=True, normalized_email=normalized)


def validate_name(name: str) -> ValidateNameOutput:
    """Validate a subscriber display name."""
    normalized = name.strip() if name else ""

    if not normalized:
        return ValidateNameOutput(
            is_valid=False,
            errors=[ValidationError("EMPTY_NAME", "Name is required", "name")],
        )

    if len(normalized) > MAX_NAME_LENGTH:
        return ValidateNameOutput(
            is_valid=False,
            errors=[ValidationError("NAME_TOO_LONG", "Name is too long", "name")],
        )

    if any(c in FORBIDDEN_NAME_CHARACTERS for c in normalized):
        return ValidateNameOutput(
            is_valid=False,
            errors=[ValidationError("INVALID_NAME", "Name contains invalid characters", "name")],
        )

    return ValidateNameOutput(is_valid=True, normalized_name=normalized)


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure URL-safe token.

    Args:
        length: Number of random bytes (will be base64-encoded)

    Returns:
        URL-safe token string
    """
    return secrets.token_urlsafe(length)


def build_confirmation_url(
    base_url: str,
    token: str,
    path: str = "/subscriptions/confirm",
) -> str:
    """Build the confirmation link embedded in the email."""
    base = base_url.rstrip("/")
    return f"{base}{path}?subscription_token={token}"


@dataclass(frozen=True)
class ConfirmationEmail:
    """Subject and both renderings of the confirmation email."""

    subject: str
    body_html: str
    body_text: str


def build_confirmation_email(confirmation_url: str, site_name: str) -> ConfirmationEmail:
    """Fixed confirmation copy; HTML and text carry the same content."""
    safe_url = html.escape(confirmation_url, quote=True)
    safe_site = html.escape(site_name)
    return ConfirmationEmail(
        subject=f"Welcome to {site_name}!",
        body_html=(
            f"<p>Welcome to {safe_site}!</p>"
            f'<p>Click <a href="{safe_url}">here</a> to confirm your subscription.</p>'
        ),
        body_text=(
            f"Welcome to {site_name}!\n"
            f"Visit {confirmation_url} to confirm your subscription."
        ),
    )


# --- Subscription Service (Orchestration Layer) ---


class SubscriptionService:
    """Subscription intake workflow."""

    def __init__(
        self,
        subscribers: SubscriberLookupPort,
        tokens: ActiveTokenLookupPort,
        unit_of_work: UnitOfWorkFactory,
        email_sender: EmailPort,
        *,
        config: SubscriptionConfig | None = None,
        events: EventRecorderPort | None = None,
    ) -> None:
        self._subscribers = subscribers
        self._tokens = tokens
        self._unit_of_work = unit_of_work
        self._email_sender = email_sender
        self._config = config or SubscriptionConfig()
        self._events: EventRecorderPort = events or LoggingEventRecorder(__name__)

    def subscribe(self, inp: SubscribeInput) -> SubscribeOutput:
        """
        Handle a subscription request.

        Raises:
            StoreError: the store failed; nothing was sent
        """
        name_check = validate_name(inp.name)
        email_check = validate_email(inp.email)
        errors = [*name_check.errors, *email_check.errors]
        if errors or name_check.normalized_name is None or email_check.normalized_email is None:
            return SubscribeOutput(success=False, errors=errors)

        name = name_check.normalized_name
        email = email_check.normalized_email

        existing = self._subscribers.get_by_email(email)
        if existing is None:
            created = self._create_pending(name, email)
            if created is not None:
                subscriber, token = created
                self._events.record("subscription.created", subscriber_id=subscriber.id)
                return self._send_confirmation(subscriber.id, email, token)
            # A concurrent request stored the same email first
            existing = self._subscribers.get_by_email(email)
            if existing is None:
                raise StoreConflictError("insert_subscriber", "conflicting row vanished")

        if existing.is_confirmed:
            self._events.record("subscription.already_confirmed", subscriber_id=existing.id)
            return SubscribeOutput(success=True, subscriber_id=existing.id, already_confirmed=True)

        token = self._tokens.get_for_subscriber(existing.id) or self._issue_token(existing.id)
        self._events.record("subscription.confirmation_resent", subscriber_id=existing.id)
        return self._send_confirmation(existing.id, email, token)

    def _create_pending(self, name: str, email: str) -> tuple[Subscriber, str] | None:
        """Insert subscriber and token together. None if the email already exists."""
        subscriber = Subscriber(email=email, name=name)
        token = generate_token(self._config.token_length)
        try:
            with self._unit_of_work() as uow:
                uow.subscribers.add(subscriber)
                uow.tokens.add(token, subscriber.id)
                uow.commit()
        except StoreConflictError:
            return None
        return subscriber, token

    def _issue_token(self, subscriber_id: UUID) -> str:
        """Mint a token for a pending subscriber that has none."""
        with self._unit_of_work() as uow:
            current = uow.tokens.get_for_subscriber(subscriber_id)
            if current is not None:
                uow.rollback()
                return current
            token = generate_token(self._config.token_length)
            uow.tokens.add(token, subscriber_id)
            uow.commit()
        return token

    def _send_confirmation(self, subscriber_id: UUID, email: str, token: str) -> SubscribeOutput:
        url = build_confirmation_url(
            self._config.base_url,
            token,
            self._config.confirmation_path,
        )
        content = build_confirmation_email(url, self._config.site_name)
        result = self._email_sender.send_email(
            email,
            content.subject,
            content.body_html,
            content.body_text,
        )
        if not result.ok:
            self._events.error(
                "subscription.confirmation_failed",
                subscriber_id=subscriber_id,
                failure=result.failure.value if result.failure else None,
            )
            return SubscribeOutput(
                success=False,
                subscriber_id=subscriber_id,
                errors=[
                    ValidationError(DELIVERY_FAILED, "Could not send the confirmation email", None)
                ],
                delivery=result,
            )

        return SubscribeOutput(
            success=True,
            subscriber_id=subscriber_id,
            confirmation_sent=True,
            delivery=result,
        )


def run(
    inp: SubscribeInput,
    *,
    subscribers: SubscriberLookupPort,
    tokens: ActiveTokenLookupPort,
    unit_of_work: UnitOfWorkFactory,
    email_sender: EmailPort,
    config: SubscriptionConfig | None = None,
    events: EventRecorderPort | None = None,
) -> SubscribeOutput:
    """
    Main component entry point (Atomic Component Pattern).

    Args:
        inp: Subscription input
        subscribers: Subscriber lookup (Required)
        tokens: Active token lookup (Required)
        unit_of_work: Factory for intake transactions (Required)
        email_sender: Email port (Required)
        config: Configuration (Optional)
        events: Event recorder (Optional)

    Returns:
        SubscribeOutput
    """
    service = SubscriptionService(
        subscribers,
        tokens,
        unit_of_work,
        email_sender,
        config=config,
        events=events,
    )
    return service.subscribe(inp)
