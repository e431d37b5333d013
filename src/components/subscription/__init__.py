"""
Subscription component (C2).

Double opt-in intake: pending subscriber, one token, confirmation email.
"""

from src.components.subscription.component import (
    EMAIL_REGEX,
    ConfirmationEmail,
    SubscriptionService,
    build_confirmation_email,
    build_confirmation_url,
    generate_token,
    run,
    validate_email,
    validate_name,
)
from src.components.subscription.models import (
    DELIVERY_FAILED,
    VALIDATION_CODES,
    SubscribeInput,
    SubscribeOutput,
    SubscriptionConfig,
    ValidateEmailOutput,
    ValidateNameOutput,
    ValidationError,
)
from src.components.subscription.ports import ActiveTokenLookupPort, SubscriberLookupPort

__all__ = [
    # Component
    "run",
    "SubscriptionService",
    # Pure functions
    "validate_email",
    "validate_name",
    "generate_token",
    "build_confirmation_url",
    "build_confirmation_email",
    "ConfirmationEmail",
    # Constants
    "EMAIL_REGEX",
    "DELIVERY_FAILED",
    "VALIDATION_CODES",
    # Models
    "SubscribeInput",
    "SubscribeOutput",
    "SubscriptionConfig",
    "ValidateEmailOutput",
    "ValidateNameOutput",
    "ValidationError",
    # Ports
    "SubscriberLookupPort",
    "ActiveTokenLookupPort",
]
