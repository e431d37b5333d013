"""
Confirmation component (C1).

Single-use token redemption for double opt-in subscriptions.
"""

from src.components.confirmation.component import ConfirmationService, run
from src.components.confirmation.models import ConfirmInput, ConfirmOutcome, ConfirmOutput
from src.components.confirmation.ports import (
    SubscriberStatusReaderPort,
    TokenResolverPort,
    UnitOfWorkFactory,
)

__all__ = [
    # Component
    "run",
    "ConfirmationService",
    # Models
    "ConfirmInput",
    "ConfirmOutcome",
    "ConfirmOutput",
    # Ports
    "SubscriberStatusReaderPort",
    "TokenResolverPort",
    "UnitOfWorkFactory",
]
