# email-newsletter: Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.db import (
    StoreConflictError,
    StoreError,
    StoreUnavailableError,
    SubscriberRepoPort,
    SubscriptionTokenRepoPort,
    TransactionAbortedError,
    UnitOfWorkClosedError,
    UnitOfWorkPort,
)
from src.core.ports.email import (
    DeliveryFailure,
    DeliveryRejectedError,
    DeliveryTimeoutError,
    DeliveryTransportError,
    EmailAddress,
    EmailDeliveryError,
    EmailError,
    EmailMessage,
    EmailPort,
    EmailResult,
    EmailStatus,
)
from src.core.ports.events import EventRecorderPort

__all__ = [
    # Store (P1)
    "StoreConflictError",
    "StoreError",
    "StoreUnavailableError",
    "SubscriberRepoPort",
    "SubscriptionTokenRepoPort",
    "TransactionAbortedError",
    "UnitOfWorkClosedError",
    "UnitOfWorkPort",
    # Email (P2)
    "DeliveryFailure",
    "DeliveryRejectedError",
    "DeliveryTimeoutError",
    "DeliveryTransportError",
    "EmailAddress",
    "EmailDeliveryError",
    "EmailError",
    "EmailMessage",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
    # Events (P3)
    "EventRecorderPort",
]
