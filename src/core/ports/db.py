"""
Subscription store interfaces (P1).

Protocol-based interfaces for the subscriptions and subscription_tokens
relations, plus the unit of work that lets several store calls commit or
roll back together.

Implementations: SQLite (src/adapters/sqlite_db.py).

Key requirements:
- Token lookups distinguish "not found" (None) from "store unavailable" (raise)
- Status transitions are conditional (pending_confirmation -> confirmed only)
- Writes that must be atomic share one UnitOfWork connection
"""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from src.core.entities import Subscriber

# -----------------------------------------------------------------------------
# Token Store
# -----------------------------------------------------------------------------


class SubscriptionTokenRepoPort(Protocol):
    """
    Repository for confirmation tokens.

    Invariants:
    - A subscriber has at most one active token
    - A deleted token never resolves again
    """

    def get_subscriber_id(self, token: str) -> UUID | None:
        """Resolve a token to its subscriber id, or None if no live mapping exists."""
        ...

    def get_for_subscriber(self, subscriber_id: UUID) -> str | None:
        """Get the active token bound to a subscriber, if any."""
        ...

    def add(self, token: str, subscriber_id: UUID) -> None:
        """Store a new token for a subscriber."""
        ...

    def delete_for_subscriber(self, subscriber_id: UUID) -> int:
        """Delete every token bound to a subscriber. Returns rows removed."""
        ...


# -----------------------------------------------------------------------------
# Subscriber Status Store
# -----------------------------------------------------------------------------


class SubscriberRepoPort(Protocol):
    """
    Repository for subscribers.

    State machine: pending_confirmation -> confirmed (never reversed)
    """

    def get_by_id(self, subscriber_id: UUID) -> Subscriber | None:
        """Get subscriber by ID."""
        ...

    def get_by_email(self, email: str) -> Subscriber | None:
        """Get subscriber by normalized email address."""
        ...

    def add(self, subscriber: Subscriber) -> Subscriber:
        """Insert a new subscriber."""
        ...

    def is_confirmed(self, subscriber_id: UUID) -> bool:
        """Point-in-time read of the confirmed flag."""
        ...

    def mark_confirmed(self, subscriber_id: UUID) -> bool:
        """
        Set status to confirmed.

        Returns:
            True if a pending_confirmation row was transitioned,
            False if the row was already confirmed or does not exist.
        """
        ...


# -----------------------------------------------------------------------------
# Unit of Work
# -----------------------------------------------------------------------------


class UnitOfWorkPort(Protocol):
    """
    Transaction boundary shared by several repository calls.

    Opened with `with`, committed explicitly exactly once. Leaving the block
    without a commit (error or cancellation) rolls everything back.
    """

    @property
    def tokens(self) -> SubscriptionTokenRepoPort: ...

    @property
    def subscribers(self) -> SubscriberRepoPort: ...

    def __enter__(self) -> UnitOfWorkPort: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


# -----------------------------------------------------------------------------
# Error Types
# -----------------------------------------------------------------------------


class StoreError(Exception):
    """Base exception for store failures. Carries the failing operation name."""

    def __init__(self, operation: str, reason: str = "") -> None:
        self.operation = operation
        self.reason = reason
        message = f"Store operation '{operation}' failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StoreUnavailableError(StoreError):
    """Store could not be reached or timed out (retryable by the caller)."""


class StoreConflictError(StoreError):
    """A write violated a uniqueness or reference constraint."""


class TransactionAbortedError(StoreError):
    """A unit of work failed before commit and was rolled back."""


class UnitOfWorkClosedError(StoreError):
    """Commit or rollback attempted on a unit of work that is no longer open."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation, "unit of work is not open")
