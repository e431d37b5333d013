"""
Confirmation component ports (C1).

The narrow slices of the subscription store this component touches.
SQLiteSubscriptionTokenRepo, SQLiteSubscriberRepo and SQLiteUnitOfWork
satisfy them.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from src.core.ports.db import UnitOfWorkPort


class TokenResolverPort(Protocol):
    """Resolves a confirmation token outside any transaction (read-only)."""

    def get_subscriber_id(self, token: str) -> UUID | None:
        """Subscriber id for a live token, None if unknown or consumed."""
        ...


class SubscriberStatusReaderPort(Protocol):
    """Point-in-time status read outside any transaction."""

    def is_confirmed(self, subscriber_id: UUID) -> bool:
        ...


# Opens a new, not yet entered, unit of work.
UnitOfWorkFactory = Callable[[], UnitOfWorkPort]
