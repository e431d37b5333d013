"""
Subscription component ports (C2).

Read-side store access the intake needs outside a transaction. Writes go
through a unit of work (see src.core.ports.db.UnitOfWorkPort); delivery
goes through src.core.ports.email.EmailPort.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.core.entities import Subscriber


class SubscriberLookupPort(Protocol):
    """Find an existing subscriber by normalized email."""

    def get_by_email(self, email: str) -> Subscriber | None:
        ...


class ActiveTokenLookupPort(Protocol):
    """Find the token currently bound to a subscriber."""

    def get_for_subscriber(self, subscriber_id: UUID) -> str | None:
        ...
