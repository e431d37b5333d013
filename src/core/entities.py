"""
Domain entities for the email newsletter.

- Subscriber: a candidate or confirmed newsletter recipient
- SubscriberStatus: SM1 (pending_confirmation -> confirmed)

Tokens are plain strings bound to a subscriber id; they have no entity of
their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

__all__ = [
    "Subscriber",
    "SubscriberStatus",
    "VALID_TRANSITIONS",
    "can_transition",
]


# --- State Machine SM1 ---


class SubscriberStatus(str, Enum):
    """
    Subscriber status (SM1).

    State transitions:
    - pending_confirmation -> confirmed (via confirmation link)
    - confirmed is terminal; confirming again is a no-op
    """

    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


VALID_TRANSITIONS: dict[SubscriberStatus, set[SubscriberStatus]] = {
    SubscriberStatus.PENDING_CONFIRMATION: {SubscriberStatus.CONFIRMED},
    SubscriberStatus.CONFIRMED: set(),
}


def can_transition(from_status: SubscriberStatus, to_status: SubscriberStatus) -> bool:
    """Check if state transition is valid according to SM1."""
    return to_status in VALID_TRANSITIONS.get(from_status, set())


# --- Entity ---


@dataclass
class Subscriber:
    """Newsletter subscriber entity."""

    email: str
    name: str
    id: UUID = field(default_factory=uuid4)
    status: SubscriberStatus = SubscriberStatus.PENDING_CONFIRMATION
    subscribed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_confirmed(self) -> bool:
        return self.status == SubscriberStatus.CONFIRMED
