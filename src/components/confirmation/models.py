"""
Confirmation component models (C1).

Data models for redeeming a subscription confirmation token.

State machine per (token, subscriber):
    Unresolved -> {Unauthorized, AlreadyConfirmed, Confirming -> Confirmed}
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ConfirmOutcome(Enum):
    """Terminal states of a confirmation attempt."""

    CONFIRMED = "confirmed"  # pending -> confirmed committed, token deleted
    ALREADY_CONFIRMED = "already_confirmed"  # Idempotent success, nothing written
    UNAUTHORIZED = "unauthorized"  # Token unknown, consumed, or lost a race


# --- Input Models ---


@dataclass(frozen=True)
class ConfirmInput:
    """Input for confirming a subscription."""

    token: str


# --- Output Models ---


@dataclass(frozen=True)
class ConfirmOutput:
    """Output from a confirmation attempt."""

    outcome: ConfirmOutcome
    subscriber_id: UUID | None = None

    @property
    def authorized(self) -> bool:
        """True for both fresh and already-confirmed subscribers."""
        return self.outcome in (ConfirmOutcome.CONFIRMED, ConfirmOutcome.ALREADY_CONFIRMED)

    @classmethod
    def unauthorized(cls) -> ConfirmOutput:
        return cls(outcome=ConfirmOutcome.UNAUTHORIZED)
