"""
ConfirmationService component (C1).

Redeems a confirmation token and moves its subscriber from
pending_confirmation to confirmed.

Key behaviors:
- Unknown, empty or already-consumed tokens -> UNAUTHORIZED (never an error)
- Already confirmed subscriber -> ALREADY_CONFIRMED, nothing written,
  token left in place
- Otherwise one unit of work: mark_confirmed, then delete the token, then
  commit. Nothing is visible unless both writes commit.
- A failed status read counts as "not confirmed"; the transactional path
  is attempted instead of reporting a false success. If that path finds the
  subscriber already confirmed with the token still present, the result is
  ALREADY_CONFIRMED.

Concurrency:
- The unit of work takes the store's write lock before the status update.
  mark_confirmed only transitions a pending row, so when two redemptions
  of the same token both got past resolution, the one that obtains the lock
  second transitions nothing, finds the token gone, rolls back and reports
  UNAUTHORIZED.
"""

from __future__ import annotations

from uuid import UUID

from src.adapters.telemetry import LoggingEventRecorder
from src.components.confirmation.models import ConfirmInput, ConfirmOutcome, ConfirmOutput
from src.components.confirmation.ports import (
    SubscriberStatusReaderPort,
    TokenResolverPort,
    UnitOfWorkFactory,
)
from src.core.ports.db import StoreError, TransactionAbortedError
from src.core.ports.events import EventRecorderPort


class ConfirmationService:
    """
    Confirmation workflow.

    Holds no subscriber state between calls; every call reads the store.
    """

    def __init__(
        self,
        tokens: TokenResolverPort,
        subscribers: SubscriberStatusReaderPort,
        unit_of_work: UnitOfWorkFactory,
        *,
        events: EventRecorderPort | None = None,
    ) -> None:
        self._tokens = tokens
        self._subscribers = subscribers
        self._unit_of_work = unit_of_work
        self._events: EventRecorderPort = events or LoggingEventRecorder(__name__)

    def confirm(self, inp: ConfirmInput) -> ConfirmOutput:
        """
        Redeem a confirmation token.

        Raises:
            StoreUnavailableError: token lookup or transaction start failed
            TransactionAbortedError: the unit of work failed and rolled back
        """
        if not inp.token:
            self._events.record("confirmation.unauthorized", reason="empty_token")
            return ConfirmOutput.unauthorized()

        subscriber_id = self._tokens.get_subscriber_id(inp.token)
        if subscriber_id is None:
            self._events.record("confirmation.unauthorized", reason="unknown_token")
            return ConfirmOutput.unauthorized()

        if self._is_confirmed(subscriber_id):
            self._events.record("confirmation.already_confirmed", subscriber_id=subscriber_id)
            return ConfirmOutput(ConfirmOutcome.ALREADY_CONFIRMED, subscriber_id)

        outcome = self._confirm_and_consume_token(inp.token, subscriber_id)
        if outcome == ConfirmOutcome.UNAUTHORIZED:
            self._events.warning("confirmation.lost_race", subscriber_id=subscriber_id)
            return ConfirmOutput.unauthorized()
        if outcome == ConfirmOutcome.ALREADY_CONFIRMED:
            self._events.record("confirmation.already_confirmed", subscriber_id=subscriber_id)
            return ConfirmOutput(ConfirmOutcome.ALREADY_CONFIRMED, subscriber_id)

        self._events.record("confirmation.confirmed", subscriber_id=subscriber_id)
        return ConfirmOutput(ConfirmOutcome.CONFIRMED, subscriber_id)

    def _is_confirmed(self, subscriber_id: UUID) -> bool:
        try:
            return self._subscribers.is_confirmed(subscriber_id)
        except StoreError as e:
            # Fail closed: fall through to the transactional transition
            self._events.warning(
                "confirmation.status_read_failed",
                subscriber_id=subscriber_id,
                operation=e.operation,
            )
            return False

    def _confirm_and_consume_token(self, token: str, subscriber_id: UUID) -> ConfirmOutcome:
        """
        Transition the subscriber and delete its token in one unit of work.

        When nothing transitions, the subscriber was already confirmed. A
        token that still resolves under the write lock means it was never
        consumed (ALREADY_CONFIRMED); a vanished token means another
        redemption consumed it first (UNAUTHORIZED).
        """
        with self._unit_of_work() as uow:
            try:
                if not uow.subscribers.mark_confirmed(subscriber_id):
                    still_bound = uow.tokens.get_subscriber_id(token) == subscriber_id
                    uow.rollback()
                    if still_bound:
                        return ConfirmOutcome.ALREADY_CONFIRMED
                    return ConfirmOutcome.UNAUTHORIZED
                uow.tokens.delete_for_subscriber(subscriber_id)
                uow.commit()
            except TransactionAbortedError:
                raise
            except StoreError as e:
                raise TransactionAbortedError("confirm_subscription", e.operation) from e
        return ConfirmOutcome.CONFIRMED


def run(
    inp: ConfirmInput,
    *,
    tokens: TokenResolverPort,
    subscribers: SubscriberStatusReaderPort,
    unit_of_work: UnitOfWorkFactory,
    events: EventRecorderPort | None = None,
) -> ConfirmOutput:
    """
    Main component entry point (Atomic Component Pattern).

    Args:
        inp: Confirmation input
        tokens: Token resolver (Required)
        subscribers: Status reader (Required)
        unit_of_work: Factory for the confirm-and-delete transaction (Required)
        events: Event recorder (Optional)

    Returns:
        ConfirmOutput with the terminal outcome
    """
    service = ConfirmationService(tokens, subscribers, unit_of_work, events=events)
    return service.confirm(inp)
