"""
End-to-end intake and confirmation against SQLite and the dev email adapter.
"""

import re

from src.adapters.dev_email import DevEmailAdapter
from src.adapters.telemetry import RecordingEventRecorder
from src.components.confirmation import ConfirmationService, ConfirmInput, ConfirmOutcome
from src.components.subscription import SubscribeInput, SubscriptionConfig, SubscriptionService
from src.core.entities import SubscriberStatus

TOKEN_RE = re.compile(r"subscription_token=([A-Za-z0-9_-]+)")


def test_subscribe_then_confirm(subscriber_repo, token_repo, unit_of_work):
    sender = DevEmailAdapter(events=RecordingEventRecorder())
    intake = SubscriptionService(
        subscriber_repo,
        token_repo,
        unit_of_work,
        sender,
        config=SubscriptionConfig(base_url="https://news.example.com"),
        events=RecordingEventRecorder(),
    )
    confirmation = ConfirmationService(
        token_repo, subscriber_repo, unit_of_work, events=RecordingEventRecorder()
    )

    subscribed = intake.subscribe(SubscribeInput(name="Ursula", email="ursula@example.com"))
    assert subscribed.success is True

    token = TOKEN_RE.search(sender.get_last_email().body_text).group(1)
    assert token_repo.get_subscriber_id(token) == subscribed.subscriber_id

    first = confirmation.confirm(ConfirmInput(token=token))
    second = confirmation.confirm(ConfirmInput(token=token))

    assert first.outcome == ConfirmOutcome.CONFIRMED
    assert second.outcome == ConfirmOutcome.UNAUTHORIZED
    stored = subscriber_repo.get_by_id(subscribed.subscriber_id)
    assert stored.status == SubscriberStatus.CONFIRMED

    again = intake.subscribe(SubscribeInput(name="Ursula", email="URSULA@example.com"))
    assert again.already_confirmed is True
    assert sender.email_count == 1


def test_concurrent_insert_of_same_email_resends_existing_token(
    subscriber_repo, token_repo, unit_of_work
):
    """The unique email constraint turns a duplicate insert into a re-send."""
    sender = DevEmailAdapter(events=RecordingEventRecorder())
    intake = SubscriptionService(
        subscriber_repo,
        token_repo,
        unit_of_work,
        sender,
        events=RecordingEventRecorder(),
    )
    first = intake.subscribe(SubscribeInput(name="Ursula", email="ursula@example.com"))

    class StaleLookup:
        """Misses the row, as a request that looked before the first insert would."""

        def __init__(self):
            self.calls = 0

        def get_by_email(self, email):
            self.calls += 1
            return None if self.calls == 1 else subscriber_repo.get_by_email(email)

    late = SubscriptionService(
        StaleLookup(),
        token_repo,
        unit_of_work,
        sender,
        events=RecordingEventRecorder(),
    )
    result = late.subscribe(SubscribeInput(name="Ursula", email="ursula@example.com"))

    assert result.success is True
    assert result.subscriber_id == first.subscriber_id
    assert sender.sent_emails[0].body_text == sender.sent_emails[1].body_text
