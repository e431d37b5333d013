"""Unit tests for the event recorder adapters."""

import logging

from src.adapters.telemetry import LoggingEventRecorder, RecordingEventRecorder


class TestLoggingEventRecorder:
    def test_record_logs_info_with_structured_extra(self, caplog) -> None:
        recorder = LoggingEventRecorder("newsletter.test")

        with caplog.at_level(logging.INFO, logger="newsletter.test"):
            recorder.record("confirmation.confirmed", subscriber_id="s-1")

        [record] = caplog.records
        assert record.levelno == logging.INFO
        assert record.getMessage() == "confirmation.confirmed subscriber_id=s-1"
        assert record.event == "confirmation.confirmed"
        assert record.fields == {"subscriber_id": "s-1"}

    def test_levels(self, caplog) -> None:
        recorder = LoggingEventRecorder("newsletter.test")

        with caplog.at_level(logging.INFO, logger="newsletter.test"):
            recorder.warning("confirmation.lost_race")
            recorder.error("email.timeout", recipient="a@example.com")

        assert [r.levelno for r in caplog.records] == [logging.WARNING, logging.ERROR]
        assert caplog.records[0].getMessage() == "confirmation.lost_race"

    def test_child_uses_sub_logger(self) -> None:
        recorder = LoggingEventRecorder("newsletter").child("email")

        assert recorder.logger.name == "newsletter.email"

    def test_disabled_level_is_skipped(self, caplog) -> None:
        recorder = LoggingEventRecorder("newsletter.quiet")

        with caplog.at_level(logging.ERROR, logger="newsletter.quiet"):
            recorder.record("subscription.created")

        assert caplog.records == []


class TestRecordingEventRecorder:
    def test_keeps_events_in_order(self) -> None:
        recorder = RecordingEventRecorder()

        recorder.record("a", x=1)
        recorder.warning("b")
        recorder.error("a", x=2)

        assert recorder.names() == ["a", "b", "a"]
        assert [e.fields["x"] for e in recorder.find("a")] == [1, 2]
        assert recorder.find("b")[0].level == "warning"
