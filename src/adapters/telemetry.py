"""
Event recorder adapters (P3 Implementation).

LoggingEventRecorder writes structured records through stdlib logging;
RecordingEventRecorder keeps events in memory for test assertions.

Both satisfy EventRecorderPort. Instances are created at startup and
injected; nothing here holds module-level mutable state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any


class LoggingEventRecorder:
    """EventRecorderPort backed by a named logging.Logger."""

    def __init__(self, logger: logging.Logger | str = "newsletter") -> None:
        self._logger = logging.getLogger(logger) if isinstance(logger, str) else logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def record(self, event: str, **fields: Any) -> None:
        self._emit(logging.INFO, event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit(logging.WARNING, event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit(logging.ERROR, event, fields)

    def child(self, suffix: str) -> LoggingEventRecorder:
        """Recorder for a sub-logger, e.g. 'newsletter.email'."""
        return LoggingEventRecorder(self._logger.getChild(suffix))

    def _emit(self, level: int, event: str, fields: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        rendered = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        message = f"{event} {rendered}" if rendered else event
        self._logger.log(level, message, extra={"event": event, "fields": fields})


@dataclass
class RecordedEvent:
    """One event captured by RecordingEventRecorder."""

    level: str
    event: str
    fields: dict[str, Any]


@dataclass
class RecordingEventRecorder:
    """In-memory EventRecorderPort for tests."""

    events: list[RecordedEvent] = field(default_factory=list)

    def record(self, event: str, **fields: Any) -> None:
        self.events.append(RecordedEvent("info", event, fields))

    def warning(self, event: str, **fields: Any) -> None:
        self.events.append(RecordedEvent("warning", event, fields))

    def error(self, event: str, **fields: Any) -> None:
        self.events.append(RecordedEvent("error", event, fields))

    def names(self) -> list[str]:
        return [e.event for e in self.events]

    def find(self, event: str) -> list[RecordedEvent]:
        return [e for e in self.events if e.event == event]
