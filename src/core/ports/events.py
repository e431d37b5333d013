"""
Event Recorder Interface (P3).

Observability handle injected into components and adapters at construction.
Each operation records named, structured events through it instead of
reaching for module-level logging state.

Implementations:
- LoggingEventRecorder: stdlib logging (src/adapters/telemetry.py)
- RecordingEventRecorder: in-memory, for tests (src/adapters/telemetry.py)
"""

from __future__ import annotations

from typing import Any, Protocol


class EventRecorderPort(Protocol):
    """
    Structured event sink.

    Field values must never contain secrets; callers pass identifiers,
    operation names and status codes only.
    """

    def record(self, event: str, **fields: Any) -> None:
        """Record an informational event."""
        ...

    def warning(self, event: str, **fields: Any) -> None:
        """Record a recoverable problem."""
        ...

    def error(self, event: str, **fields: Any) -> None:
        """Record a failure surfaced to the caller."""
        ...
