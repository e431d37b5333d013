"""
HTTP Email Client (P2 Implementation).

Sends one transactional email per call to a provider's JSON API:

    POST {base_url}/send
    Authorization: Basic base64(api_key:api_secret)
    {"Messages": [{"From": {...}, "To": [{...}], "Subject": ...,
                   "HTMLPart": ..., "TextPart": ...}]}

Key behaviors:
- One shared httpx.Client (connection pool) per process; sends are stateless
- One deadline bounds the whole call: connect, request, response headers
  and the streamed response body. A provider trickling its body past the
  deadline times out even though no single read stalled.
- Exactly one attempt per call, no retry
- Timeout -> DeliveryFailure.TIMEOUT (the provider may still have accepted it)
- Non-2xx -> DeliveryFailure.REJECTED with the status code
- Connection-level failure -> DeliveryFailure.TRANSPORT
- Credentials are revealed only while building the auth header; they never
  reach the request body or event fields
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import SecretStr

from src.adapters.telemetry import LoggingEventRecorder
from src.core.ports.email import (
    DeliveryFailure,
    EmailAddress,
    EmailMessage,
    EmailResult,
)
from src.core.ports.events import EventRecorderPort

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class EmailCredentials:
    """API key + secret pair. repr/str never show the values."""

    api_key: SecretStr
    api_secret: SecretStr

    @classmethod
    def from_plain(cls, api_key: str, api_secret: str) -> EmailCredentials:
        return cls(api_key=SecretStr(api_key), api_secret=SecretStr(api_secret))

    def basic_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(
            self.api_key.get_secret_value(),
            self.api_secret.get_secret_value(),
        )


def build_send_request_body(message: EmailMessage) -> dict[str, Any]:
    """Build the provider JSON body for exactly one message."""
    return {
        "Messages": [
            {
                "From": {"Email": message.sender.email, "Name": message.sender.name},
                "To": [{"Email": message.recipient.email, "Name": message.recipient.name}],
                "Subject": message.subject,
                "HTMLPart": message.body_html,
                "TextPart": message.body_text,
            }
        ]
    }


class HttpEmailClient:
    """
    Email client for an HTTP transactional email API.

    Implements EmailPort. Safe to share across threads; close() releases the
    connection pool at shutdown.
    """

    def __init__(
        self,
        base_url: str,
        sender: EmailAddress | str,
        credentials: EmailCredentials,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        *,
        events: EventRecorderPort | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sender = sender if isinstance(sender, EmailAddress) else EmailAddress(sender)
        self.timeout_seconds = timeout_seconds
        self._credentials = credentials
        self._events: EventRecorderPort = events or LoggingEventRecorder(__name__)
        self._http = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def __repr__(self) -> str:
        return (
            f"HttpEmailClient(base_url={self.base_url!r}, sender={self.sender.email!r}, "
            f"timeout_seconds={self.timeout_seconds})"
        )

    def __enter__(self) -> HttpEmailClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @property
    def send_url(self) -> str:
        return f"{self.base_url}/send"

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> EmailResult:
        """Send one email from the configured sender to recipient."""
        message = EmailMessage(
            sender=self.sender,
            recipient=EmailAddress(recipient),
            subject=subject,
            body_html=body_html,
            body_text=body_text,
        )
        return self.send(message)

    def send(self, message: EmailMessage) -> EmailResult:
        """Make exactly one delivery attempt for message."""
        recipient = message.recipient.email
        deadline = time.monotonic() + self.timeout_seconds
        try:
            with self._http.stream(
                "POST",
                self.send_url,
                json=build_send_request_body(message),
                auth=self._credentials.basic_auth(),
            ) as response:
                self._read_within(response, deadline)
        except httpx.TimeoutException as e:
            self._events.error(
                "email.timeout",
                recipient=recipient,
                timeout_seconds=self.timeout_seconds,
                reason=type(e).__name__,
            )
            return EmailResult.failed(
                recipient,
                DeliveryFailure.TIMEOUT,
                f"No response within {self.timeout_seconds}s",
            )
        except httpx.TransportError as e:
            self._events.error(
                "email.transport_failure",
                recipient=recipient,
                reason=type(e).__name__,
            )
            return EmailResult.failed(
                recipient,
                DeliveryFailure.TRANSPORT,
                f"Could not reach email provider ({type(e).__name__})",
            )

        if not response.is_success:
            self._events.error(
                "email.rejected",
                recipient=recipient,
                status_code=response.status_code,
            )
            return EmailResult.failed(
                recipient,
                DeliveryFailure.REJECTED,
                f"Email provider returned {response.status_code}",
                status_code=response.status_code,
            )

        self._events.record("email.sent", recipient=recipient, status_code=response.status_code)
        return EmailResult.success(recipient, status_code=response.status_code)

    def _read_within(self, response: httpx.Response, deadline: float) -> None:
        """
        Drain the response body before the call deadline.

        The deadline is checked before every chunk, so a trickling body
        cannot keep the call open. The read timeout handed to the transport
        is the time left when the body starts, which bounds a silent stall.
        """
        timeouts = response.request.extensions.get("timeout", {})
        chunks = response.iter_bytes()
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise httpx.ReadTimeout("Deadline exceeded", request=response.request)
            response.request.extensions["timeout"] = {**timeouts, "read": remaining}
            if next(chunks, None) is None:
                return
