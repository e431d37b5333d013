"""
Unit tests for HttpEmailClient.

Tests cover:
1. Request shape: URL, JSON body, basic auth, content type
2. 2xx -> SENT; non-2xx -> REJECTED with the status code
3. Connection failure -> TRANSPORT
4. Timeout -> TIMEOUT, against real local servers that answer or stream too slowly
5. Credentials never appear in repr, body or events
"""

import base64
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

from src.adapters.http_email import EmailCredentials, HttpEmailClient, build_send_request_body
from src.adapters.telemetry import RecordingEventRecorder
from src.core.ports.email import (
    DeliveryFailure,
    DeliveryRejectedError,
    DeliveryTimeoutError,
    DeliveryTransportError,
    EmailAddress,
    EmailMessage,
    EmailStatus,
)

API_KEY = "key-0123"
API_SECRET = "secret-4567"


def make_client(handler, events=None, timeout_seconds=10.0, base_url="https://api.example.com/v3.1"):
    return HttpEmailClient(
        base_url,
        EmailAddress("newsletter@example.com"),
        EmailCredentials.from_plain(API_KEY, API_SECRET),
        timeout_seconds=timeout_seconds,
        events=events or RecordingEventRecorder(),
        transport=httpx.MockTransport(handler),
    )


def send(client):
    return client.send_email("ursula@example.com", "Welcome!", "<p>Hi</p>", "Hi")


class TestRequestShape:
    """What goes over the wire."""

    def test_posts_json_body_with_basic_auth(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"Messages": [{"Status": "success"}]})

        with make_client(handler) as client:
            send(client)

        [request] = captured
        assert request.method == "POST"
        assert str(request.url) == "https://api.example.com/v3.1/send"
        assert request.headers["content-type"] == "application/json"
        expected = base64.b64encode(f"{API_KEY}:{API_SECRET}".encode()).decode()
        assert request.headers["authorization"] == f"Basic {expected}"
        assert json.loads(request.content) == {
            "Messages": [
                {
                    "From": {"Email": "newsletter@example.com", "Name": None},
                    "To": [{"Email": "ursula@example.com", "Name": None}],
                    "Subject": "Welcome!",
                    "HTMLPart": "<p>Hi</p>",
                    "TextPart": "Hi",
                }
            ]
        }

    def test_trailing_slash_in_base_url(self) -> None:
        client = make_client(lambda r: httpx.Response(200), base_url="https://api.example.com/")

        assert client.send_url == "https://api.example.com/send"

    def test_body_never_contains_credentials(self) -> None:
        message = EmailMessage(
            sender=EmailAddress("newsletter@example.com", "Newsletter"),
            recipient=EmailAddress("ursula@example.com"),
            subject="Welcome!",
            body_html="<p>Hi</p>",
            body_text="Hi",
        )

        body = json.dumps(build_send_request_body(message))

        assert API_KEY not in body
        assert API_SECRET not in body
        assert '"Name": "Newsletter"' in body


class TestOutcomes:
    """Typed results for each provider answer."""

    def test_success(self) -> None:
        events = RecordingEventRecorder()
        client = make_client(lambda r: httpx.Response(200), events=events)

        result = send(client)

        assert result.status == EmailStatus.SENT
        assert result.ok is True
        assert result.status_code == 200
        assert result.sent_at is not None
        result.raise_for_failure()
        assert events.names() == ["email.sent"]

    @pytest.mark.parametrize("status_code", [400, 401, 500, 503])
    def test_non_2xx_is_rejected(self, status_code: int) -> None:
        events = RecordingEventRecorder()
        client = make_client(lambda r: httpx.Response(status_code), events=events)

        result = send(client)

        assert result.status == EmailStatus.FAILED
        assert result.failure == DeliveryFailure.REJECTED
        assert result.status_code == status_code
        with pytest.raises(DeliveryRejectedError) as exc_info:
            result.raise_for_failure()
        assert exc_info.value.status_code == status_code
        assert events.names() == ["email.rejected"]

    def test_connection_failure_is_transport(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = send(make_client(handler))

        assert result.failure == DeliveryFailure.TRANSPORT
        assert result.status_code is None
        with pytest.raises(DeliveryTransportError):
            result.raise_for_failure()

    def test_read_timeout_is_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = send(make_client(handler))

        assert result.failure == DeliveryFailure.TIMEOUT
        with pytest.raises(DeliveryTimeoutError):
            result.raise_for_failure()

    def test_exactly_one_attempt(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return httpx.Response(500)

        send(make_client(handler))

        assert len(attempts) == 1


class SlowHandler(BaseHTTPRequestHandler):
    delay_seconds = 1.0

    def do_POST(self) -> None:
        time.sleep(self.delay_seconds)
        try:
            self.send_response(200)
            self.end_headers()
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args) -> None:  # noqa: A002
        pass


class TricklingHandler(BaseHTTPRequestHandler):
    """Answers at once, then sends the body one byte at a time."""

    byte_interval_seconds = 0.1
    body_length = 15

    def do_POST(self) -> None:
        try:
            self.send_response(200)
            self.send_header("Content-Length", str(self.body_length))
            self.end_headers()
            self.wfile.flush()
            for _ in range(self.body_length):
                time.sleep(self.byte_interval_seconds)
                self.wfile.write(b"x")
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args) -> None:  # noqa: A002
        pass


def serve(handler_class):
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler_class)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


@pytest.fixture
def trickling_server():
    server = serve(TricklingHandler)
    try:
        host, port = server.server_address[:2]
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def slow_server():
    server = serve(SlowHandler)
    try:
        host, port = server.server_address[:2]
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()


class TestRealTimeout:
    """One deadline covers the whole call against a real local server."""

    def test_slow_provider_times_out(self, slow_server) -> None:
        events = RecordingEventRecorder()
        client = HttpEmailClient(
            slow_server,
            "newsletter@example.com",
            EmailCredentials.from_plain(API_KEY, API_SECRET),
            timeout_seconds=0.2,
            events=events,
        )

        started = time.monotonic()
        with client:
            result = send(client)
        elapsed = time.monotonic() - started

        assert result.failure == DeliveryFailure.TIMEOUT
        assert elapsed < 1.0
        assert events.names() == ["email.timeout"]

    def test_trickling_body_times_out_at_the_deadline(self, trickling_server) -> None:
        """Headers arrive at once but the body takes 1.5s; the whole call has 0.3s."""
        events = RecordingEventRecorder()
        client = HttpEmailClient(
            trickling_server,
            "newsletter@example.com",
            EmailCredentials.from_plain(API_KEY, API_SECRET),
            timeout_seconds=0.3,
            events=events,
        )

        started = time.monotonic()
        with client:
            result = send(client)
        elapsed = time.monotonic() - started

        assert result.status == EmailStatus.FAILED
        assert result.failure == DeliveryFailure.TIMEOUT
        assert elapsed < 0.8
        assert events.names() == ["email.timeout"]


class TestSecrets:
    """Credentials stay opaque."""

    def test_repr_hides_credentials(self) -> None:
        client = make_client(lambda r: httpx.Response(200))
        credentials = EmailCredentials.from_plain(API_KEY, API_SECRET)

        assert API_KEY not in repr(client)
        assert API_SECRET not in repr(credentials)
        assert "**********" in repr(credentials)

    def test_events_never_carry_credentials(self) -> None:
        events = RecordingEventRecorder()
        send(make_client(lambda r: httpx.Response(500), events=events))

        rendered = repr(events.events)
        assert API_KEY not in rendered
        assert API_SECRET not in rendered
