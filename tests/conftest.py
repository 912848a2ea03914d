"""Shared test fixtures."""

import json
import queue
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, ClassVar

import pytest
import requests

from lambda_extensions.config import get_lambda_environment
from lambda_extensions.logging import clear_context
from lambda_extensions.logging.config import get_logging_config

MAX_DEADLINE_MS = 9223372036854775807


@pytest.fixture(autouse=True)
def _clear_environment(monkeypatch):
    """Clear environment variables that affect settings."""
    env_vars_to_clear = [
        "AWS_LAMBDA_RUNTIME_API",
        "AWS_REGION",
        "AWS_LAMBDA_FUNCTION_NAME",
        "AWS_LAMBDA_FUNCTION_VERSION",
        "AWS_LAMBDA_FUNCTION_MEMORY_SIZE",
        "AWS_LAMBDA_INITIALIZATION_TYPE",
        "_X_AMZN_TRACE_ID",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "AWS_LAMBDA_LOG_LEVEL",
        "AWS_LAMBDA_LOG_FORMAT",
        "SERVICE_NAME",
        "INCLUDE_TIMESTAMP",
        "INCLUDE_LOCATION",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    get_lambda_environment.cache_clear()
    get_logging_config.cache_clear()
    yield
    get_lambda_environment.cache_clear()
    get_logging_config.cache_clear()
    clear_context()


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: dict[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass
class FakeLambdaAPI:
    """In-process stand-in for the Lambda runtime API.

    ``next_events`` feeds event/next. An item is returned as the response
    when it is a dict (200 JSON) or a ``(status, body)`` tuple; a callable
    is run with the API and then the next item is served.
    """

    id_header: ClassVar[str] = "Lambda-Extension-Identifier"

    extension_id: str = "ext-1b2c3d"
    include_id_header: bool = True
    register_status: int = 200
    register_body: bytes | None = None
    error_report_status: int = 202
    subscribe_status: int = 200
    register_response: dict[str, str] = field(
        default_factory=lambda: {
            "functionName": "my-function",
            "functionVersion": "$LATEST",
            "handler": "app.handler",
            "accountId": "123456789012",
        }
    )
    next_events: "queue.Queue[Any]" = field(default_factory=queue.Queue)
    received: list[RecordedRequest] = field(default_factory=list)
    push_responses: list[requests.Response] = field(default_factory=list)
    _closing: threading.Event = field(default_factory=threading.Event)
    _server: ThreadingHTTPServer | None = None

    @property
    def address(self) -> str:
        assert self._server is not None
        host, port = self._server.server_address[:2]
        return f"{host}:{port}"

    def start(self) -> None:
        api = self

        class Handler(BaseHTTPRequestHandler):
            protocol_version = "HTTP/1.1"

            def do_GET(self):
                api.handle(self)

            def do_POST(self):
                api.handle(self)

            def do_PUT(self):
                api.handle(self)

            def log_message(self, message_format, *args):
                pass

        self._server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self._server.daemon_threads = True
        threading.Thread(target=self._server.serve_forever, daemon=True).start()

    def stop(self) -> None:
        self._closing.set()
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()

    def requests_to(self, path: str) -> list[RecordedRequest]:
        return [request for request in self.received if request.path == path]

    def subscription_destination(self) -> str:
        subscriptions = [request for request in self.received if request.method == "PUT"]
        return subscriptions[-1].json()["destination"]["URI"]

    def push(self, batch: list[dict[str, Any]] | bytes, method: str = "POST") -> requests.Response:
        """Push a batch to the subscribed destination, the way Lambda does."""
        body = batch if isinstance(batch, bytes) else json.dumps(batch).encode()
        response = requests.request(
            method,
            self.subscription_destination(),
            data=body,
            headers={"Content-Type": "application/json", "Sequence-Id": str(len(self.push_responses) + 1)},
            timeout=10,
        )
        self.push_responses.append(response)
        return response

    def handle(self, handler: BaseHTTPRequestHandler) -> None:
        length = int(handler.headers.get("Content-Length", "0"))
        body = handler.rfile.read(length) if length else b""
        path = handler.path
        self.received.append(RecordedRequest(handler.command, path, dict(handler.headers.items()), body))

        if path == "/2020-01-01/extension/register":
            headers = {self.id_header: self.extension_id} if self.include_id_header else {}
            payload = self.register_body if self.register_body is not None else json.dumps(self.register_response).encode()
            self._respond(handler, self.register_status, payload, headers)
        elif path == "/2020-01-01/extension/event/next":
            status, payload = self._next_event()
            self._respond(handler, status, payload)
        elif path in ("/2020-01-01/extension/init/error", "/2020-01-01/extension/exit/error"):
            self._respond(handler, self.error_report_status, b'{"status": "OK"}')
        elif path in ("/2020-08-15/logs", "/2022-07-01/telemetry"):
            self._respond(handler, self.subscribe_status, b"OK")
        else:
            self._respond(handler, 404, b'{"errorType": "NotFound", "errorMessage": "unknown path"}')

    def _next_event(self) -> tuple[int, bytes]:
        while not self._closing.is_set():
            try:
                item = self.next_events.get(timeout=0.05)
            except queue.Empty:
                continue
            if callable(item):
                item(self)
                continue
            if isinstance(item, tuple):
                return item
            return 200, json.dumps(item).encode()
        return 500, b'{"errorType": "Closing", "errorMessage": "fake API stopped"}'

    @staticmethod
    def _respond(handler: BaseHTTPRequestHandler, status: int, payload: bytes, headers: dict[str, str] | None = None) -> None:
        handler.send_response(status)
        for name, value in (headers or {}).items():
            handler.send_header(name, value)
        handler.send_header("Content-Length", str(len(payload)))
        handler.end_headers()
        handler.wfile.write(payload)


@pytest.fixture
def lambda_api() -> Iterator[FakeLambdaAPI]:
    """A running fake Lambda runtime API."""
    api = FakeLambdaAPI()
    api.start()
    yield api
    api.stop()


def invoke_event(request_id: str = "3da1f2dc-3222-475e-9205-e2e6c6bfa3bd", deadline_ms: int = MAX_DEADLINE_MS) -> dict[str, Any]:
    return {
        "eventType": "INVOKE",
        "deadlineMs": deadline_ms,
        "requestId": request_id,
        "invokedFunctionArn": "arn:aws:lambda:us-east-1:123456789012:function:my-function",
        "tracing": {"type": "X-Amzn-Trace-Id", "value": "Root=1-5f35ae12-0c0fec141ab77a00bc047aa2"},
    }


def shutdown_event(reason: str = "spindown", deadline_ms: int = MAX_DEADLINE_MS) -> dict[str, Any]:
    return {"eventType": "SHUTDOWN", "shutdownReason": reason, "deadlineMs": deadline_ms}


@pytest.fixture
def make_invoke_event() -> Callable[..., dict[str, Any]]:
    return invoke_event


@pytest.fixture
def make_shutdown_event() -> Callable[..., dict[str, Any]]:
    return shutdown_event
