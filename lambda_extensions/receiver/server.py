"""Push-stream receiver: an embedded HTTP server feeding one processing worker.

Lambda pushes batches of records to a URL the extension subscribes with.
``EventReceiver`` runs the HTTP server behind that URL, decodes every batch
onto a queue, and hands each event to ``EventProcessor.process`` from a
single worker thread, in the order the events were decoded.

Shutdown order:
    1. cancel the decode context so in-flight decodes stop promptly
    2. stop the HTTP server and wait for in-flight requests
    3. close the events queue
    4. wait for the worker to drain the queue
    5. call ``EventProcessor.shutdown``
"""

import logging
import queue
import socket
import socketserver
import threading
from collections.abc import Callable
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, BinaryIO, Protocol
from urllib.parse import urlsplit

from lambda_extensions.context import Context, ErrorSignal
from lambda_extensions.exceptions import (
    DecodeError,
    EventProcessingError,
    LambdaExtensionsError,
    LengthRequiredError,
    ReceiverServerError,
    RequestFramingError,
    UnexpectedMethodError,
    create_error_body,
    get_http_status_for_error,
)
from lambda_extensions.extapi import Client, InvokeEvent, RegisterResponse, ShutdownReason
from lambda_extensions.receiver.decode import ByteStream

logger = logging.getLogger(__name__)

SEQUENCE_ID_HEADER = "Sequence-Id"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0

_IDLE_POLL_SECONDS = 0.05
_MAX_CHUNK_LINE = 4096


class EventProcessor[T](Protocol):
    """Callbacks receiving the pushed events of one stream."""

    def init(self, context: Context, register_response: RegisterResponse) -> None:
        """Called once with the registration metadata, before the HTTP server starts."""
        ...

    def process(self, context: Context, event: T) -> None:
        """Called for every event, one at a time, in decode order.

        The first failure stops processing; later events are discarded.
        """
        ...

    def shutdown(self, context: Context, reason: ShutdownReason, error: BaseException | None) -> None:
        """Called once, after every queued event went through ``process``."""
        ...


type BatchDecoder = Callable[[Context, ByteStream, queue.Queue[Any]], None]
type Subscriber = Callable[[Context, Client, str], None]


class _Closed:
    """Marks the end of the events queue."""


_CLOSED = _Closed()


class RequestBody:
    """Request body framed by ``Content-Length`` or chunked transfer encoding.

    ``exhausted`` is True only once the whole body was read, so the
    connection can carry the next request. Closing the body early leaves the
    rest unread and ``exhausted`` False.
    """

    def __init__(self, stream: BinaryIO, length: int = 0, *, chunked: bool = False) -> None:
        self._stream = stream
        self._chunked = chunked
        self._remaining = 0 if chunked else length
        self._finished = not chunked and length <= 0
        self._truncated = False

    @property
    def exhausted(self) -> bool:
        return self._finished and not self._truncated

    def read(self, size: int = -1, /) -> bytes:
        if self._finished or self._truncated:
            return b""
        if self._remaining == 0:
            self._remaining = self._next_chunk_size()
            if self._remaining == 0:
                self._read_trailer()
                self._finished = True
                return b""

        if size < 0 or size > self._remaining:
            size = self._remaining
        data = self._stream.read(size)
        if not data:
            self._truncated = True
            return b""
        self._remaining -= len(data)

        if self._remaining == 0:
            if self._chunked:
                self._expect_line_end()
            else:
                self._finished = True
        return data

    def close(self) -> None:
        if not self._finished:
            self._truncated = True

    def _next_chunk_size(self) -> int:
        line = self._read_line()
        size_field = line.split(b";", 1)[0].strip()
        try:
            size = int(size_field, 16)
        except ValueError:
            size = -1
        if size < 0:
            self._truncated = True
            raise RequestFramingError(f"invalid chunk size {size_field[:32]!r}")
        return size

    def _expect_line_end(self) -> None:
        if self._read_line().strip():
            self._truncated = True
            raise RequestFramingError("chunk data is longer than its declared size")

    def _read_trailer(self) -> None:
        while self._read_line().strip():
            pass

    def _read_line(self) -> bytes:
        line = self._stream.readline(_MAX_CHUNK_LINE + 1)
        if not line.endswith(b"\n"):
            self._truncated = True
            if len(line) > _MAX_CHUNK_LINE:
                raise RequestFramingError("chunk line too long")
            raise RequestFramingError("request body ended inside chunked framing")
        return line


class PushServer(ThreadingHTTPServer):
    """HTTP server that tracks in-flight push requests.

    ``stop_accepting`` makes later requests fail with 503, and ``wait_idle``
    blocks until the requests already admitted have finished.
    """

    daemon_threads = True

    def __init__(self, server_address: tuple[str, int], receiver: "EventReceiver[Any]") -> None:
        self.receiver = receiver
        self._lock = threading.Condition()
        self._active_requests = 0
        self._accepting = True
        if ":" in server_address[0]:
            self.address_family = socket.AF_INET6
        super().__init__(server_address, PushRequestHandler)

    def server_bind(self) -> None:
        # HTTPServer.server_bind resolves the FQDN of the bound address, which
        # can stall inside the Lambda sandbox.
        socketserver.TCPServer.server_bind(self)
        host, port = self.server_address[:2]
        self.server_name = str(host)
        self.server_port = int(port)

    def admit_request(self) -> bool:
        with self._lock:
            if not self._accepting:
                return False
            self._active_requests += 1
            return True

    def finish_request_tracking(self) -> None:
        with self._lock:
            self._active_requests -= 1
            self._lock.notify_all()

    def stop_accepting(self) -> None:
        with self._lock:
            self._accepting = False

    def wait_idle(self, context: Context) -> bool:
        """Wait for admitted requests to finish, giving up when ``context`` ends.

        Returns:
            True if no request is in flight.
        """
        with self._lock:
            while self._active_requests:
                if context.done():
                    return False
                self._lock.wait(timeout=_IDLE_POLL_SECONDS)
        return True


class PushRequestHandler(BaseHTTPRequestHandler):
    """Accepts POSTed batches; every other method is rejected with 400."""

    protocol_version = "HTTP/1.1"
    timeout = DEFAULT_REQUEST_TIMEOUT_SECONDS
    server: PushServer

    def do_POST(self) -> None:
        receiver = self.server.receiver
        sequence_id = self.headers.get(SEQUENCE_ID_HEADER, "")

        if not self.server.admit_request():
            self.close_connection = True
            error = ReceiverServerError("event receiving HTTP server is shutting down")
            self._send_error(error, HTTPStatus.SERVICE_UNAVAILABLE)
            return

        try:
            try:
                body = self._request_body()
            except RequestFramingError as framing_error:
                self.close_connection = True
                error = receiver.reject_request(framing_error, sequence_id)
            else:
                error = receiver.receive_batch(body, sequence_id, self.headers.get("Content-Length", "chunked"))
                if not body.exhausted:
                    self.close_connection = True
        finally:
            self.server.finish_request_tracking()

        if error is not None:
            self._send_error(error, get_http_status_for_error(error))
            return

        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _reject_method(self) -> None:
        error = UnexpectedMethodError(f"got unexpected HTTP request method {self.command}, want POST")
        self.server.receiver.reject_request(error, self.headers.get(SEQUENCE_ID_HEADER, ""))
        self.close_connection = True
        self._send_error(error, get_http_status_for_error(error))

    do_GET = _reject_method
    do_HEAD = _reject_method
    do_PUT = _reject_method
    do_PATCH = _reject_method
    do_DELETE = _reject_method
    do_OPTIONS = _reject_method

    def _request_body(self) -> RequestBody:
        """Frame the body from the request headers.

        Raises:
            LengthRequiredError: If neither ``Content-Length`` nor chunked
                ``Transfer-Encoding`` is present.
            RequestFramingError: If ``Content-Length`` is not a non-negative
                integer or the transfer coding is not chunked.
        """
        transfer_encoding = self.headers.get("Transfer-Encoding")
        if transfer_encoding is not None:
            if transfer_encoding.split(",")[-1].strip().lower() != "chunked":
                raise RequestFramingError(f"unsupported Transfer-Encoding {transfer_encoding!r}")
            return RequestBody(self.rfile, chunked=True)

        content_length = self.headers.get("Content-Length")
        if content_length is None:
            raise LengthRequiredError("push request has neither Content-Length nor chunked Transfer-Encoding")
        if not content_length.strip().isdigit():
            raise RequestFramingError(f"invalid Content-Length {content_length!r}")
        return RequestBody(self.rfile, int(content_length))

    def _send_error(self, error: BaseException, status: int) -> None:
        body = create_error_body(error)
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        if self.close_connection:
            self.send_header("Connection", "close")
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def log_message(self, message_format: str, *args: Any) -> None:
        logger.debug("Push request: " + message_format, *args)


class EventReceiver[T]:
    """Extension that receives pushed events instead of invocations.

    Drive it with ``lambda_extensions.extapi.run`` registered for SHUTDOWN
    only. Failures of the HTTP server, of decoding and of ``process`` are
    reported on ``error_signal``, which ends the run-loop.
    """

    def __init__(
        self,
        processor: EventProcessor[T],
        destination_address: str,
        decode_batch: BatchDecoder,
        subscribe: Subscriber,
        *,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the receiver.

        Args:
            processor: Callbacks receiving the decoded events.
            destination_address: host:port to listen on. Port 0 picks a free port.
            decode_batch: Decodes one request body onto the events queue.
            subscribe: Subscribes to the stream once the listening URL is known.
            log: Logger for receiver diagnostics.
        """
        self._processor = processor
        self._destination_address = destination_address
        self._decode_batch = decode_batch
        self._subscribe = subscribe
        self._log = log or logger

        self._events: queue.Queue[Any] = queue.Queue(maxsize=1)
        self._events_closed = False
        self._error_signal = ErrorSignal()
        self._processing_done = threading.Event()
        self._decode_context = Context.background().with_cancel()
        self._worker: threading.Thread | None = None
        self._server: PushServer | None = None

    @property
    def error_signal(self) -> ErrorSignal:
        return self._error_signal

    @property
    def server_address(self) -> tuple[str, int] | None:
        """Address the HTTP server listens on, once started."""
        if self._server is None:
            return None
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    def init(self, context: Context, client: Client) -> None:
        """Start processing, start the HTTP server and subscribe to the stream.

        The worker starts before ``EventProcessor.init`` so that ``shutdown``
        can wait for it even when ``init`` fails.
        """
        self._worker = threading.Thread(
            target=self._process_events, args=(context,), name="lambda-extension-processor", daemon=True
        )
        self._worker.start()

        try:
            self._processor.init(context, client.register_response)
        except Exception as error:
            raise EventProcessingError(f"event processor init failed: {error}") from error

        self._log.debug("Starting event receiving HTTP server", extra={"address": self._destination_address})
        host, port = split_host_port(self._destination_address)
        try:
            server = PushServer((host, port), self)
        except OSError as error:
            raise ReceiverServerError(f"could not start event receiving HTTP server: {error}") from error
        self._server = server

        threading.Thread(target=self._serve, args=(server,), name="lambda-extension-receiver", daemon=True).start()

        url = destination_url(host, server.server_port)
        self._log.debug("Subscribing", extra={"destination": url})
        self._subscribe(context, client, url)

    def handle_invoke_event(self, context: Context, event: InvokeEvent) -> None:
        raise NotImplementedError(
            "unexpected handle_invoke_event call, event receivers support only SHUTDOWN events"
        )

    def shutdown(self, context: Context, reason: ShutdownReason, error: BaseException | None) -> None:
        """Stop receiving, drain the queue and shut the processor down.

        Raises:
            EventProcessingError: If ``EventProcessor.shutdown`` failed. Takes
                priority over a server error.
            ReceiverServerError: If in-flight requests did not finish before
                ``context`` ended.
        """
        self._log.debug("Signaling in-flight decode requests to stop")
        self._decode_context.cancel()

        server_error: ReceiverServerError | None = None
        if self._server is not None:
            self._log.debug("Shutting down HTTP server")
            server_error = self._stop_server(self._server, context)

        self._log.debug("Signaling event processing to stop")
        self._close_events()
        if self._worker is not None:
            self._processing_done.wait()

        self._log.debug("Calling EventProcessor.shutdown", extra={"shutdown_reason": reason})
        try:
            self._processor.shutdown(context, reason, error)
        except Exception as processor_error:
            self._log.exception("EventProcessor.shutdown failed")
            raise EventProcessingError(f"event processor shutdown failed: {processor_error}") from processor_error

        if server_error is not None:
            raise server_error

    def receive_batch(self, body: ByteStream, sequence_id: str, content_length: str = "") -> BaseException | None:
        """Decode one pushed batch onto the events queue.

        A failure is reported on ``error_signal`` before it is returned, so
        it is signaled before the response is written.

        Returns:
            The decode failure, or None if the whole batch was queued.
        """
        self._log.debug(
            "Received events HTTP request, starting decoding",
            extra={"sequence_id": sequence_id, "bytes": content_length},
        )
        try:
            self._decode_batch(self._decode_context, body, self._events)
        except Exception as error:
            signaled = DecodeError(f"decoding failed or interrupted: {error}")
            signaled.__cause__ = error
            self._log.error("Decoding failed or interrupted", extra={"sequence_id": sequence_id}, exc_info=error)
            self._error_signal.report(signaled)
            return error

        self._log.debug("Events decoding finished", extra={"sequence_id": sequence_id})
        return None

    def reject_request(self, error: LambdaExtensionsError, sequence_id: str) -> LambdaExtensionsError:
        """Report a push request that cannot be decoded at all.

        Returns:
            ``error``, after it was reported on ``error_signal``.
        """
        self._log.error("Rejected push request", extra={"sequence_id": sequence_id, **error.to_log_dict()})
        self._error_signal.report(error)
        return error

    def _serve(self, server: PushServer) -> None:
        try:
            server.serve_forever()
        except Exception as error:
            failure = ReceiverServerError(f"event receiving HTTP server failed: {error}")
            failure.__cause__ = error
            self._log.exception("Event receiving HTTP server failed")
            self._error_signal.report(failure)
        else:
            self._log.debug("Event receiving HTTP server stopped")

    def _stop_server(self, server: PushServer, context: Context) -> ReceiverServerError | None:
        server.stop_accepting()
        server.shutdown()
        idle = server.wait_idle(context)
        server.server_close()
        if idle:
            return None

        error = ReceiverServerError(
            f"could not gracefully shut down events receiving HTTP server: {context.error}"
        )
        self._log.error("HTTP server shutdown timed out", extra=error.to_log_dict())
        return error

    def _close_events(self) -> None:
        if self._events_closed:
            return
        self._events_closed = True
        self._events.put(_CLOSED)

    def _process_events(self, context: Context) -> None:
        failed = False
        while True:
            event = self._events.get()
            if event is _CLOSED:
                break
            if failed:
                continue

            self._log.debug("Calling EventProcessor.process")
            try:
                self._processor.process(context, event)
            except Exception as error:
                failed = True
                failure = EventProcessingError(f"event processor failed: {error}")
                failure.__cause__ = error
                self._log.exception("EventProcessor.process failed")
                self._error_signal.report(failure)

        self._log.debug("Event processing stopped")
        self._processing_done.set()


def split_host_port(address: str) -> tuple[str, int]:
    """Split ``host:port``; IPv6 hosts are written in brackets.

    The host keeps the case it was configured with.

    Raises:
        ReceiverServerError: If ``address`` has no valid port.
    """
    try:
        parts = urlsplit(f"//{address}")
        port = parts.port
    except ValueError as error:
        raise ReceiverServerError(f"invalid destination address {address!r}: {error}") from error
    if port is None:
        raise ReceiverServerError(f"invalid destination address {address!r}: missing port")
    host = parts.netloc.rpartition("@")[2].rpartition(":")[0]
    return host.removeprefix("[").removesuffix("]"), port


def destination_url(host: str, port: int) -> str:
    """URL Lambda pushes batches to.

    Keeps the configured host: Lambda rejects URLs whose host is an IP address.
    """
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{port}"
