"""Streaming decoder for pushed JSON arrays of tagged records.

The body is read in chunks and decoded one array element at a time, so a
batch is never held in memory as a whole. Each decoded element is sent on
the events queue before the next one is read.
"""

import codecs
import json
import logging
import queue
import re
from collections.abc import Callable
from typing import Any, Protocol

from lambda_extensions.context import Context
from lambda_extensions.exceptions import DecodeInterruptedError, MalformedArrayError, RecordDecodeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_WHITESPACE = frozenset(" \t\n\r")
_SEND_POLL_SECONDS = 0.05
_NUMBER_TAIL = re.compile(r"[0-9.eE+-]*")


class ByteStream(Protocol):
    """Readable, closable byte stream such as an HTTP request body."""

    def read(self, size: int = -1, /) -> bytes: ...

    def close(self) -> None: ...


class JSONStreamReader:
    """Reads JSON values and structural characters from a byte stream."""

    def __init__(self, stream: ByteStream, chunk_size: int = CHUNK_SIZE) -> None:
        self._stream = stream
        self._chunk_size = chunk_size
        self._text_decoder = codecs.getincrementaldecoder("utf-8")()
        self._json_decoder = json.JSONDecoder()
        self._buffer = ""
        self._position = 0
        self._eof = False

    def peek(self) -> str | None:
        """Return the next non-whitespace character without consuming it, or None at end of input."""
        while True:
            while self._position < len(self._buffer) and self._buffer[self._position] in _WHITESPACE:
                self._position += 1
            if self._position < len(self._buffer):
                return self._buffer[self._position]
            if not self._fill():
                return None

    def take(self) -> str | None:
        """Consume and return the next non-whitespace character."""
        char = self.peek()
        if char is not None:
            self._position += 1
        return char

    def read_value(self) -> Any:
        """Decode the next complete JSON value, reading more input as needed."""
        self.peek()
        while True:
            try:
                value, end = self._json_decoder.raw_decode(self._buffer, self._position)
            except json.JSONDecodeError:
                if self._fill():
                    continue
                raise

            # A number cut at the buffer edge may continue in the next chunk.
            if _is_number(value) and _NUMBER_TAIL.fullmatch(self._buffer, end) and self._fill():
                continue

            self._position = end
            return value

    def _fill(self) -> bool:
        if self._eof:
            return False

        chunk = self._stream.read(self._chunk_size)
        remaining = self._buffer[self._position :]
        self._position = 0
        if not chunk:
            self._eof = True
            tail = self._text_decoder.decode(b"", final=True)
            self._buffer = remaining + tail
            return bool(tail)

        self._buffer = remaining + self._text_decoder.decode(chunk)
        return True


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def decode_array[T](
    context: Context,
    stream: ByteStream,
    events: queue.Queue[T],
    decode_next: Callable[[Any], T],
) -> None:
    """Decode a JSON array from ``stream`` and send each element on ``events``.

    Elements already sent stay sent when a later element fails. The stream
    is drained and closed on every exit path.

    Args:
        context: Cancelling it interrupts decoding between elements and unblocks a pending send.
        stream: Request body holding the array.
        events: Queue receiving decoded elements in array order.
        decode_next: Turns one parsed array element into an event.

    Raises:
        MalformedArrayError: If the body is not a JSON array.
        RecordDecodeError: If an element could not be decoded.
        DecodeInterruptedError: If ``context`` ended while decoding.
    """
    try:
        _decode_elements(context, JSONStreamReader(stream), events, decode_next)
    except UnicodeDecodeError as error:
        raise MalformedArrayError(f"malformed json array: {error}") from error
    finally:
        _drain_and_close(stream)


def _decode_elements[T](
    context: Context,
    reader: JSONStreamReader,
    events: queue.Queue[T],
    decode_next: Callable[[Any], T],
) -> None:
    _expect(reader, "[")

    expect_element = False
    while True:
        char = reader.peek()
        if char is None:
            raise MalformedArrayError("malformed json array: unexpected end of input")
        if char == "]" and not expect_element:
            reader.take()
            return

        try:
            raw = reader.read_value()
        except json.JSONDecodeError as error:
            raise RecordDecodeError(f"could not decode array element: {error}") from error
        event = decode_next(raw)

        if context.done():
            raise DecodeInterruptedError(
                f"decoding was interrupted with context error: {context.error}"
            ) from context.error
        send(context, events, event)

        char = reader.peek()
        expect_element = char == ","
        if expect_element:
            reader.take()
        elif char != "]":
            raise MalformedArrayError(f"malformed json array, want , or ], got {char!r}")


def _expect(reader: JSONStreamReader, want: str) -> None:
    char = reader.take()
    if char is None:
        raise MalformedArrayError(f"malformed json array, want {want}, got end of input")
    if char != want:
        raise MalformedArrayError(f"malformed json array, want {want}, got {char!r}")


def send[T](context: Context, events: queue.Queue[T], item: T) -> None:
    """Put ``item`` on ``events``, giving up once ``context`` ends."""
    while True:
        try:
            events.put(item, timeout=_SEND_POLL_SECONDS)
        except queue.Full:
            if context.done():
                raise DecodeInterruptedError(
                    f"decoding was interrupted with context error: {context.error}"
                ) from context.error
        else:
            return


def _drain_and_close(stream: ByteStream) -> None:
    try:
        while stream.read(CHUNK_SIZE):
            pass
    except OSError:
        logger.debug("Could not drain request body", exc_info=True)
    finally:
        stream.close()
