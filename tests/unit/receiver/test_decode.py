"""Tests for the streaming JSON array decoder."""

import io
import queue

import pytest

from lambda_extensions.context import Context
from lambda_extensions.exceptions import (
    DecodeError,
    DecodeInterruptedError,
    MalformedArrayError,
    RecordDecodeError,
)
from lambda_extensions.receiver.decode import JSONStreamReader, decode_array, send


def _identity(raw):
    return raw


def _decode(body: bytes, decode_next=_identity, context=None):
    events = queue.Queue()
    stream = io.BytesIO(body)
    decode_array(context or Context.background(), stream, events, decode_next)
    return _drain(events), stream


def _drain(events):
    items = []
    while not events.empty():
        items.append(events.get_nowait())
    return items


class TestDecodeArray:
    def test_elements_in_order(self):
        items, _ = _decode(b'[{"a": 1}, {"b": 2}, "three", 4]')
        assert items == [{"a": 1}, {"b": 2}, "three", 4]

    def test_empty_array(self):
        items, _ = _decode(b"  [ ]  ")
        assert items == []

    def test_whitespace_between_elements(self):
        items, _ = _decode(b'\n[\n  {"a": 1} ,\n  {"a": 2}\n]\n')
        assert items == [{"a": 1}, {"a": 2}]

    def test_decode_next_applied(self):
        items, _ = _decode(b'[{"n": 1}, {"n": 2}]', decode_next=lambda raw: raw["n"] * 10)
        assert items == [10, 20]

    def test_stream_closed(self):
        _, stream = _decode(b"[1, 2]")
        assert stream.closed

    def test_stream_closed_after_failure(self):
        stream = io.BytesIO(b'{"not": "an array"}')
        with pytest.raises(MalformedArrayError):
            decode_array(Context.background(), stream, queue.Queue(), _identity)
        assert stream.closed

    def test_not_an_array(self):
        with pytest.raises(MalformedArrayError, match="want \\["):
            _decode(b'{"a": 1}')

    def test_empty_body(self):
        with pytest.raises(MalformedArrayError, match="end of input"):
            _decode(b"")

    def test_missing_separator(self):
        with pytest.raises(MalformedArrayError, match="want , or \\]"):
            _decode(b"[1 2]")

    def test_unterminated_array(self):
        with pytest.raises(MalformedArrayError, match="unexpected end of input"):
            _decode(b"[1,")

    def test_trailing_comma_rejected(self):
        with pytest.raises(DecodeError):
            _decode(b"[1, 2,]")

    def test_invalid_element(self):
        with pytest.raises(RecordDecodeError):
            _decode(b'[{"a": 1}, {"a": nope}]')

    def test_invalid_utf8(self):
        with pytest.raises(MalformedArrayError):
            _decode(b'["\xff\xfe"]')

    def test_failing_element_stops_later_ones(self):
        events = queue.Queue()

        def decode_next(raw):
            if raw == "bad":
                raise RecordDecodeError("could not decode bad")
            return raw

        with pytest.raises(RecordDecodeError):
            decode_array(Context.background(), io.BytesIO(b'["one", "bad", "three"]'), events, decode_next)
        assert _drain(events) == ["one"]

    def test_interrupted_by_cancelled_context(self):
        context = Context.background()
        context.cancel()
        with pytest.raises(DecodeInterruptedError, match="decoding was interrupted with context error"):
            _decode(b"[1, 2]", context=context)


class TestSend:
    def test_puts_item(self):
        events = queue.Queue(maxsize=1)
        send(Context.background(), events, "item")
        assert events.get_nowait() == "item"

    def test_gives_up_when_context_ends(self):
        events = queue.Queue(maxsize=1)
        events.put("occupied")
        context = Context.background().with_timeout(0.1)
        with pytest.raises(DecodeInterruptedError):
            send(context, events, "item")


class TestJSONStreamReader:
    def test_values_split_across_chunks(self):
        body = b'[{"message": "' + b"x" * 100 + b'"}, 12345, true]'
        reader = JSONStreamReader(io.BytesIO(body), chunk_size=7)
        assert reader.take() == "["
        assert reader.read_value() == {"message": "x" * 100}
        assert reader.take() == ","
        assert reader.read_value() == 12345
        assert reader.take() == ","
        assert reader.read_value() is True
        assert reader.take() == "]"
        assert reader.peek() is None

    def test_number_at_chunk_edge(self):
        reader = JSONStreamReader(io.BytesIO(b"1234567"), chunk_size=3)
        assert reader.read_value() == 1234567

    def test_multibyte_characters_split_across_chunks(self):
        reader = JSONStreamReader(io.BytesIO('["héllo wörld"]'.encode()), chunk_size=2)
        assert reader.take() == "["
        assert reader.read_value() == "héllo wörld"

    def test_small_chunks_through_decode_array(self):
        class SmallReads(io.BytesIO):
            def read(self, size=-1, /):
                return super().read(min(size, 3) if size >= 0 else 3)

        events = queue.Queue()
        decode_array(Context.background(), SmallReads(b'[{"a": [1, 2, 3]}, {"b": "c"}]'), events, _identity)
        assert _drain(events) == [{"a": [1, 2, 3]}, {"b": "c"}]
