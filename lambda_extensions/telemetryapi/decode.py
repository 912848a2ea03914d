"""Decoding of Telemetry API batches."""

import queue
from typing import Any

from pydantic import TypeAdapter, ValidationError

from lambda_extensions.context import Context
from lambda_extensions.exceptions import RecordDecodeError
from lambda_extensions.receiver import ByteStream, decode_array
from lambda_extensions.telemetryapi.models import Event, TelemetryType

_event_adapter: TypeAdapter[Event] = TypeAdapter(Event)
_KNOWN_TYPES = frozenset(TelemetryType)


def decode_event(raw: Any) -> Event:
    """Build a typed event from one parsed array element.

    Raises:
        RecordDecodeError: If the tag is unknown or the record does not match it.
    """
    if isinstance(raw, dict):
        tag = raw.get("type")
        if not isinstance(tag, str) or tag not in _KNOWN_TYPES:
            raise RecordDecodeError(
                f'could not decode unknown event type "{tag}" and record "{raw.get("record")}"',
                context={"type": tag},
            )
    try:
        return _event_adapter.validate_python(raw)
    except ValidationError as error:
        event_type = raw.get("type") if isinstance(raw, dict) else None
        raise RecordDecodeError(
            f"could not decode record for event type {event_type}: {error}",
            context={"type": event_type},
        ) from error


def decode_events(context: Context, stream: ByteStream, events: queue.Queue[Any]) -> None:
    """Decode a pushed JSON array of events onto ``events``, one element at a time."""
    decode_array(context, stream, events, decode_event)
