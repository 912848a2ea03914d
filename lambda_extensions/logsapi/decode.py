"""Decoding of Logs API batches."""

import queue
from typing import Any

from pydantic import TypeAdapter, ValidationError

from lambda_extensions.context import Context
from lambda_extensions.exceptions import RecordDecodeError
from lambda_extensions.logsapi.models import Log, LogType
from lambda_extensions.receiver import ByteStream, decode_array

_log_adapter: TypeAdapter[Log] = TypeAdapter(Log)
_KNOWN_TYPES = frozenset(LogType)


def decode_log(raw: Any) -> Log:
    """Build a typed log from one parsed array element.

    Raises:
        RecordDecodeError: If the tag is unknown or the record does not match it.
    """
    if isinstance(raw, dict):
        tag = raw.get("type")
        if not isinstance(tag, str) or tag not in _KNOWN_TYPES:
            raise RecordDecodeError(
                f'could not decode unknown log type "{tag}" and record "{raw.get("record")}"',
                context={"type": tag},
            )
    try:
        return _log_adapter.validate_python(raw)
    except ValidationError as error:
        log_type = raw.get("type") if isinstance(raw, dict) else None
        raise RecordDecodeError(
            f"could not decode log record for log type {log_type}: {error}",
            context={"type": log_type},
        ) from error


def decode_logs(context: Context, stream: ByteStream, logs: queue.Queue[Any]) -> None:
    """Decode a pushed JSON array of logs onto ``logs``, one element at a time."""
    decode_array(context, stream, logs, decode_log)
