"""Generic receiver for streams Lambda pushes to the extension over HTTP."""

from lambda_extensions.receiver.decode import ByteStream, JSONStreamReader, decode_array
from lambda_extensions.receiver.server import (
    BatchDecoder,
    EventProcessor,
    EventReceiver,
    Subscriber,
    destination_url,
    split_host_port,
)

__all__ = [
    "BatchDecoder",
    "ByteStream",
    "EventProcessor",
    "EventReceiver",
    "JSONStreamReader",
    "Subscriber",
    "decode_array",
    "destination_url",
    "split_host_port",
]
