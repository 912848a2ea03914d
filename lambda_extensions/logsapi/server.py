"""Run an extension that receives logs pushed by the Logs API."""

import logging

from lambda_extensions.context import Context
from lambda_extensions.extapi import (
    BufferingConfig,
    Client,
    ClientOptions,
    EventType,
    LogsSubscribeRequest,
    SubscriptionType,
)
from lambda_extensions.extapi import run as run_extension
from lambda_extensions.logsapi.decode import decode_logs
from lambda_extensions.logsapi.models import Log
from lambda_extensions.receiver import EventProcessor, EventReceiver

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION_ADDRESS = "sandbox.localdomain:0"

type LogProcessor = EventProcessor[Log]


def run(
    processor: LogProcessor,
    context: Context | None = None,
    *,
    destination_address: str = DEFAULT_DESTINATION_ADDRESS,
    log_types: list[SubscriptionType] | None = None,
    buffering: BufferingConfig | None = None,
    client_options: ClientOptions | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Register, subscribe to the Logs API and feed every log to ``processor``.

    The extension registers for SHUTDOWN events only. Lambda accepts
    ``sandbox.localdomain`` as the only destination host; port 0 picks a
    free port.

    Args:
        processor: Callbacks receiving the logs.
        context: Cancelling it stops the extension.
        destination_address: host:port the receiving HTTP server listens on.
        log_types: Log sources to subscribe to. Defaults to platform, function and extension.
        buffering: Buffering thresholds. Lambda defaults apply when not set.
        client_options: Forwarded to ``lambda_extensions.extapi.register``.
        log: Logger for extension diagnostics.
    """
    log = log or logger

    def subscribe(subscribe_context: Context, client: Client, destination: str) -> None:
        log.debug(
            "Calling Client.subscribe_logs",
            extra={"destination": destination, "log_types": log_types, "buffering": buffering},
        )
        request = LogsSubscribeRequest.for_destination(destination, log_types, buffering)
        client.subscribe_logs(request, context=subscribe_context)

    receiver: EventReceiver[Log] = EventReceiver(processor, destination_address, decode_logs, subscribe, log=log)

    options: ClientOptions = {"log": log, **(client_options or {})}
    options["event_types"] = [EventType.SHUTDOWN]
    log.debug("Starting logs extension")
    run_extension(receiver, context, **options)
