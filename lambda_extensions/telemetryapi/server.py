"""Run an extension that receives events pushed by the Telemetry API."""

import logging

from lambda_extensions.context import Context
from lambda_extensions.extapi import (
    BufferingConfig,
    Client,
    ClientOptions,
    EventType,
    SubscriptionType,
    TelemetrySubscribeRequest,
)
from lambda_extensions.extapi import run as run_extension
from lambda_extensions.receiver import EventProcessor, EventReceiver
from lambda_extensions.telemetryapi.decode import decode_events
from lambda_extensions.telemetryapi.models import Event

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION_ADDRESS = "sandbox.localdomain:0"

type Processor = EventProcessor[Event]


def run(
    processor: Processor,
    context: Context | None = None,
    *,
    destination_address: str = DEFAULT_DESTINATION_ADDRESS,
    subscription_types: list[SubscriptionType] | None = None,
    buffering: BufferingConfig | None = None,
    client_options: ClientOptions | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Register, subscribe to the Telemetry API and feed every event to ``processor``.

    The extension registers for SHUTDOWN events only. Lambda accepts
    ``sandbox.localdomain`` as the only destination host; port 0 picks a
    free port.

    Args:
        processor: Callbacks receiving the events.
        context: Cancelling it stops the extension.
        destination_address: host:port the receiving HTTP server listens on.
        subscription_types: Event sources to subscribe to. Defaults to platform and function.
        buffering: Buffering thresholds. Lambda defaults apply when not set.
        client_options: Forwarded to ``lambda_extensions.extapi.register``.
        log: Logger for extension diagnostics.
    """
    log = log or logger

    def subscribe(subscribe_context: Context, client: Client, destination: str) -> None:
        log.debug(
            "Calling Client.subscribe_telemetry",
            extra={"destination": destination, "subscription_types": subscription_types, "buffering": buffering},
        )
        request = TelemetrySubscribeRequest.for_destination(destination, subscription_types, buffering)
        client.subscribe_telemetry(request, context=subscribe_context)

    receiver: EventReceiver[Event] = EventReceiver(processor, destination_address, decode_events, subscribe, log=log)

    options: ClientOptions = {"log": log, **(client_options or {})}
    options["event_types"] = [EventType.SHUTDOWN]
    log.debug("Starting telemetry extension")
    run_extension(receiver, context, **options)
