"""Lambda Extensions API: registration, event polling and the lifecycle run-loop.

Usage:
    from lambda_extensions.extapi import run

    run(MyExtension(), extension_name="my-extension")
"""

from lambda_extensions.extapi.client import Client, ClientOptions, register
from lambda_extensions.extapi.extension import EXIT_ERROR_TYPE, INIT_ERROR_TYPE, Extension, run
from lambda_extensions.extapi.models import (
    ErrorResponse,
    EventType,
    InvokeEvent,
    RegisterResponse,
    ShutdownEvent,
    ShutdownReason,
    Tracing,
)
from lambda_extensions.extapi.subscriptions import (
    BufferingConfig,
    HttpMethod,
    LogsDestination,
    LogsSubscribeRequest,
    SubscriptionType,
    TelemetryDestination,
    TelemetrySubscribeRequest,
)

__all__ = [
    "EXIT_ERROR_TYPE",
    "INIT_ERROR_TYPE",
    "BufferingConfig",
    "Client",
    "ClientOptions",
    "ErrorResponse",
    "EventType",
    "Extension",
    "HttpMethod",
    "InvokeEvent",
    "LogsDestination",
    "LogsSubscribeRequest",
    "RegisterResponse",
    "ShutdownEvent",
    "ShutdownReason",
    "SubscriptionType",
    "TelemetryDestination",
    "TelemetrySubscribeRequest",
    "Tracing",
    "register",
]
