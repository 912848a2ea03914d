"""Telemetry API: receive platform events and logs pushed by Lambda.

Usage:
    from lambda_extensions import telemetryapi

    class Printer:
        def init(self, context, register_response): ...
        def process(self, context, event): print(event.type, event.record)
        def shutdown(self, context, reason, error): ...

    telemetryapi.run(Printer())
"""

from lambda_extensions.telemetryapi.decode import decode_event, decode_events
from lambda_extensions.telemetryapi.models import (
    Event,
    ExtensionEvent,
    FunctionEvent,
    InitReportMetrics,
    Phase,
    PlatformExtensionEvent,
    PlatformExtensionRecord,
    PlatformInitReportEvent,
    PlatformInitReportRecord,
    PlatformInitRuntimeDoneEvent,
    PlatformInitRuntimeDoneRecord,
    PlatformInitStartEvent,
    PlatformInitStartRecord,
    PlatformLogsDroppedEvent,
    PlatformLogsDroppedRecord,
    PlatformReportEvent,
    PlatformReportRecord,
    PlatformRuntimeDoneEvent,
    PlatformRuntimeDoneRecord,
    PlatformStartEvent,
    PlatformStartRecord,
    PlatformTelemetrySubscriptionEvent,
    PlatformTelemetrySubscriptionRecord,
    ReportMetrics,
    RuntimeDoneMetrics,
    Span,
    SpanName,
    Status,
    TelemetryType,
    TraceContext,
)
from lambda_extensions.telemetryapi.server import DEFAULT_DESTINATION_ADDRESS, Processor, run

__all__ = [
    "DEFAULT_DESTINATION_ADDRESS",
    "Event",
    "ExtensionEvent",
    "FunctionEvent",
    "InitReportMetrics",
    "Phase",
    "PlatformExtensionEvent",
    "PlatformExtensionRecord",
    "PlatformInitReportEvent",
    "PlatformInitReportRecord",
    "PlatformInitRuntimeDoneEvent",
    "PlatformInitRuntimeDoneRecord",
    "PlatformInitStartEvent",
    "PlatformInitStartRecord",
    "PlatformLogsDroppedEvent",
    "PlatformLogsDroppedRecord",
    "PlatformReportEvent",
    "PlatformReportRecord",
    "PlatformRuntimeDoneEvent",
    "PlatformRuntimeDoneRecord",
    "PlatformStartEvent",
    "PlatformStartRecord",
    "PlatformTelemetrySubscriptionEvent",
    "PlatformTelemetrySubscriptionRecord",
    "Processor",
    "ReportMetrics",
    "RuntimeDoneMetrics",
    "Span",
    "SpanName",
    "Status",
    "TelemetryType",
    "TraceContext",
    "decode_event",
    "decode_events",
    "run",
]
