"""Telemetry API event models (schema version 2022-07-01).

Each pushed event is ``{"time": ..., "type": ..., "record": ...}``; the
``type`` tag selects the shape of ``record``. Durations are in
milliseconds.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import Field

from lambda_extensions.config import InitializationType
from lambda_extensions.extapi.models import CamelModel, EventType
from lambda_extensions.extapi.subscriptions import SubscriptionType


class TelemetryType(StrEnum):
    """Tags of the events the Telemetry API pushes."""

    PLATFORM_INIT_START = "platform.initStart"
    PLATFORM_INIT_RUNTIME_DONE = "platform.initRuntimeDone"
    PLATFORM_INIT_REPORT = "platform.initReport"
    PLATFORM_START = "platform.start"
    PLATFORM_RUNTIME_DONE = "platform.runtimeDone"
    PLATFORM_REPORT = "platform.report"
    PLATFORM_EXTENSION = "platform.extension"
    PLATFORM_TELEMETRY_SUBSCRIPTION = "platform.telemetrySubscription"
    PLATFORM_LOGS_DROPPED = "platform.logsDropped"
    FUNCTION = "function"
    EXTENSION = "extension"


class Phase(StrEnum):
    """Lifecycle phase an event belongs to."""

    INIT = "init"
    INVOKE = "invoke"


class Status(StrEnum):
    """Outcome of a phase."""

    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    TIMEOUT = "timeout"


class SpanName(StrEnum):
    """Spans Lambda reports for an invocation."""

    RESPONSE_LATENCY = "responseLatency"
    RESPONSE_DURATION = "responseDuration"
    RUNTIME_OVERHEAD = "runtimeOverhead"


class Span(CamelModel):
    name: str
    start: datetime
    duration_ms: float


class TraceContext(CamelModel):
    """X-Ray trace context of an invocation."""

    span_id: str = Field(default="")
    type: str = Field(default="")
    value: str = Field(default="")


class InitReportMetrics(CamelModel):
    duration_ms: float


class RuntimeDoneMetrics(CamelModel):
    duration_ms: float
    produced_bytes: int = Field(default=0)


class ReportMetrics(CamelModel):
    """Invocation metrics; init and restore durations are set on cold starts only."""

    billed_duration_ms: float = Field(default=0.0)
    duration_ms: float
    init_duration_ms: float = Field(default=0.0)
    max_memory_used_mb: int = Field(default=0, alias="maxMemoryUsedMB")
    memory_size_mb: int = Field(default=0, alias="memorySizeMB")
    restore_duration_ms: float = Field(default=0.0)


class PlatformInitStartRecord(CamelModel):
    initialization_type: InitializationType
    phase: Phase
    runtime_version: str = Field(default="")
    runtime_version_arn: str = Field(default="")


class PlatformInitRuntimeDoneRecord(CamelModel):
    initialization_type: InitializationType
    phase: Phase = Field(default=Phase.INIT)
    status: Status
    spans: list[Span] = Field(default_factory=list)


class PlatformInitReportRecord(CamelModel):
    initialization_type: InitializationType
    phase: Phase = Field(default=Phase.INIT)
    metrics: InitReportMetrics
    spans: list[Span] = Field(default_factory=list)


class PlatformStartRecord(CamelModel):
    request_id: str
    version: str = Field(default="")
    tracing: TraceContext | None = None


class PlatformRuntimeDoneRecord(CamelModel):
    request_id: str
    status: Status
    metrics: RuntimeDoneMetrics | None = None
    tracing: TraceContext | None = None
    spans: list[Span] = Field(default_factory=list)


class PlatformReportRecord(CamelModel):
    request_id: str
    status: Status
    metrics: ReportMetrics
    tracing: TraceContext | None = None
    spans: list[Span] = Field(default_factory=list)


class PlatformExtensionRecord(CamelModel):
    name: str
    state: str
    events: list[EventType] = Field(default_factory=list)


class PlatformTelemetrySubscriptionRecord(CamelModel):
    name: str
    state: str
    types: list[SubscriptionType] = Field(default_factory=list)


class PlatformLogsDroppedRecord(CamelModel):
    dropped_bytes: int
    dropped_records: int
    reason: str


class EventBase(CamelModel):
    time: datetime


class PlatformInitStartEvent(EventBase):
    type: Literal["platform.initStart"]
    record: PlatformInitStartRecord


class PlatformInitRuntimeDoneEvent(EventBase):
    type: Literal["platform.initRuntimeDone"]
    record: PlatformInitRuntimeDoneRecord


class PlatformInitReportEvent(EventBase):
    type: Literal["platform.initReport"]
    record: PlatformInitReportRecord


class PlatformStartEvent(EventBase):
    type: Literal["platform.start"]
    record: PlatformStartRecord


class PlatformRuntimeDoneEvent(EventBase):
    type: Literal["platform.runtimeDone"]
    record: PlatformRuntimeDoneRecord


class PlatformReportEvent(EventBase):
    type: Literal["platform.report"]
    record: PlatformReportRecord


class PlatformExtensionEvent(EventBase):
    type: Literal["platform.extension"]
    record: PlatformExtensionRecord


class PlatformTelemetrySubscriptionEvent(EventBase):
    type: Literal["platform.telemetrySubscription"]
    record: PlatformTelemetrySubscriptionRecord


class PlatformLogsDroppedEvent(EventBase):
    type: Literal["platform.logsDropped"]
    record: PlatformLogsDroppedRecord


class FunctionEvent(EventBase):
    """A function log line; an object when the function logs in JSON format."""

    type: Literal["function"]
    record: str | dict[str, Any]


class ExtensionEvent(EventBase):
    """An extension log line; an object when the extension logs in JSON format."""

    type: Literal["extension"]
    record: str | dict[str, Any]


Event = Annotated[
    PlatformInitStartEvent
    | PlatformInitRuntimeDoneEvent
    | PlatformInitReportEvent
    | PlatformStartEvent
    | PlatformRuntimeDoneEvent
    | PlatformReportEvent
    | PlatformExtensionEvent
    | PlatformTelemetrySubscriptionEvent
    | PlatformLogsDroppedEvent
    | FunctionEvent
    | ExtensionEvent,
    Field(discriminator="type"),
]
