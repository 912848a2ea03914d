"""Logs API record models.

Each pushed log is ``{"time": ..., "type": ..., "record": ...}``; the
``type`` tag selects the shape of ``record``.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import Field

from lambda_extensions.extapi.models import CamelModel, EventType, Tracing
from lambda_extensions.extapi.subscriptions import SubscriptionType


class LogType(StrEnum):
    """Tags of the records the Logs API pushes."""

    PLATFORM_START = "platform.start"
    PLATFORM_END = "platform.end"
    PLATFORM_REPORT = "platform.report"
    PLATFORM_EXTENSION = "platform.extension"
    PLATFORM_LOGS_SUBSCRIPTION = "platform.logsSubscription"
    PLATFORM_LOGS_DROPPED = "platform.logsDropped"
    PLATFORM_FAULT = "platform.fault"
    PLATFORM_RUNTIME_DONE = "platform.runtimeDone"
    FUNCTION = "function"
    EXTENSION = "extension"


class RuntimeDoneStatus(StrEnum):
    """Outcome of an invocation as seen by the runtime."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class PlatformStartRecord(CamelModel):
    """Invocation start."""

    request_id: str
    version: str = Field(default="")


class PlatformEndRecord(CamelModel):
    """Invocation end."""

    request_id: str


class Metrics(CamelModel):
    """Invocation metrics; durations are in milliseconds."""

    duration_ms: float = Field(default=0.0)
    billed_duration_ms: float = Field(default=0.0)
    memory_size_mb: int = Field(default=0, alias="memorySizeMB")
    max_memory_used_mb: int = Field(default=0, alias="maxMemoryUsedMB")
    init_duration_ms: float = Field(default=0.0)


class PlatformReportRecord(CamelModel):
    """Invocation report; ``init_duration_ms`` is set on cold starts only."""

    metrics: Metrics
    request_id: str
    tracing: Tracing | None = None


class PlatformExtensionRecord(CamelModel):
    """An extension registered."""

    events: list[EventType] = Field(default_factory=list)
    name: str
    state: str


class PlatformLogsSubscriptionRecord(CamelModel):
    """An extension subscribed to the Logs API."""

    name: str
    state: str
    types: list[SubscriptionType] = Field(default_factory=list)


class PlatformLogsDroppedRecord(CamelModel):
    """Logs dropped because the extension did not keep up."""

    dropped_bytes: int
    dropped_records: int
    reason: str


class PlatformRuntimeDoneRecord(CamelModel):
    """The runtime finished processing an invocation."""

    request_id: str
    status: RuntimeDoneStatus


class LogBase(CamelModel):
    time: datetime


class PlatformStartLog(LogBase):
    type: Literal["platform.start"]
    record: PlatformStartRecord


class PlatformEndLog(LogBase):
    type: Literal["platform.end"]
    record: PlatformEndRecord


class PlatformReportLog(LogBase):
    type: Literal["platform.report"]
    record: PlatformReportRecord


class PlatformExtensionLog(LogBase):
    type: Literal["platform.extension"]
    record: PlatformExtensionRecord


class PlatformLogsSubscriptionLog(LogBase):
    type: Literal["platform.logsSubscription"]
    record: PlatformLogsSubscriptionRecord


class PlatformLogsDroppedLog(LogBase):
    type: Literal["platform.logsDropped"]
    record: PlatformLogsDroppedRecord


class PlatformFaultLog(LogBase):
    """Runtime or environment error, as a free-form message."""

    type: Literal["platform.fault"]
    record: str


class PlatformRuntimeDoneLog(LogBase):
    type: Literal["platform.runtimeDone"]
    record: PlatformRuntimeDoneRecord


class FunctionLog(LogBase):
    """A line the function wrote to stdout or stderr."""

    type: Literal["function"]
    record: str


class ExtensionLog(LogBase):
    """A line an extension wrote to stdout or stderr."""

    type: Literal["extension"]
    record: str


Log = Annotated[
    PlatformStartLog
    | PlatformEndLog
    | PlatformReportLog
    | PlatformExtensionLog
    | PlatformLogsSubscriptionLog
    | PlatformLogsDroppedLog
    | PlatformFaultLog
    | PlatformRuntimeDoneLog
    | FunctionLog
    | ExtensionLog,
    Field(discriminator="type"),
]
