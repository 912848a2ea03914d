"""Logs API: receive function, extension and platform logs pushed by Lambda.

The Logs API is superseded by the Telemetry API; a process can subscribe to
one of the two, not both.

Usage:
    from lambda_extensions import logsapi

    class Printer:
        def init(self, context, register_response): ...
        def process(self, context, log): print(log.type, log.record)
        def shutdown(self, context, reason, error): ...

    logsapi.run(Printer())
"""

from lambda_extensions.logsapi.decode import decode_log, decode_logs
from lambda_extensions.logsapi.models import (
    ExtensionLog,
    FunctionLog,
    Log,
    LogType,
    Metrics,
    PlatformEndLog,
    PlatformEndRecord,
    PlatformExtensionLog,
    PlatformExtensionRecord,
    PlatformFaultLog,
    PlatformLogsDroppedLog,
    PlatformLogsDroppedRecord,
    PlatformLogsSubscriptionLog,
    PlatformLogsSubscriptionRecord,
    PlatformReportLog,
    PlatformReportRecord,
    PlatformRuntimeDoneLog,
    PlatformRuntimeDoneRecord,
    PlatformStartLog,
    PlatformStartRecord,
    RuntimeDoneStatus,
)
from lambda_extensions.logsapi.server import DEFAULT_DESTINATION_ADDRESS, LogProcessor, run

__all__ = [
    "DEFAULT_DESTINATION_ADDRESS",
    "ExtensionLog",
    "FunctionLog",
    "Log",
    "LogProcessor",
    "LogType",
    "Metrics",
    "PlatformEndLog",
    "PlatformEndRecord",
    "PlatformExtensionLog",
    "PlatformExtensionRecord",
    "PlatformFaultLog",
    "PlatformLogsDroppedLog",
    "PlatformLogsDroppedRecord",
    "PlatformLogsSubscriptionLog",
    "PlatformLogsSubscriptionRecord",
    "PlatformReportLog",
    "PlatformReportRecord",
    "PlatformRuntimeDoneLog",
    "PlatformRuntimeDoneRecord",
    "PlatformStartLog",
    "PlatformStartRecord",
    "RuntimeDoneStatus",
    "decode_log",
    "decode_logs",
    "run",
]
