"""Client library for AWS Lambda extensions.

Packages:
    extapi: registration, event polling and the lifecycle run-loop
    logsapi: receive logs pushed by the Logs API
    telemetryapi: receive events pushed by the Telemetry API
    receiver: the HTTP receiving engine shared by both streams
"""

from lambda_extensions.context import Context, ErrorSignal

__version__ = "0.1.0"

__all__ = ["Context", "ErrorSignal", "__version__"]
