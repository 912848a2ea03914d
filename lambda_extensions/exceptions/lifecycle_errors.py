"""Errors raised by the extension run-loop and the event receiver."""

from http import HTTPStatus
from typing import ClassVar

from lambda_extensions.exceptions.base import LambdaExtensionsError


class ExtensionError(LambdaExtensionsError):
    """Base class for failures in the extension lifecycle."""

    error_code: ClassVar[str] = "EXTENSION_ERROR"
    http_status: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR


class ExtensionInitError(ExtensionError):
    """The extension init callback failed."""

    error_code: ClassVar[str] = "EXTENSION_INIT_ERROR"


class ExtensionLoopError(ExtensionError):
    """The event polling loop stopped with an error."""

    error_code: ClassVar[str] = "EXTENSION_LOOP_ERROR"


class ExtensionShutdownError(ExtensionError):
    """The extension shutdown callback failed."""

    error_code: ClassVar[str] = "EXTENSION_SHUTDOWN_ERROR"


class ReceiverServerError(ExtensionError):
    """The event receiving HTTP server failed to start, run or stop."""

    error_code: ClassVar[str] = "RECEIVER_SERVER_ERROR"


class EventProcessingError(ExtensionError):
    """An event processor callback failed."""

    error_code: ClassVar[str] = "EVENT_PROCESSING_ERROR"


class ContextError(LambdaExtensionsError):
    """Base class for context cancellation causes."""

    error_code: ClassVar[str] = "CONTEXT_ERROR"
    http_status: ClassVar[int] = HTTPStatus.SERVICE_UNAVAILABLE


class ContextCancelledError(ContextError):
    """The context was cancelled explicitly or by its parent."""

    error_code: ClassVar[str] = "CONTEXT_CANCELLED"


class DeadlineExceededError(ContextError):
    """The context deadline passed."""

    error_code: ClassVar[str] = "DEADLINE_EXCEEDED"
    http_status: ClassVar[int] = HTTPStatus.GATEWAY_TIMEOUT
