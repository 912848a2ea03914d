"""Base exception class for the Lambda extensions library."""

from http import HTTPStatus
from typing import Any, ClassVar


class LambdaExtensionsError(Exception):
    """Base exception for all errors raised by this library.

    All custom exceptions inherit from this class, enabling:
    - Single catch block for all library errors
    - Consistent structured logging
    - HTTP status mapping for the event receiving server

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        http_status: HTTP status code used when the error answers a push request.
        context: Additional debugging information.
    """

    error_code: ClassVar[str] = "INTERNAL_ERROR"
    http_status: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            context: Additional key-value pairs for debugging.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_log_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging.

        Keys avoid the reserved LogRecord attributes so the result can be
        passed as ``extra=``.

        Returns:
            Dictionary with full error details for logging.
        """
        return {
            "error_code": self.error_code,
            "http_status": self.http_status,
            "error_message": self.message,
            "context": self.context,
            "exception_type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        """Return string representation."""
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"context={self.context!r})"
        )
