"""Errors raised while talking to the Lambda Extensions, Logs and Telemetry APIs."""

from http import HTTPStatus
from typing import Any, ClassVar

from lambda_extensions.exceptions.base import LambdaExtensionsError


class PlatformError(LambdaExtensionsError):
    """Base class for failed calls to the Lambda platform APIs."""

    error_code: ClassVar[str] = "PLATFORM_ERROR"
    http_status: ClassVar[int] = HTTPStatus.BAD_GATEWAY


class LambdaAPIError(PlatformError):
    """Non-2xx response carrying a structured platform error body.

    Two errors compare equal when status code, error type and message match,
    so callers can assert on a specific platform failure.
    """

    error_code: ClassVar[str] = "LAMBDA_API_ERROR"

    def __init__(
        self,
        *,
        status_code: int,
        error_type: str,
        error_message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the platform API error.

        Args:
            status_code: HTTP status code returned by the platform.
            error_type: The ``errorType`` field of the response body.
            error_message: The ``errorMessage`` field of the response body.
            context: Additional context information.
        """
        super().__init__(
            f"Lambda API http_status_code={status_code} type={error_type}, message={error_message}",
            context=context,
        )
        self.status_code = status_code
        self.error_type = error_type
        self.error_message = error_message

    def __eq__(self, other: object) -> bool:
        """Compare by status code, error type and message."""
        if not isinstance(other, LambdaAPIError):
            return NotImplemented
        return (self.status_code, self.error_type, self.error_message) == (
            other.status_code,
            other.error_type,
            other.error_message,
        )

    def __hash__(self) -> int:
        """Hash consistently with equality."""
        return hash((self.status_code, self.error_type, self.error_message))


class UnexpectedStatusError(PlatformError):
    """Non-2xx response whose body is not a structured platform error."""

    error_code: ClassVar[str] = "UNEXPECTED_STATUS"

    def __init__(self, *, status_code: int, reason: str, body: str) -> None:
        """Initialize the error.

        Args:
            status_code: HTTP status code returned by the platform.
            reason: HTTP reason phrase.
            body: Raw response body.
        """
        super().__init__(f"http request failed with status {status_code} {reason} and body: {body}")
        self.status_code = status_code
        self.body = body


class ResponseDecodeError(PlatformError):
    """Successful response whose JSON body could not be decoded."""

    error_code: ClassVar[str] = "RESPONSE_DECODE_ERROR"


class RegistrationError(PlatformError):
    """Extension registration could not be completed."""

    error_code: ClassVar[str] = "REGISTRATION_ERROR"
