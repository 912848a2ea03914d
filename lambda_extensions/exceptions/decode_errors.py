"""Errors raised while receiving pushed event batches."""

from http import HTTPStatus
from typing import ClassVar

from lambda_extensions.exceptions.base import LambdaExtensionsError


class DecodeError(LambdaExtensionsError):
    """Base class for batch decoding failures."""

    error_code: ClassVar[str] = "DECODE_ERROR"
    http_status: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR


class MalformedArrayError(DecodeError):
    """The request body is not a well-formed JSON array."""

    error_code: ClassVar[str] = "MALFORMED_ARRAY"


class RecordDecodeError(DecodeError):
    """One array element could not be decoded into a typed event.

    Raised for unknown type tags and for records that do not match the
    shape selected by their tag.
    """

    error_code: ClassVar[str] = "RECORD_DECODE_ERROR"


class DecodeInterruptedError(DecodeError):
    """Decoding stopped because its context was cancelled."""

    error_code: ClassVar[str] = "DECODE_INTERRUPTED"


class UnexpectedMethodError(LambdaExtensionsError):
    """A push request used a method other than POST."""

    error_code: ClassVar[str] = "UNEXPECTED_METHOD"
    http_status: ClassVar[int] = HTTPStatus.BAD_REQUEST


class RequestFramingError(LambdaExtensionsError):
    """A push request body is not framed by a valid length or chunked encoding."""

    error_code: ClassVar[str] = "REQUEST_FRAMING"
    http_status: ClassVar[int] = HTTPStatus.BAD_REQUEST


class LengthRequiredError(RequestFramingError):
    """A push request has neither ``Content-Length`` nor chunked encoding."""

    error_code: ClassVar[str] = "LENGTH_REQUIRED"
    http_status: ClassVar[int] = HTTPStatus.LENGTH_REQUIRED
