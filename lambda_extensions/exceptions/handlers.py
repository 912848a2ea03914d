"""Helpers that turn library errors into HTTP responses."""

from http import HTTPStatus

from lambda_extensions.exceptions.base import LambdaExtensionsError


def get_http_status_for_error(error: BaseException) -> int:
    """Get HTTP status code for any exception.

    Library errors map through their ``http_status``; everything else is a 500.
    """
    if isinstance(error, LambdaExtensionsError):
        return error.http_status
    return HTTPStatus.INTERNAL_SERVER_ERROR


def create_error_body(error: BaseException) -> bytes:
    """Render an error as a plain text response body."""
    return f"{error}\n".encode()
