"""Low-level Lambda Extensions API client.

Most extensions should use the high-level ``run`` functions in
``lambda_extensions.extapi``, ``lambda_extensions.logsapi`` or
``lambda_extensions.telemetryapi`` instead of calling the client directly.

Usage:
    client = register(extension_name="my-extension")
    event = client.next_event()
"""

import logging
from collections.abc import Sequence
from typing import TypedDict

import requests
from pydantic import BaseModel, Field, ValidationError

from lambda_extensions.config import default_extension_name, get_lambda_environment
from lambda_extensions.context import Context
from lambda_extensions.exceptions import (
    DeadlineExceededError,
    LambdaAPIError,
    RegistrationError,
    ResponseDecodeError,
    UnexpectedStatusError,
)
from lambda_extensions.extapi.models import (
    ErrorResponse,
    EventType,
    InvokeEvent,
    RegisterRequest,
    RegisterResponse,
    ShutdownEvent,
    next_event_adapter,
)
from lambda_extensions.extapi.subscriptions import LogsSubscribeRequest, TelemetrySubscribeRequest
from lambda_extensions.logging import set_extra_context

logger = logging.getLogger(__name__)

EXTENSION_API_VERSION = "2020-01-01"
LOGS_API_VERSION = "2020-08-15"
TELEMETRY_API_VERSION = "2022-07-01"

NAME_HEADER = "Lambda-Extension-Name"
ID_HEADER = "Lambda-Extension-Identifier"
ERROR_TYPE_HEADER = "Lambda-Extension-Function-Error-Type"
ACCEPT_FEATURE_HEADER = "Lambda-Extension-Accept-Feature"

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class ClientOptions(TypedDict, total=False):
    """Keyword options accepted by ``register`` and forwarded by the ``run`` functions."""

    extension_name: str
    runtime_api: str
    event_types: Sequence[EventType]
    session: requests.Session
    log: logging.Logger


class _APIErrorBody(BaseModel):
    error_type: str = Field(default="", alias="errorType")
    error_message: str = Field(default="", alias="errorMessage")


class Client:
    """Extensions API client bound to one registered extension.

    Created by ``register``; the extension identifier issued at
    registration is attached to every later call.
    """

    def __init__(
        self,
        runtime_api: str,
        *,
        session: requests.Session | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._runtime_api = runtime_api
        self._session = session or requests.Session()
        self._log = log or logger
        self._extension_id = ""
        self._register_response: RegisterResponse | None = None

    @property
    def extension_id(self) -> str:
        return self._extension_id

    @property
    def register_response(self) -> RegisterResponse:
        if self._register_response is None:
            raise RegistrationError("extension is not registered")
        return self._register_response

    @property
    def function_name(self) -> str:
        return self.register_response.function_name

    @property
    def function_version(self) -> str:
        return self.register_response.function_version

    @property
    def handler(self) -> str:
        return self.register_response.handler

    @property
    def account_id(self) -> str:
        """Account ID of the function the extension is registered for."""
        return self.register_response.account_id

    def register(
        self,
        extension_name: str,
        event_types: Sequence[EventType],
        *,
        context: Context | None = None,
    ) -> RegisterResponse:
        """Register the extension and remember the identifier Lambda issues."""
        body = RegisterRequest(events=list(event_types)).model_dump_json()
        self._log.debug("Sending register request", extra={"body": body})

        response = self._do_request(
            "POST",
            self._extension_url("/register"),
            expected_status=200,
            context=context,
            data=body,
            headers={NAME_HEADER: extension_name, ACCEPT_FEATURE_HEADER: "accountId"},
        )
        register_response = self._decode(response, RegisterResponse)

        extension_id = response.headers.get(ID_HEADER, "")
        if not extension_id:
            raise RegistrationError(
                f"could not find extension ID in register response header {ID_HEADER}",
                context={"status_code": response.status_code},
            )

        self._extension_id = extension_id
        self._register_response = register_response
        self._log.debug("Received register response", extra={"response": register_response.model_dump()})
        return register_response

    def next_event(self) -> InvokeEvent | ShutdownEvent:
        """Block while long polling for the next INVOKE or SHUTDOWN event.

        There is no client-side timeout: Lambda holds the request open until
        an event arrives, which can take from milliseconds to many minutes.
        """
        self._log.debug("Requesting event/next")
        response = self._do_request("GET", self._extension_url("/event/next"), expected_status=200, timeout=None)

        try:
            event = next_event_adapter.validate_json(response.content)
        except ValidationError as error:
            raise ResponseDecodeError(f"could not json decode event/next response {response.text}: {error}") from error

        self._log.debug("Received event/next response", extra={"event": event.model_dump()})
        return event

    def report_init_error(
        self, error_type: str, error: BaseException, *, context: Context | None = None
    ) -> ErrorResponse:
        """Report an initialization failure; Lambda then tears down the environment."""
        return self._report_error("/init/error", error_type, error, context)

    def report_exit_error(
        self, error_type: str, error: BaseException, *, context: Context | None = None
    ) -> ErrorResponse:
        """Report an unexpected failure before the extension exits."""
        return self._report_error("/exit/error", error_type, error, context)

    def subscribe_logs(self, request: LogsSubscribeRequest, *, context: Context | None = None) -> None:
        """Subscribe to the Logs API stream."""
        body = request.to_json()
        self._log.debug("Sending logs subscribe request", extra={"body": body})
        self._do_request(
            "PUT",
            f"http://{self._runtime_api}/{LOGS_API_VERSION}/logs",
            expected_status=200,
            context=context,
            data=body,
        )

    def subscribe_telemetry(self, request: TelemetrySubscribeRequest, *, context: Context | None = None) -> None:
        """Subscribe to the Telemetry API stream.

        Lambda rejects a telemetry subscription from a process that already
        subscribed to the Logs API.
        """
        body = request.to_json()
        self._log.debug("Sending telemetry subscribe request", extra={"body": body})
        self._do_request(
            "PUT",
            f"http://{self._runtime_api}/{TELEMETRY_API_VERSION}/telemetry",
            expected_status=200,
            context=context,
            data=body,
        )

    def _report_error(
        self, action: str, error_type: str, error: BaseException, context: Context | None
    ) -> ErrorResponse:
        body = str(error)
        self._log.debug("Reporting error", extra={"action": action, "error_type": error_type, "body": body})
        response = self._do_request(
            "POST",
            self._extension_url(action),
            expected_status=202,
            context=context,
            data=body,
            headers={ERROR_TYPE_HEADER: error_type},
        )
        error_response = self._decode(response, ErrorResponse)
        self._log.debug("Error has been reported", extra={"action": action, "status": error_response.status})
        return error_response

    def _extension_url(self, path: str) -> str:
        return f"http://{self._runtime_api}/{EXTENSION_API_VERSION}/extension{path}"

    def _do_request(
        self,
        method: str,
        url: str,
        *,
        expected_status: int,
        context: Context | None = None,
        data: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        request_headers: dict[str, str] = dict(headers or {})
        if method in _BODY_METHODS:
            request_headers["Content-Type"] = "application/json"
        if self._extension_id:
            request_headers[ID_HEADER] = self._extension_id

        if context is not None:
            context.raise_if_done()
            timeout = context.remaining_seconds()
            if timeout == 0:
                raise DeadlineExceededError("context deadline exceeded")

        response = self._session.request(
            method,
            url,
            data=data.encode() if data is not None else None,
            headers=request_headers,
            timeout=timeout,
        )
        if response.status_code != expected_status:
            raise self._status_error(response)
        return response

    @staticmethod
    def _status_error(response: requests.Response) -> Exception:
        try:
            body = _APIErrorBody.model_validate_json(response.content)
        except ValidationError:
            return UnexpectedStatusError(
                status_code=response.status_code,
                reason=response.reason or "",
                body=response.text,
            )
        return LambdaAPIError(
            status_code=response.status_code,
            error_type=body.error_type,
            error_message=body.error_message,
        )

    @staticmethod
    def _decode[M: BaseModel](response: requests.Response, model: type[M]) -> M:
        try:
            return model.model_validate_json(response.content)
        except ValidationError as error:
            raise ResponseDecodeError(
                f"could not json decode http response {response.text}: {error}"
            ) from error


def register(
    context: Context | None = None,
    *,
    extension_name: str | None = None,
    runtime_api: str | None = None,
    event_types: Sequence[EventType] | None = None,
    session: requests.Session | None = None,
    log: logging.Logger | None = None,
) -> Client:
    """Register with the Lambda Extensions API and return a bound client.

    Registration happens during the environment's init phase. Each call
    sends the event types to receive and the extension name.

    Args:
        context: Optional cancellation scope for the registration call.
        extension_name: Name sent to Lambda. Defaults to the executable's file name.
        runtime_api: Host and port of the runtime API. Defaults to AWS_LAMBDA_RUNTIME_API.
        event_types: Events to receive. Defaults to INVOKE and SHUTDOWN.
        session: HTTP session to use. A new session is created if not provided.
        log: Logger for client diagnostics.

    Returns:
        A client carrying the issued extension identifier.

    Raises:
        RegistrationError: If the runtime API address is unknown or no identifier was issued.
        PlatformError: If Lambda rejected the registration.
    """
    log = log or logger
    runtime_api = runtime_api or get_lambda_environment().aws_lambda_runtime_api
    if not runtime_api:
        error = RegistrationError("could not find environment variable AWS_LAMBDA_RUNTIME_API")
        log.error("Extension registration failed", extra=error.to_log_dict())
        raise error
    log.debug("Using AWS_LAMBDA_RUNTIME_API", extra={"address": runtime_api})

    client = Client(runtime_api, session=session, log=log)
    try:
        client.register(
            extension_name or default_extension_name(),
            event_types if event_types is not None else (EventType.INVOKE, EventType.SHUTDOWN),
            context=context,
        )
    except Exception:
        log.exception("Could not register extension")
        raise

    set_extra_context(extension_id=client.extension_id)
    log.debug("Extension registered", extra={"extension_id": client.extension_id})
    return client
