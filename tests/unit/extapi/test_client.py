"""Tests for the Extensions API client."""

import sys

import pytest
import requests

from lambda_extensions.context import Context, now_ms
from lambda_extensions.exceptions import (
    ContextCancelledError,
    DeadlineExceededError,
    LambdaAPIError,
    PlatformError,
    RegistrationError,
    ResponseDecodeError,
    UnexpectedStatusError,
)
from lambda_extensions.extapi.client import Client, register
from lambda_extensions.extapi.models import EventType, InvokeEvent, ShutdownEvent, ShutdownReason
from lambda_extensions.extapi.subscriptions import LogsSubscribeRequest, TelemetrySubscribeRequest
from lambda_extensions.logging import get_extra_context

REGISTER_PATH = "/2020-01-01/extension/register"


class TestRegister:
    def test_sends_name_and_events(self, lambda_api):
        register(extension_name="my-extension", runtime_api=lambda_api.address)
        request = lambda_api.requests_to(REGISTER_PATH)[0]
        assert request.method == "POST"
        assert request.headers["Lambda-Extension-Name"] == "my-extension"
        assert request.headers["Lambda-Extension-Accept-Feature"] == "accountId"
        assert request.headers["Content-Type"] == "application/json"
        assert request.json() == {"events": ["INVOKE", "SHUTDOWN"]}

    def test_custom_event_types(self, lambda_api):
        register(extension_name="logs", runtime_api=lambda_api.address, event_types=[EventType.SHUTDOWN])
        assert lambda_api.requests_to(REGISTER_PATH)[0].json() == {"events": ["SHUTDOWN"]}

    def test_exposes_registration_metadata(self, lambda_api):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        assert client.extension_id == "ext-1b2c3d"
        assert client.function_name == "my-function"
        assert client.function_version == "$LATEST"
        assert client.handler == "app.handler"
        assert client.account_id == "123456789012"

    def test_binds_extension_id_to_logs(self, lambda_api):
        register(extension_name="my-extension", runtime_api=lambda_api.address)
        assert get_extra_context()["extension_id"] == "ext-1b2c3d"

    def test_reads_runtime_api_from_environment(self, lambda_api, monkeypatch):
        monkeypatch.setenv("AWS_LAMBDA_RUNTIME_API", lambda_api.address)
        client = register(extension_name="my-extension")
        assert client.extension_id == "ext-1b2c3d"

    def test_default_name_is_executable_name(self, lambda_api, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["/opt/extensions/telemetry-forwarder"])
        register(runtime_api=lambda_api.address)
        request = lambda_api.requests_to(REGISTER_PATH)[0]
        assert request.headers["Lambda-Extension-Name"] == "telemetry-forwarder"

    def test_missing_runtime_api(self):
        with pytest.raises(RegistrationError, match="AWS_LAMBDA_RUNTIME_API"):
            register(extension_name="my-extension")

    def test_missing_extension_id(self, lambda_api):
        lambda_api.include_id_header = False
        with pytest.raises(RegistrationError, match="Lambda-Extension-Identifier"):
            register(extension_name="my-extension", runtime_api=lambda_api.address)

    def test_platform_error_body(self, lambda_api):
        lambda_api.register_status = 403
        lambda_api.register_body = b'{"errorType": "Extension.Forbidden", "errorMessage": "not allowed"}'
        with pytest.raises(LambdaAPIError) as exc_info:
            register(extension_name="my-extension", runtime_api=lambda_api.address)
        assert exc_info.value == LambdaAPIError(
            status_code=403, error_type="Extension.Forbidden", error_message="not allowed"
        )

    def test_unstructured_error_body(self, lambda_api):
        lambda_api.register_status = 500
        lambda_api.register_body = b"internal failure"
        with pytest.raises(UnexpectedStatusError) as exc_info:
            register(extension_name="my-extension", runtime_api=lambda_api.address)
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "internal failure"

    def test_undecodable_success_body(self, lambda_api):
        lambda_api.register_body = b"not json"
        with pytest.raises(ResponseDecodeError, match="could not json decode http response not json"):
            register(extension_name="my-extension", runtime_api=lambda_api.address)

    def test_connection_failure_propagates(self):
        with pytest.raises(requests.ConnectionError):
            register(extension_name="my-extension", runtime_api="127.0.0.1:1")

    def test_cancelled_context(self, lambda_api):
        context = Context.background()
        context.cancel()
        with pytest.raises(ContextCancelledError):
            register(context, extension_name="my-extension", runtime_api=lambda_api.address)
        assert lambda_api.requests_to(REGISTER_PATH) == []

    def test_expired_context(self, lambda_api):
        context = Context.background().with_deadline(now_ms() - 1000)
        with pytest.raises(DeadlineExceededError):
            register(context, extension_name="my-extension", runtime_api=lambda_api.address)


class TestUnregisteredClient:
    def test_metadata_unavailable(self):
        client = Client("127.0.0.1:9001")
        assert client.extension_id == ""
        with pytest.raises(RegistrationError):
            _ = client.function_name


class TestNextEvent:
    def test_invoke(self, lambda_api, make_invoke_event):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        lambda_api.next_events.put(make_invoke_event(request_id="request-1", deadline_ms=1700000000000))
        event = client.next_event()
        assert isinstance(event, InvokeEvent)
        assert event.request_id == "request-1"
        assert event.deadline_ms == 1700000000000

    def test_shutdown(self, lambda_api, make_shutdown_event):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        lambda_api.next_events.put(make_shutdown_event(reason="timeout"))
        event = client.next_event()
        assert isinstance(event, ShutdownEvent)
        assert event.shutdown_reason == ShutdownReason.TIMEOUT

    def test_sends_extension_id(self, lambda_api, make_shutdown_event):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        lambda_api.next_events.put(make_shutdown_event())
        client.next_event()
        request = lambda_api.requests_to("/2020-01-01/extension/event/next")[0]
        assert request.method == "GET"
        assert request.headers["Lambda-Extension-Identifier"] == "ext-1b2c3d"
        assert "Content-Type" not in request.headers

    def test_unknown_event_type(self, lambda_api):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        lambda_api.next_events.put((200, b'{"eventType": "RESTORE", "deadlineMs": 1}'))
        with pytest.raises(ResponseDecodeError, match="could not json decode event/next response"):
            client.next_event()

    def test_platform_error(self, lambda_api):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        lambda_api.next_events.put((500, b'{"errorType": "Extension.Unknown", "errorMessage": "boom"}'))
        with pytest.raises(LambdaAPIError) as exc_info:
            client.next_event()
        assert exc_info.value.error_type == "Extension.Unknown"


class TestErrorReports:
    def test_init_error(self, lambda_api):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        response = client.report_init_error("Extension.Init", ValueError("bad config"))
        assert response.status == "OK"
        request = lambda_api.requests_to("/2020-01-01/extension/init/error")[0]
        assert request.headers["Lambda-Extension-Function-Error-Type"] == "Extension.Init"
        assert request.headers["Lambda-Extension-Identifier"] == "ext-1b2c3d"
        assert request.body == b"bad config"

    def test_exit_error(self, lambda_api):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        client.report_exit_error("Extension.Exit", RuntimeError("crashed"))
        request = lambda_api.requests_to("/2020-01-01/extension/exit/error")[0]
        assert request.headers["Lambda-Extension-Function-Error-Type"] == "Extension.Exit"
        assert request.body == b"crashed"

    def test_unexpected_status(self, lambda_api):
        lambda_api.error_report_status = 200
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        with pytest.raises(PlatformError):
            client.report_exit_error("Extension.Exit", RuntimeError("crashed"))


class TestSubscribe:
    def test_logs(self, lambda_api):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        client.subscribe_logs(LogsSubscribeRequest.for_destination("http://sandbox.localdomain:4243"))
        request = lambda_api.requests_to("/2020-08-15/logs")[0]
        assert request.method == "PUT"
        assert request.headers["Lambda-Extension-Identifier"] == "ext-1b2c3d"
        assert request.json()["destination"]["URI"] == "http://sandbox.localdomain:4243"

    def test_telemetry(self, lambda_api):
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        client.subscribe_telemetry(TelemetrySubscribeRequest.for_destination("http://sandbox.localdomain:4243"))
        request = lambda_api.requests_to("/2022-07-01/telemetry")[0]
        assert request.json()["schemaVersion"] == "2022-07-01"

    def test_rejected_subscription(self, lambda_api):
        lambda_api.subscribe_status = 400
        client = register(extension_name="my-extension", runtime_api=lambda_api.address)
        with pytest.raises(UnexpectedStatusError):
            client.subscribe_logs(LogsSubscribeRequest.for_destination("http://sandbox.localdomain:4243"))
