"""Tests for Extensions API wire models."""

import json

import pytest
from pydantic import ValidationError

from lambda_extensions.extapi.models import (
    ErrorResponse,
    EventType,
    InvokeEvent,
    RegisterRequest,
    RegisterResponse,
    ShutdownEvent,
    ShutdownReason,
    next_event_adapter,
)

MAX_DEADLINE_MS = 9223372036854775807


class TestRegisterRequest:
    def test_serializes_event_names(self):
        request = RegisterRequest(events=[EventType.INVOKE, EventType.SHUTDOWN])
        assert json.loads(request.model_dump_json()) == {"events": ["INVOKE", "SHUTDOWN"]}


class TestRegisterResponse:
    def test_decodes_camel_case(self):
        response = RegisterResponse.model_validate_json(
            '{"functionName": "my-function", "functionVersion": "$LATEST", '
            '"handler": "app.handler", "accountId": "123456789012"}'
        )
        assert response.function_name == "my-function"
        assert response.function_version == "$LATEST"
        assert response.handler == "app.handler"
        assert response.account_id == "123456789012"

    def test_account_id_optional(self):
        response = RegisterResponse.model_validate(
            {"functionName": "f", "functionVersion": "1", "handler": "h"}
        )
        assert response.account_id == ""


class TestNextEvent:
    def test_invoke_event(self):
        event = next_event_adapter.validate_json(
            json.dumps(
                {
                    "eventType": "INVOKE",
                    "deadlineMs": MAX_DEADLINE_MS,
                    "requestId": "3da1f2dc-3222-475e-9205-e2e6c6bfa3bd",
                    "invokedFunctionArn": "arn:aws:lambda:us-east-1:123456789012:function:my-function",
                    "tracing": {"type": "X-Amzn-Trace-Id", "value": "Root=1-abc"},
                }
            )
        )
        assert isinstance(event, InvokeEvent)
        assert event.deadline_ms == MAX_DEADLINE_MS
        assert event.request_id == "3da1f2dc-3222-475e-9205-e2e6c6bfa3bd"
        assert event.tracing.type == "X-Amzn-Trace-Id"

    def test_invoke_event_without_tracing(self):
        event = next_event_adapter.validate_python(
            {"eventType": "INVOKE", "deadlineMs": 1, "requestId": "r"}
        )
        assert isinstance(event, InvokeEvent)
        assert event.tracing.value == ""

    def test_shutdown_event(self):
        event = next_event_adapter.validate_json(
            '{"eventType": "SHUTDOWN", "shutdownReason": "timeout", "deadlineMs": 1700000000000}'
        )
        assert isinstance(event, ShutdownEvent)
        assert event.shutdown_reason == ShutdownReason.TIMEOUT
        assert event.deadline_ms == 1700000000000

    def test_unknown_event_type_rejected(self):
        with pytest.raises(ValidationError):
            next_event_adapter.validate_json('{"eventType": "RESTORE", "deadlineMs": 1}')

    def test_unknown_shutdown_reason_rejected(self):
        with pytest.raises(ValidationError):
            next_event_adapter.validate_json(
                '{"eventType": "SHUTDOWN", "shutdownReason": "bored", "deadlineMs": 1}'
            )


class TestShutdownReason:
    def test_extension_error_value(self):
        assert ShutdownReason.EXTENSION_ERROR.value == "extension_error"

    def test_spindown_value(self):
        assert ShutdownReason.SPINDOWN.value == "spindown"


class TestErrorResponse:
    def test_decodes_status(self):
        assert ErrorResponse.model_validate_json('{"status": "OK"}').status == "OK"
