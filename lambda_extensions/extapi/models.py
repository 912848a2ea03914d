"""Extensions API wire models."""

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class EventType(StrEnum):
    """Lifecycle events an extension can register for."""

    INVOKE = "INVOKE"
    SHUTDOWN = "SHUTDOWN"


class ShutdownReason(StrEnum):
    """Why the execution environment is shutting down."""

    SPINDOWN = "spindown"
    TIMEOUT = "timeout"
    FAILURE = "failure"
    # Never sent by Lambda. Used when an extension callback or API call fails.
    EXTENSION_ERROR = "extension_error"


class CamelModel(BaseModel):
    """Base model for camelCase JSON bodies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Body of POST /extension/register."""

    events: list[EventType]


class RegisterResponse(CamelModel):
    """Registration metadata returned by POST /extension/register."""

    function_name: str
    function_version: str
    handler: str
    account_id: str = Field(default="")


class Tracing(CamelModel):
    """X-Ray tracing context of an invocation."""

    type: str = Field(default="")
    value: str = Field(default="")


class InvokeEvent(CamelModel):
    """An invocation of the function; ``deadline_ms`` is when it times out."""

    event_type: Literal["INVOKE"]
    deadline_ms: int
    request_id: str
    invoked_function_arn: str = Field(default="")
    tracing: Tracing = Field(default_factory=Tracing)


class ShutdownEvent(CamelModel):
    """Terminal event; ``deadline_ms`` bounds the shutdown grace period."""

    event_type: Literal["SHUTDOWN"]
    shutdown_reason: ShutdownReason
    deadline_ms: int


NextEvent = Annotated[InvokeEvent | ShutdownEvent, Field(discriminator="event_type")]

next_event_adapter: TypeAdapter[InvokeEvent | ShutdownEvent] = TypeAdapter(NextEvent)


class ErrorResponse(CamelModel):
    """Body returned by the init/error and exit/error endpoints."""

    status: str = Field(default="")
