"""Subscription request bodies for the Logs and Telemetry APIs.

Both APIs accept the same shape: which record types to send, how to buffer
them, and where to push them. Optional fields are left out of the JSON
body when unset.
"""

from enum import StrEnum
from typing import Literal, Self

from pydantic import Field

from lambda_extensions.extapi.models import CamelModel


class SubscriptionType(StrEnum):
    """Record sources a subscription can select."""

    PLATFORM = "platform"
    FUNCTION = "function"
    EXTENSION = "extension"


class HttpMethod(StrEnum):
    """HTTP methods the Logs API can push with."""

    POST = "POST"
    PUT = "PUT"


LOGS_SCHEMA_VERSION = "2021-03-18"
TELEMETRY_SCHEMA_VERSION = "2022-07-01"


class BufferingConfig(CamelModel):
    """Buffering thresholds; a batch is pushed when any one is reached.

    Attributes:
        max_items: Maximum number of records buffered in memory.
        max_bytes: Maximum size in bytes of the records buffered in memory.
        timeout_ms: Maximum time in milliseconds to buffer a batch.
    """

    max_items: int = Field(default=10_000, ge=1_000, le=10_000)
    max_bytes: int = Field(default=262_144, ge=262_144, le=1_048_576)
    timeout_ms: int = Field(default=1_000, ge=25, le=30_000)


class LogsDestination(CamelModel):
    """Where the Logs API pushes batches."""

    protocol: Literal["HTTP"] = Field(default="HTTP")
    uri: str = Field(alias="URI")
    method: HttpMethod | None = None
    encoding: Literal["JSON"] | None = None


class LogsSubscribeRequest(CamelModel):
    """Body of PUT /2020-08-15/logs."""

    schema_version: Literal["2021-03-18"] | None = None
    types: list[SubscriptionType]
    buffering: BufferingConfig | None = None
    destination: LogsDestination

    @classmethod
    def for_destination(
        cls,
        url: str,
        types: list[SubscriptionType] | None = None,
        buffering: BufferingConfig | None = None,
    ) -> Self:
        """Build a request pushing to ``url``.

        Subscribes to platform, function and extension logs when ``types``
        is empty.
        """
        if not types:
            types = [SubscriptionType.PLATFORM, SubscriptionType.FUNCTION, SubscriptionType.EXTENSION]
        return cls(types=types, buffering=buffering, destination=LogsDestination(uri=url))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class TelemetryDestination(CamelModel):
    """Where the Telemetry API pushes batches."""

    protocol: Literal["HTTP"] = Field(default="HTTP")
    uri: str = Field(alias="URI")


class TelemetrySubscribeRequest(CamelModel):
    """Body of PUT /2022-07-01/telemetry."""

    schema_version: Literal["2022-07-01"] = Field(default=TELEMETRY_SCHEMA_VERSION)
    types: list[SubscriptionType]
    buffering: BufferingConfig | None = None
    destination: TelemetryDestination

    @classmethod
    def for_destination(
        cls,
        url: str,
        types: list[SubscriptionType] | None = None,
        buffering: BufferingConfig | None = None,
    ) -> Self:
        """Build a request pushing to ``url``.

        Subscribes to platform and function telemetry when ``types`` is
        empty. Extension logs are left out so an extension that logs every
        record it receives does not feed on itself.
        """
        if not types:
            types = [SubscriptionType.PLATFORM, SubscriptionType.FUNCTION]
        return cls(types=types, buffering=buffering, destination=TelemetryDestination(uri=url))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
