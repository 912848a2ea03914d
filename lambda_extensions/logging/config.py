"""Logging configuration using Pydantic settings.

Extensions share the function's environment, so the levels and formats of
Lambda's advanced logging controls (``AWS_LAMBDA_LOG_LEVEL`` and
``AWS_LAMBDA_LOG_FORMAT``) apply unless ``LOG_LEVEL`` or ``LOG_FORMAT``
override them for the extension alone.
"""

from enum import StrEnum
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lambda_extensions.config import default_extension_name


class LogLevel(StrEnum):
    """Valid log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(StrEnum):
    """Valid log formats."""

    JSON = "json"
    HUMAN = "human"


# Lambda levels without a logging counterpart.
_LAMBDA_LEVELS = {"TRACE": LogLevel.DEBUG, "WARN": LogLevel.WARNING, "FATAL": LogLevel.CRITICAL}


class LoggingConfig(BaseSettings):
    """Logging configuration loaded from environment variables.

    Attributes:
        log_level: Minimum log level to output.
        log_format: json for CloudWatch, human for a terminal. Lambda's
            ``Text`` format maps to human.
        service_name: Extension identifier for log aggregation. Defaults to
            the extension's executable name.
        include_timestamp: Whether to include timestamp.
        include_location: Whether to include file/function/line info.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        populate_by_name=True,
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        validation_alias=AliasChoices("LOG_LEVEL", "AWS_LAMBDA_LOG_LEVEL"),
    )
    log_format: LogFormat = Field(
        default=LogFormat.JSON,
        validation_alias=AliasChoices("LOG_FORMAT", "AWS_LAMBDA_LOG_FORMAT"),
    )
    service_name: str = Field(default_factory=default_extension_name)
    include_timestamp: bool = Field(default=True)
    include_location: bool = Field(default=False)

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, value: object) -> object:
        """Accept any case and Lambda's TRACE, WARN and FATAL levels."""
        if isinstance(value, str):
            level = value.strip().upper()
            return _LAMBDA_LEVELS.get(level, level)
        return value

    @field_validator("log_format", mode="before")
    @classmethod
    def parse_log_format(cls, value: object) -> object:
        if isinstance(value, str):
            log_format = value.strip().lower()
            return LogFormat.HUMAN if log_format == "text" else log_format
        return value


@lru_cache
def get_logging_config() -> LoggingConfig:
    """Get cached logging configuration instance."""
    return LoggingConfig()
