"""Structured logging for Lambda extensions.

Usage:
    from lambda_extensions.logging import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Subscribed to telemetry", extra={"destination": "http://sandbox.localdomain:4243"})
"""

from lambda_extensions.logging.config import LogFormat, LoggingConfig, LogLevel
from lambda_extensions.logging.context import (
    bind_correlation_id,
    clear_context,
    correlation_id,
    get_correlation_id,
    get_extra_context,
    set_correlation_id,
    set_extra_context,
)
from lambda_extensions.logging.formatters import HumanFormatter, JSONFormatter
from lambda_extensions.logging.logger import get_logger, reset_logging, setup_logging

__all__ = [
    "HumanFormatter",
    "JSONFormatter",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "bind_correlation_id",
    "clear_context",
    "correlation_id",
    "get_correlation_id",
    "get_extra_context",
    "get_logger",
    "reset_logging",
    "set_correlation_id",
    "set_extra_context",
    "setup_logging",
]
