"""Logging setup for an extension process.

Lambda forwards whatever an extension writes to stdout or stderr to the
function's CloudWatch log group, one line per record.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import TextIO

from lambda_extensions.logging.config import LogFormat, LoggingConfig, get_logging_config
from lambda_extensions.logging.formatters import HumanFormatter, JSONFormatter

# Loggers that are chatty at DEBUG without saying anything about the extension.
QUIET_LOGGERS = ("urllib3",)


@dataclass
class LoggingState:
    """Internal state for logging configuration."""

    configured: bool = field(default=False)


_state = LoggingState()


def setup_logging(
    config: LoggingConfig | None = None,
    stream: TextIO | None = None,
    *,
    force: bool = False,
) -> None:
    """Install one stream handler on the root logger.

    The library itself never calls this; an extension's entry point does,
    before calling one of the ``run`` functions. Human output is colored
    only when the stream is a terminal, never in CloudWatch.

    Args:
        config: Optional LoggingConfig instance. Loads from environment if not provided.
        stream: Output stream for logs. Defaults to sys.stdout.
        force: If True, reconfigure even if already configured.
    """
    if _state.configured and not force:
        return

    if config is None:
        config = get_logging_config()
    output = stream or sys.stdout

    root_logger = logging.getLogger()
    root_logger.setLevel(config.log_level.value)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if config.log_format == LogFormat.JSON:
        formatter: logging.Formatter = JSONFormatter(
            service_name=config.service_name,
            include_timestamp=config.include_timestamp,
            include_location=config.include_location,
        )
    else:
        formatter = HumanFormatter(use_colors=output.isatty())

    handler = logging.StreamHandler(output)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root_logger.level, logging.WARNING))

    _state.configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Args:
        name: Logger name, typically __name__ of the calling module.
    """
    return logging.getLogger(name)


def reset_logging() -> None:
    """Reset logging configuration. Primarily for testing."""
    _state.configured = False

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)

    get_logging_config.cache_clear()
