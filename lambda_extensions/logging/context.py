"""Context variables for request-scoped logging data.

Uses Python's contextvars, so values set on the run-loop thread do not leak
into the receiver's HTTP handler or processing threads.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

_extra_context: ContextVar[dict[str, Any] | None] = ContextVar("extra_context", default=None)


def get_correlation_id() -> str:
    """Get the current correlation ID.

    Returns:
        The correlation ID for the current context.
    """
    return correlation_id.get()


def set_correlation_id(value: str) -> None:
    """Set the correlation ID for the current context.

    Args:
        value: The correlation ID.
    """
    correlation_id.set(value)


@contextmanager
def bind_correlation_id(value: str) -> Iterator[None]:
    """Set the correlation ID for the duration of a block.

    Args:
        value: The correlation ID, typically an invocation request ID.
    """
    token = correlation_id.set(value)
    try:
        yield
    finally:
        correlation_id.reset(token)


def get_extra_context() -> dict[str, Any]:
    """Get the current extra context.

    Returns:
        Dictionary of extra context fields.
    """
    context = _extra_context.get()
    if context is None:
        return {}
    return context.copy()


def set_extra_context(**kwargs: Any) -> None:
    """Set additional context fields to include in all log messages.

    Args:
        **kwargs: Key-value pairs to include in log messages.
    """
    current = _extra_context.get()
    current = {} if current is None else current.copy()
    current.update(kwargs)
    _extra_context.set(current)


def clear_context() -> None:
    """Clear all context (correlation ID and extra context)."""
    correlation_id.set("")
    _extra_context.set(None)
