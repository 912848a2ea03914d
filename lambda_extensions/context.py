"""Cancellation scopes and the first-error-wins signal.

A ``Context`` bounds a unit of work: it is cancelled explicitly, by its
parent, or when its deadline passes. Completion is exposed as a
``concurrent.futures.Future`` so it can be raced against other futures.

Usage:
    with Context.background().with_deadline(event.deadline_ms) as context:
        handler(context, event)
"""

import threading
import time
from concurrent.futures import Future, InvalidStateError
from typing import Self

from lambda_extensions.exceptions import ContextCancelledError, ContextError, DeadlineExceededError


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class Context:
    """Cancellation scope with an optional absolute deadline in epoch milliseconds."""

    def __init__(self, parent: "Context | None" = None, deadline_ms: int | None = None) -> None:
        self._parent = parent
        self._lock = threading.Lock()
        self._children: set[Context] = set()
        self._done: Future[ContextError] = Future()
        self._timer: threading.Timer | None = None

        if parent is not None and parent.deadline_ms is not None:
            deadline_ms = parent.deadline_ms if deadline_ms is None else min(deadline_ms, parent.deadline_ms)
        self._deadline_ms = deadline_ms

        if parent is not None:
            parent._attach(self)
        if deadline_ms is not None:
            self._arm_deadline(deadline_ms)

    @classmethod
    def background(cls) -> "Context":
        """Root context that is never cancelled unless asked to."""
        return cls()

    @property
    def deadline_ms(self) -> int | None:
        return self._deadline_ms

    @property
    def done_future(self) -> Future[ContextError]:
        """Future resolved with the cancellation cause."""
        return self._done

    @property
    def error(self) -> ContextError | None:
        """Why the context ended, or None while it is still live."""
        if not self._done.done():
            return None
        return self._done.result()

    def done(self) -> bool:
        return self._done.done()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the context ends or ``timeout`` seconds pass.

        Returns:
            True if the context ended.
        """
        try:
            self._done.result(timeout=timeout)
        except TimeoutError:
            return False
        return True

    def raise_if_done(self) -> None:
        """Raise the cancellation cause if the context has ended."""
        error = self.error
        if error is not None:
            raise error

    def remaining_seconds(self) -> float | None:
        """Seconds until the deadline, clamped at zero.

        None when there is no deadline, or when it is too far away to be
        used as a timeout.
        """
        if self._deadline_ms is None:
            return None
        remaining = (self._deadline_ms - now_ms()) / 1000
        if remaining > threading.TIMEOUT_MAX:
            return None
        return max(remaining, 0.0)

    def cancel(self, cause: ContextError | None = None) -> bool:
        """Cancel this context and all of its children.

        Only the first call has an effect.

        Returns:
            True if this call cancelled the context.
        """
        if cause is None:
            cause = ContextCancelledError("context canceled")

        with self._lock:
            try:
                self._done.set_result(cause)
            except InvalidStateError:
                return False
            children = list(self._children)
            self._children.clear()
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        for child in children:
            child.cancel(cause)
        if self._parent is not None:
            self._parent._detach(self)
        return True

    def with_cancel(self) -> "Context":
        """Derive a child that can be cancelled on its own."""
        return Context(self)

    def with_deadline(self, deadline_ms: int) -> "Context":
        """Derive a child that ends at ``deadline_ms`` or when this context does."""
        return Context(self, deadline_ms)

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a child that ends ``seconds`` from now."""
        return Context(self, now_ms() + int(seconds * 1000))

    def _attach(self, child: "Context") -> None:
        with self._lock:
            if not self._done.done():
                self._children.add(child)
                return
        child.cancel(self._done.result())

    def _detach(self, child: "Context") -> None:
        with self._lock:
            self._children.discard(child)

    def _arm_deadline(self, deadline_ms: int) -> None:
        remaining = (deadline_ms - now_ms()) / 1000
        if remaining <= 0:
            self._expire()
            return
        if remaining > threading.TIMEOUT_MAX:
            return

        timer = threading.Timer(remaining, self._expire)
        timer.daemon = True
        with self._lock:
            if self._done.done():
                return
            self._timer = timer
        timer.start()

    def _expire(self) -> None:
        self.cancel(DeadlineExceededError("context deadline exceeded"))

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

    def __repr__(self) -> str:
        return f"Context(deadline_ms={self._deadline_ms!r}, error={self.error!r})"


class ErrorSignal:
    """Single-assignment error cell; the first reported error wins."""

    def __init__(self) -> None:
        self._future: Future[BaseException] = Future()

    @property
    def future(self) -> Future[BaseException]:
        """Future resolved with the first reported error."""
        return self._future

    @property
    def error(self) -> BaseException | None:
        if not self._future.done():
            return None
        return self._future.result()

    def is_set(self) -> bool:
        return self._future.done()

    def report(self, error: BaseException) -> bool:
        """Record ``error`` unless another error was already reported.

        Never blocks.

        Returns:
            True if ``error`` was the first one reported.
        """
        try:
            self._future.set_result(error)
        except InvalidStateError:
            return False
        return True
