"""Lifecycle run-loop driving an ``Extension`` through the Extensions API.

``run`` registers the extension, calls ``init``, then polls for events until
Lambda sends SHUTDOWN or something fails, and finally calls ``shutdown``.
Every failure from a callback or from the API is reported to Lambda before
``run`` raises it.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, wait
from typing import Protocol, Unpack

from lambda_extensions.context import Context, ErrorSignal
from lambda_extensions.exceptions import ExtensionInitError, ExtensionLoopError, ExtensionShutdownError
from lambda_extensions.extapi.client import Client, ClientOptions, register
from lambda_extensions.extapi.models import ErrorResponse, InvokeEvent, ShutdownEvent, ShutdownReason
from lambda_extensions.logging import bind_correlation_id

logger = logging.getLogger(__name__)

INIT_ERROR_TYPE = "Extension.Init"
EXIT_ERROR_TYPE = "Extension.Exit"


class Extension(Protocol):
    """Callbacks driven by ``run``.

    ``error_signal`` lets an extension stop the event loop from its own
    background threads: the first error reported on it ends the loop.
    """

    @property
    def error_signal(self) -> ErrorSignal: ...

    def init(self, context: Context, client: Client) -> None:
        """Called once after registration.

        A failure is reported to Lambda as an init error and the environment
        is torn down.
        """
        ...

    def handle_invoke_event(self, context: Context, event: InvokeEvent) -> None:
        """Called for every INVOKE event; ``context`` ends at the invocation deadline."""
        ...

    def shutdown(self, context: Context, reason: ShutdownReason, error: BaseException | None) -> None:
        """Called once before ``run`` returns.

        ``context`` ends at the shutdown deadline when Lambda sent SHUTDOWN.
        ``error`` is the failure that ended the event loop, if any.
        """
        ...


def run(extension: Extension, context: Context | None = None, **client_options: Unpack[ClientOptions]) -> None:
    """Register ``extension`` and drive it until the environment shuts down.

    Args:
        extension: Callbacks to drive.
        context: Cancelling it stops the event loop. Defaults to a background context.
        **client_options: Forwarded to ``register``.

    Raises:
        RegistrationError: If registration failed; no callback was called.
        ExtensionInitError: If ``extension.init`` failed.
        ExtensionLoopError: If polling failed, the invoke handler failed, or an error was signaled.
        ExtensionShutdownError: If only ``extension.shutdown`` failed.
    """
    if context is None:
        context = Context.background()
    log = client_options.get("log") or logger

    client = register(context, **client_options)

    log.debug("Calling Extension.init")
    try:
        extension.init(context, client)
    except Exception as init_error:
        log.exception("Extension.init failed")
        _report(log, client.report_init_error, INIT_ERROR_TYPE, init_error, context)
        log.debug("Calling Extension.shutdown")
        try:
            extension.shutdown(context, ShutdownReason.EXTENSION_ERROR, init_error)
        except Exception:
            log.exception("Extension.shutdown failed")
        raise ExtensionInitError(f"extension init failed: {init_error}") from init_error

    log.debug("Extension.init completed, starting event loop")
    shutdown_event: ShutdownEvent | None = None
    loop_error: ExtensionLoopError | None = None
    try:
        shutdown_event = _loop(context, client, extension, log)
    except ExtensionLoopError as error:
        log.error("Event loop failed", extra=error.to_log_dict())
        loop_error = error

    shutdown_error = _shutdown(context, client, extension, shutdown_event, loop_error, log)
    if loop_error is not None:
        raise loop_error
    if shutdown_error is not None:
        raise shutdown_error


def _loop(context: Context, client: Client, extension: Extension, log: logging.Logger) -> ShutdownEvent:
    """Poll for events until SHUTDOWN arrives.

    Each poll runs in its own daemon thread so that the error signal and
    ``context`` can end the loop while Lambda holds the poll open. A poll
    thread left behind keeps running until its request returns.
    """
    signal = extension.error_signal
    try:
        while True:
            poll = _start_poll(client, log)
            wait([poll, context.done_future, signal.future], return_when=FIRST_COMPLETED)

            signaled = signal.error
            if signaled is not None:
                raise ExtensionLoopError(f"extension loop failed: error signaled: {signaled}") from signaled
            if context.done():
                raise ExtensionLoopError(
                    f"extension loop failed: context cancelled before next event: {context.error}"
                ) from context.error

            try:
                event = poll.result()
            except Exception as error:
                raise ExtensionLoopError(f"extension loop failed: next event failed: {error}") from error

            if isinstance(event, ShutdownEvent):
                log.info(
                    "Shutdown event received",
                    extra={"shutdown_reason": event.shutdown_reason, "deadline_ms": event.deadline_ms},
                )
                return event

            _handle_invoke(context, extension, event, log)
    finally:
        log.debug("Event loop stopped")


def _handle_invoke(context: Context, extension: Extension, event: InvokeEvent, log: logging.Logger) -> None:
    with bind_correlation_id(event.request_id), context.with_deadline(event.deadline_ms) as invoke_context:
        log.debug("Calling Extension.handle_invoke_event", extra={"deadline_ms": event.deadline_ms})
        try:
            extension.handle_invoke_event(invoke_context, event)
        except Exception as error:
            raise ExtensionLoopError(f"extension loop failed: invoke handler failed: {error}") from error


def _start_poll(client: Client, log: logging.Logger) -> Future[InvokeEvent | ShutdownEvent]:
    future: Future[InvokeEvent | ShutdownEvent] = Future()

    def poll() -> None:
        log.debug("Calling Client.next_event")
        try:
            event = client.next_event()
        except Exception as error:
            future.set_exception(error)
        else:
            future.set_result(event)

    threading.Thread(target=poll, name="lambda-extension-poll", daemon=True).start()
    return future


def _shutdown(
    context: Context,
    client: Client,
    extension: Extension,
    event: ShutdownEvent | None,
    loop_error: ExtensionLoopError | None,
    log: logging.Logger,
) -> ExtensionShutdownError | None:
    reason = ShutdownReason.EXTENSION_ERROR
    shutdown_context = context.with_cancel()
    if event is not None:
        reason = event.shutdown_reason
        shutdown_context = context.with_deadline(event.deadline_ms)

    with shutdown_context:
        log.debug("Calling Extension.shutdown", extra={"shutdown_reason": reason})
        shutdown_error: ExtensionShutdownError | None = None
        try:
            extension.shutdown(shutdown_context, reason, loop_error)
        except Exception as error:
            shutdown_error = ExtensionShutdownError(f"extension shutdown failed: {error}")
            shutdown_error.__cause__ = error
            log.error("Extension.shutdown failed", extra=shutdown_error.to_log_dict(), exc_info=error)

        exit_error = loop_error if loop_error is not None else shutdown_error
        if exit_error is not None:
            _report(log, client.report_exit_error, EXIT_ERROR_TYPE, exit_error, shutdown_context)

    return shutdown_error


def _report(
    log: logging.Logger,
    report: Callable[..., ErrorResponse],
    error_type: str,
    error: BaseException,
    context: Context,
) -> None:
    """Report ``error`` to Lambda; a failed report is only logged."""
    log.debug("Reporting error to Lambda", extra={"error_type": error_type})
    try:
        report(error_type, error, context=context)
    except Exception:
        log.exception("Could not report error to Lambda", extra={"error_type": error_type})
