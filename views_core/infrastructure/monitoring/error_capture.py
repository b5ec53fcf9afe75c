#!/usr/bin/env python3
"""
Error Capture Sources

Global error hooks for the debug agent, expressed as explicit sources that
can be registered and unregistered instead of patching output streams:

- ExceptHookSource:    uncaught exceptions (main thread and worker threads)
- AsyncioErrorSource:  exceptions the event loop could not deliver to anyone
- LoggingErrorSource:  WARNING/ERROR records on a stdlib logger
- WarningsErrorSource: warnings.warn() output
- ManualErrorSource:   explicit emit(), for embedding code and tests

Every source forwards to a sink with the signature of DebugAgent.log() and
then hands the event to whatever was installed before it, so original
output is never suppressed.

Author: Senior Solution Architect
Date: 2025-12-13
"""

import asyncio
import logging
import sys
import threading
import traceback
import warnings
from abc import ABC, abstractmethod
from typing import Any, Protocol

from views_core.core.config.constants import LogCategory, LogLevel
from views_core.core.exceptions.diagnostics import DiagnosticsError


class ErrorSink(Protocol):
    def __call__(
        self,
        level: str,
        category: str,
        message: str,
        data: Any = None,
        stack: str | None = None,
    ) -> Any:
        ...


def _format_stack(exc: BaseException | None) -> str | None:
    if exc is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class ErrorSource(ABC):
    """
    A place errors can come from.

    register() starts forwarding into the sink; unregister() restores
    whatever was there before. Both are idempotent.
    """

    name: str = "error-source"

    def __init__(self):
        self._sink: ErrorSink | None = None

    @property
    def is_registered(self) -> bool:
        return self._sink is not None

    def register(self, sink: ErrorSink) -> None:
        if self._sink is not None:
            return
        self._install()
        self._sink = sink

    def unregister(self) -> None:
        if self._sink is None:
            return
        self._uninstall()
        self._sink = None

    def _forward(self, level: str, category: str, message: str, data: Any = None, stack: str | None = None) -> None:
        sink = self._sink
        if sink is not None:
            sink(level, category, message, data, stack)

    @abstractmethod
    def _install(self) -> None:
        ...

    @abstractmethod
    def _uninstall(self) -> None:
        ...


class ExceptHookSource(ErrorSource):
    """Wraps sys.excepthook and threading.excepthook."""

    name = "excepthook"

    def __init__(self):
        super().__init__()
        self._previous_excepthook = None
        self._previous_threading_excepthook = None

    def _install(self) -> None:
        self._previous_excepthook = sys.excepthook
        self._previous_threading_excepthook = threading.excepthook
        sys.excepthook = self._excepthook
        threading.excepthook = self._threading_excepthook

    def _uninstall(self) -> None:
        # Only restore hooks nobody replaced after us
        if sys.excepthook == self._excepthook:
            sys.excepthook = self._previous_excepthook
        if threading.excepthook == self._threading_excepthook:
            threading.excepthook = self._previous_threading_excepthook

    def _excepthook(self, exc_type, exc_value, exc_tb) -> None:
        try:
            if not issubclass(exc_type, KeyboardInterrupt):
                self._forward(
                    LogLevel.ERROR.value,
                    LogCategory.RUNTIME.value,
                    str(exc_value) or exc_type.__name__,
                    {"exception_type": exc_type.__name__},
                    "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
                )
        finally:
            self._previous_excepthook(exc_type, exc_value, exc_tb)

    def _threading_excepthook(self, args) -> None:
        try:
            if args.exc_type is not SystemExit:
                self._forward(
                    LogLevel.ERROR.value,
                    LogCategory.RUNTIME.value,
                    str(args.exc_value) or args.exc_type.__name__,
                    {
                        "exception_type": args.exc_type.__name__,
                        "thread": args.thread.name if args.thread else None,
                    },
                    "".join(traceback.format_exception(args.exc_type, args.exc_value, args.exc_traceback)),
                )
        finally:
            self._previous_threading_excepthook(args)


class AsyncioErrorSource(ErrorSource):
    """
    Event loop exception handler.

    Receives what asyncio reports through call_exception_handler(), most
    notably "Task exception was never retrieved".

    Requires a loop: pass one explicitly or register from inside a
    running loop.
    """

    name = "asyncio"

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        super().__init__()
        self._loop = loop
        self._previous_handler = None

    def _install(self) -> None:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise DiagnosticsError.from_exception(
                    e, "AsyncioErrorSource needs an event loop", source=self.name
                )
        self._previous_handler = self._loop.get_exception_handler()
        self._loop.set_exception_handler(self._handle)

    def _uninstall(self) -> None:
        if self._loop.get_exception_handler() == self._handle:
            self._loop.set_exception_handler(self._previous_handler)

    def _handle(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        try:
            self._forward(
                LogLevel.ERROR.value,
                LogCategory.ASYNC.value,
                context.get("message") or "Unhandled exception in event loop",
                {"reason": str(exc) if exc is not None else None},
                _format_stack(exc),
            )
        finally:
            if self._previous_handler is not None:
                self._previous_handler(loop, context)
            else:
                loop.default_exception_handler(context)


class _CaptureHandler(logging.Handler):
    def __init__(self, source: "LoggingErrorSource", level: int):
        super().__init__(level=level)
        self._source = source

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._source._capture(record)
        except Exception:
            self.handleError(record)


class LoggingErrorSource(ErrorSource):
    """
    Captures WARNING and ERROR records from a stdlib logger (root by default).

    The handler is added next to the existing ones, so their output is
    untouched. Records produced while the sink itself is running are dropped
    to avoid feedback loops.
    """

    name = "logging"

    def __init__(self, logger_name: str | None = None, level: int = logging.WARNING):
        super().__init__()
        self._logger = logging.getLogger(logger_name)
        self._handler = _CaptureHandler(self, level)
        self._local = threading.local()

    def _install(self) -> None:
        self._logger.addHandler(self._handler)

    def _uninstall(self) -> None:
        self._logger.removeHandler(self._handler)

    def _capture(self, record: logging.LogRecord) -> None:
        if getattr(self._local, "active", False):
            return

        self._local.active = True
        try:
            level = LogLevel.ERROR if record.levelno >= logging.ERROR else LogLevel.WARN
            stack = None
            if record.exc_info and record.exc_info[1] is not None:
                stack = _format_stack(record.exc_info[1])
            self._forward(
                level.value,
                LogCategory.CONSOLE.value,
                record.getMessage(),
                {"logger": record.name},
                stack,
            )
        finally:
            self._local.active = False


class WarningsErrorSource(ErrorSource):
    """Wraps warnings.showwarning; the original display still happens."""

    name = "warnings"

    def __init__(self):
        super().__init__()
        self._previous_showwarning = None

    def _install(self) -> None:
        self._previous_showwarning = warnings.showwarning
        warnings.showwarning = self._showwarning

    def _uninstall(self) -> None:
        if warnings.showwarning == self._showwarning:
            warnings.showwarning = self._previous_showwarning

    def _showwarning(self, message, category, filename, lineno, file=None, line=None) -> None:
        try:
            self._forward(
                LogLevel.WARN.value,
                LogCategory.WARNING.value,
                str(message),
                {"category": category.__name__, "filename": filename, "lineno": lineno},
            )
        finally:
            self._previous_showwarning(message, category, filename, lineno, file, line)


class ManualErrorSource(ErrorSource):
    """
    Source driven by explicit emit() calls.

    Lets embedding code and tests inject synthetic errors without touching
    any global hook.
    """

    name = "manual"

    def _install(self) -> None:
        pass

    def _uninstall(self) -> None:
        pass

    def emit(
        self,
        message: str,
        level: str = LogLevel.ERROR.value,
        category: str = LogCategory.RUNTIME.value,
        data: Any = None,
        error: BaseException | None = None,
    ) -> bool:
        """
        Forward one event. Returns False when no sink is registered.
        """
        if not self.is_registered:
            return False
        self._forward(level, category, message, data, _format_stack(error))
        return True


def default_error_sources(loop: asyncio.AbstractEventLoop | None = None) -> list[ErrorSource]:
    """
    The hook set installed at startup.

    The asyncio source is included only when a loop is given or running.
    """
    sources: list[ErrorSource] = [
        ExceptHookSource(),
        LoggingErrorSource(),
        WarningsErrorSource(),
    ]

    if loop is None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
    if loop is not None:
        sources.append(AsyncioErrorSource(loop))

    return sources
