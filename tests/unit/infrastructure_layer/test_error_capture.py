"""
Unit Tests for Error Capture Sources

Tests that every source forwards to its sink, chains to what was installed
before it and restores the original hook on unregister.
"""

import asyncio
import logging
import sys
import threading
import warnings
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from views_core.core.exceptions import DiagnosticsError
from views_core.infrastructure.monitoring import (
    AsyncioErrorSource,
    DebugAgent,
    ExceptHookSource,
    LoggingErrorSource,
    ManualErrorSource,
    WarningsErrorSource,
    default_error_sources,
)


@pytest.mark.unit
class TestExceptHookSource:
    """Test sys.excepthook / threading.excepthook wrapping."""

    def test_uncaught_exception_forwarded_and_chained(self):
        previous = MagicMock()
        sink = MagicMock()
        error = ValueError("bad input")

        with patch.object(sys, "excepthook", previous):
            source = ExceptHookSource()
            source.register(sink)
            sys.excepthook(ValueError, error, None)
            source.unregister()

            assert sys.excepthook is previous

        level, category, message, data, stack = sink.call_args.args
        assert (level, category, message) == ("error", "runtime", "bad input")
        assert data == {"exception_type": "ValueError"}
        assert "ValueError: bad input" in stack
        previous.assert_called_once_with(ValueError, error, None)

    def test_keyboard_interrupt_not_captured(self):
        sink = MagicMock()

        with patch.object(sys, "excepthook", MagicMock()):
            source = ExceptHookSource()
            source.register(sink)
            sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)
            source.unregister()

        sink.assert_not_called()

    def test_thread_exception_forwarded(self):
        previous = MagicMock()
        sink = MagicMock()
        thread = threading.Thread(name="worker-1")
        args = SimpleNamespace(
            exc_type=RuntimeError,
            exc_value=RuntimeError("worker died"),
            exc_traceback=None,
            thread=thread,
        )

        with patch.object(threading, "excepthook", previous), patch.object(sys, "excepthook", MagicMock()):
            source = ExceptHookSource()
            source.register(sink)
            threading.excepthook(args)
            source.unregister()

            assert threading.excepthook is previous

        _, category, message, data, _ = sink.call_args.args
        assert category == "runtime"
        assert message == "worker died"
        assert data["thread"] == "worker-1"
        previous.assert_called_once_with(args)

    def test_register_is_idempotent(self):
        previous = MagicMock()

        with patch.object(sys, "excepthook", previous), patch.object(threading, "excepthook", MagicMock()):
            source = ExceptHookSource()
            source.register(MagicMock())
            source.register(MagicMock())
            source.unregister()

            assert sys.excepthook is previous


@pytest.mark.unit
class TestAsyncioErrorSource:
    """Test the event loop exception handler."""

    @pytest.mark.asyncio
    async def test_loop_exception_forwarded(self):
        loop = asyncio.get_running_loop()
        previous = MagicMock()
        loop.set_exception_handler(previous)
        sink = MagicMock()

        source = AsyncioErrorSource()
        source.register(sink)
        context = {"message": "Task exception was never retrieved", "exception": RuntimeError("lost")}
        loop.call_exception_handler(context)
        source.unregister()

        level, category, message, data, stack = sink.call_args.args
        assert (level, category) == ("error", "async")
        assert message == "Task exception was never retrieved"
        assert data == {"reason": "lost"}
        assert "RuntimeError: lost" in stack
        previous.assert_called_once_with(loop, context)
        assert loop.get_exception_handler() is previous

        loop.set_exception_handler(None)

    def test_requires_event_loop(self):
        with pytest.raises(DiagnosticsError):
            AsyncioErrorSource().register(MagicMock())


@pytest.mark.unit
class TestLoggingErrorSource:
    """Test WARNING/ERROR capture from stdlib logging."""

    LOGGER_NAME = "views_core.tests.capture"

    def test_warning_and_error_forwarded(self):
        sink = MagicMock()
        source = LoggingErrorSource(self.LOGGER_NAME)
        log = logging.getLogger(self.LOGGER_NAME)

        source.register(sink)
        try:
            log.warning("disk low")
            try:
                raise OSError("disk gone")
            except OSError:
                log.exception("write failed")
            log.info("not captured")
        finally:
            source.unregister()

        calls = [call.args for call in sink.call_args_list]
        assert [(c[0], c[1], c[2]) for c in calls] == [
            ("warn", "console", "disk low"),
            ("error", "console", "write failed"),
        ]
        assert calls[0][3] == {"logger": self.LOGGER_NAME}
        assert "OSError: disk gone" in calls[1][4]

    def test_records_from_sink_not_recaptured(self):
        log = logging.getLogger(self.LOGGER_NAME)
        sink = MagicMock(side_effect=lambda *args: log.warning("sink is noisy"))
        source = LoggingErrorSource(self.LOGGER_NAME)

        source.register(sink)
        try:
            log.warning("first")
        finally:
            source.unregister()

        assert sink.call_count == 1

    def test_unregister_removes_handler(self):
        source = LoggingErrorSource(self.LOGGER_NAME)
        log = logging.getLogger(self.LOGGER_NAME)
        handlers_before = list(log.handlers)

        source.register(MagicMock())
        source.unregister()

        assert log.handlers == handlers_before


@pytest.mark.unit
class TestWarningsErrorSource:
    """Test warnings.showwarning wrapping."""

    def test_warning_forwarded_and_still_shown(self):
        sink = MagicMock()

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            source = WarningsErrorSource()
            source.register(sink)
            warnings.warn("old api", DeprecationWarning)
            source.unregister()

        level, category, message, data, _ = sink.call_args.args
        assert (level, category, message) == ("warn", "warning", "old api")
        assert data["category"] == "DeprecationWarning"
        assert len(caught) == 1


@pytest.mark.unit
class TestManualErrorSource:
    """Test explicit emission."""

    def test_emit_without_sink_is_dropped(self):
        assert ManualErrorSource().emit("nobody listening") is False

    def test_emit_forwards_with_stack(self):
        sink = MagicMock()
        source = ManualErrorSource()
        source.register(sink)

        assert source.emit("upload failed", level="warn", category="media", data={"id": 1}, error=IOError("eof"))

        level, category, message, data, stack = sink.call_args.args
        assert (level, category, message, data) == ("warn", "media", "upload failed", {"id": 1})
        assert "OSError: eof" in stack


@pytest.mark.unit
class TestDefaultSources:
    """Test default_error_sources()."""

    def test_without_loop(self):
        sources = default_error_sources()

        assert [type(s) for s in sources] == [ExceptHookSource, LoggingErrorSource, WarningsErrorSource]

    @pytest.mark.asyncio
    async def test_with_running_loop(self):
        sources = default_error_sources()

        assert isinstance(sources[-1], AsyncioErrorSource)

    def test_agent_records_logging_errors(self, settings, session_store, mock_metrics):
        agent = DebugAgent(session_store=session_store, metrics=mock_metrics, settings=settings)
        agent.install_error_capture([LoggingErrorSource("views_core.tests.agent")])

        try:
            logging.getLogger("views_core.tests.agent").error("payment webhook rejected")
        finally:
            agent.uninstall_error_capture()

        entry = agent.get_logs(level="error")[-1]
        assert entry.category == "console"
        assert entry.message == "payment webhook rejected"
        assert agent.get_stats()["error_count"] == 1

    def test_agent_skips_source_without_loop(self, settings, session_store, mock_metrics):
        agent = DebugAgent(session_store=session_store, metrics=mock_metrics, settings=settings)
        manual = ManualErrorSource()

        installed = agent.install_error_capture([AsyncioErrorSource(), manual])

        assert installed == [manual]
        agent.uninstall_error_capture()
