"""
Unit Tests for Core Exceptions

Tests the base error payload helpers and the themed hierarchy.
"""

import pytest

from views_core.core.exceptions import (
    CacheConfigError,
    CacheError,
    DiagnosticsError,
    HealthCheckTimeoutError,
    SessionStoreError,
    ViewsBaseError,
)


@pytest.mark.unit
class TestViewsBaseError:
    """Test the base exception class."""

    def test_message_and_default_details(self):
        error = ViewsBaseError("Test message")

        assert str(error) == "Test message"
        assert error.message == "Test message"
        assert error.details == {}

    def test_details_are_copied(self):
        details = {"key": "value"}
        error = ViewsBaseError("Test", details=details)

        details["key"] = "changed"

        assert error.details == {"key": "value"}

    def test_to_dict(self):
        error = SessionStoreError("disk full", details={"key": "debug_logs"})

        assert error.to_dict() == {
            "error_type": "SessionStoreError",
            "message": "disk full",
            "details": {"key": "debug_logs"},
        }

    def test_chaining_helpers(self):
        error = CacheConfigError("bad config").with_context(ttl=0).with_suggestion("use a positive ttl")

        assert error.details == {"ttl": 0, "suggestion": "use a positive ttl"}

    def test_repr(self):
        assert repr(HealthCheckTimeoutError("Timeout")) == "HealthCheckTimeoutError(message='Timeout')"
        assert "details={'service': 'network'}" in repr(
            HealthCheckTimeoutError("Timeout", details={"service": "network"})
        )

    def test_from_exception(self):
        original = PermissionError("read-only file system")

        error = SessionStoreError.from_exception(original, key="debug_logs")

        assert isinstance(error, SessionStoreError)
        assert error.message == "read-only file system"
        assert error.details == {
            "original_error": "PermissionError",
            "original_message": "read-only file system",
            "key": "debug_logs",
        }

    def test_from_exception_with_message(self):
        error = DiagnosticsError.from_exception(RuntimeError("no running event loop"), "needs a loop")

        assert str(error) == "needs a loop"


@pytest.mark.unit
class TestHierarchy:
    """Test that themed exceptions can be caught at the right level."""

    @pytest.mark.parametrize(
        "error_class,parents",
        [
            (CacheConfigError, (CacheError, ViewsBaseError, ValueError)),
            (HealthCheckTimeoutError, (DiagnosticsError, ViewsBaseError)),
            (SessionStoreError, (DiagnosticsError, ViewsBaseError)),
        ],
    )
    def test_parents(self, error_class, parents):
        error = error_class("x")

        for parent in parents:
            assert isinstance(error, parent)

    def test_cache_config_error_caught_as_value_error(self):
        with pytest.raises(ValueError):
            raise CacheConfigError("stale_time must be >= ttl")
