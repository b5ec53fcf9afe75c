"""
Unit Tests for Session Stores

Tests the in-memory and file-backed stores and the factory that picks one.
"""

import pytest

from views_core.core.exceptions import SessionStoreError
from views_core.infrastructure.storage import (
    FileSessionStore,
    InMemorySessionStore,
    build_session_store,
)


@pytest.mark.unit
class TestInMemorySessionStore:
    """Test suite for InMemorySessionStore."""

    def test_set_get_remove(self):
        store = InMemorySessionStore()

        store.set_item("debug_logs", "[]")
        assert store.get_item("debug_logs") == "[]"

        store.remove_item("debug_logs")
        assert store.get_item("debug_logs") is None

    def test_remove_missing_key_is_noop(self):
        InMemorySessionStore().remove_item("never-set")


@pytest.mark.unit
class TestFileSessionStore:
    """Test suite for FileSessionStore."""

    def test_directory_created_lazily(self, tmp_path):
        directory = tmp_path / "session"
        store = FileSessionStore(directory)

        assert not directory.exists()
        assert store.get_item("debug_logs") is None

        store.set_item("debug_logs", '[{"id": "log_1"}]')

        assert (directory / "debug_logs.json").read_text(encoding="utf-8") == '[{"id": "log_1"}]'
        assert store.get_item("debug_logs") == '[{"id": "log_1"}]'

    def test_unsafe_key_characters_replaced(self, tmp_path):
        store = FileSessionStore(tmp_path)

        store.set_item("../escape/attempt", "x")

        assert (tmp_path / ".._escape_attempt.json").exists()
        assert store.get_item("../escape/attempt") == "x"

    def test_remove(self, tmp_path):
        store = FileSessionStore(tmp_path)
        store.set_item("_health_check", "test")

        store.remove_item("_health_check")
        store.remove_item("_health_check")

        assert store.get_item("_health_check") is None

    def test_write_failure_wrapped(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        store = FileSessionStore(blocker / "session")

        with pytest.raises(SessionStoreError) as exc_info:
            store.set_item("debug_logs", "[]")

        assert exc_info.value.details["key"] == "debug_logs"
        assert "original_error" in exc_info.value.details


@pytest.mark.unit
class TestBuildSessionStore:
    """Test build_session_store()."""

    def test_directory_gives_file_store(self, tmp_path):
        store = build_session_store(str(tmp_path))

        assert isinstance(store, FileSessionStore)
        assert store.directory == tmp_path

    @pytest.mark.parametrize("directory", [None, ""])
    def test_no_directory_gives_memory_store(self, directory):
        assert isinstance(build_session_store(directory), InMemorySessionStore)
