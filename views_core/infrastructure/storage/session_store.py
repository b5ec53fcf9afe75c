"""
Session-scoped key/value stores.

The debug agent persists its recent log tail here and the local-storage
health probe round-trips a marker through it. Nothing here survives beyond
what the backing medium gives it; cross-session durability is not a goal.
"""

import re
from abc import ABC, abstractmethod
from pathlib import Path

from views_core.core.exceptions.diagnostics import SessionStoreError

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class SessionStore(ABC):
    """String key/value store. Implementations raise SessionStoreError on failure."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...


class InMemorySessionStore(SessionStore):
    """Process-lifetime store. Default when no session directory is configured."""

    def __init__(self):
        self._items: dict[str, str] = {}

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileSessionStore(SessionStore):
    """
    One file per key under a directory.

    The directory is created lazily on first write.
    """

    def __init__(self, directory: str | Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def set_item(self, key: str, value: str) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._path(key).write_text(value, encoding="utf-8")
        except OSError as e:
            raise SessionStoreError.from_exception(e, key=key, directory=str(self._directory))

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SessionStoreError.from_exception(e, key=key, directory=str(self._directory))

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise SessionStoreError.from_exception(e, key=key, directory=str(self._directory))


def build_session_store(directory: str | None) -> SessionStore:
    """File store when a directory is configured, in-memory otherwise."""
    if directory:
        return FileSessionStore(directory)
    return InMemorySessionStore()
