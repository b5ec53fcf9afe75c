"""
Storage Module

Session-scoped stores used by the debug agent and the local-storage probe.
"""

from .session_store import (
    FileSessionStore,
    InMemorySessionStore,
    SessionStore,
    build_session_store,
)

__all__ = [
    "FileSessionStore",
    "InMemorySessionStore",
    "SessionStore",
    "build_session_store",
]
