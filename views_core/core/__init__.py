"""
Core Module

Foundational components: configuration, logging and exceptions.
"""

from .exceptions import (
    CacheConfigError,
    CacheError,
    DiagnosticsError,
    HealthCheckTimeoutError,
    SessionStoreError,
    ViewsBaseError,
)
from .logging import (
    clear_session_id,
    get_logger,
    get_session_id,
    log_event,
    set_session_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_session_id",
    "get_session_id",
    "clear_session_id",
    "log_event",
    "ViewsBaseError",
    "CacheError",
    "CacheConfigError",
    "DiagnosticsError",
    "HealthCheckTimeoutError",
    "SessionStoreError",
]
