#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides structured logging for the caching and diagnostics core:
- Diagnostic session correlation (every line carries the agent's session id)
- JSON formatting for log aggregation
- Automatic secret redaction (API keys, JWTs, emails)
- Category tagging through log_event()

Architectural Decision: structlog for production logging
- Context-aware logging with automatic field injection
- JSON output for log aggregation
- Renders through stdlib logging, so the debug agent's LoggingErrorSource
  sees every warning and error emitted here

Author: System Architect
Date: 2025-12-05
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from views_core.core.config.settings import get_settings

# Context variable for the diagnostic session id
session_id_ctx: ContextVar[str | None] = ContextVar("diagnostic_session_id", default=None)

_SECRET_PATTERNS = (
    (re.compile(r"\b[\w.-]+@[\w.-]+\.\w+\b"), "[EMAIL]"),
    (re.compile(r"\bsk-[a-zA-Z0-9]+\b"), "[REDACTED]"),
    (re.compile(r"\bAIza[a-zA-Z0-9_-]+\b"), "[REDACTED]"),
    (re.compile(r"\beyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\b"), "[JWT]"),
)


def add_session_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add the diagnostic session id to the log event from the context variable.
    """
    session_id = session_id_ctx.get()
    if session_id:
        event_dict["session_id"] = session_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact secrets from log messages.

    Patterns redacted:
    - Email addresses -> [EMAIL]
    - API keys (sk-..., AIza...) -> [REDACTED]
    - JSON Web Tokens (Supabase anon keys) -> [JWT]
    """
    message = event_dict.get("event", "")

    if isinstance(message, str):
        for pattern, replacement in _SECRET_PATTERNS:
            message = pattern.sub(replacement, message)
        event_dict["event"] = message

    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Uppercase the level name injected by structlog."""
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    # Use settings if not provided
    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    # Choose renderer based on format
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_session_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", category="cache")
    """
    return structlog.get_logger(name)


def set_session_id(session_id: str) -> None:
    """
    Set the diagnostic session id in context.

    Called by the debug agent when it is constructed so every log line
    emitted afterwards can be tied back to it.
    """
    session_id_ctx.set(session_id)


def get_session_id() -> str | None:
    """Get current diagnostic session id from context."""
    return session_id_ctx.get()


def clear_session_id() -> None:
    """Clear the diagnostic session id from context."""
    session_id_ctx.set(None)


def log_event(
    logger: structlog.stdlib.BoundLogger,
    category: str,
    message: str,
    level: str = "info",
    **kwargs,
) -> None:
    """
    Log a message tagged with a diagnostics category.

    Args:
        logger: Logger instance
        category: Category identifier (e.g., "cache", "health")
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_event(logger, "cache", "Cache hit", cache_key="assets:all:all")
    """
    log_func = getattr(logger, level.lower())
    log_func(message, category=category, **kwargs)
