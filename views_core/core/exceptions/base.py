"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions inherit from.
All specialized exceptions are in their respective themed modules.

Author: System Architect
Date: 2025-12-08
"""

from typing import Any


class ViewsBaseError(Exception):
    """
    Base exception for all caching and diagnostics errors.

    Attributes:
        message: Error message
        details: Additional error details (dict)

    Example:
        raise CacheConfigError(
            "stale_time must be >= ttl",
            details={"ttl": 0.2, "stale_time": 0.1},
        )
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = (details or {}).copy()  # Create a copy to prevent external modification
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/export.

        Returns:
            Dict with error_type, message and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "ViewsBaseError":
        """
        Add a suggestion to help users fix the error.

        Returns:
            Self (for method chaining)
        """
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "ViewsBaseError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        """
        Example:
            >>> repr(HealthCheckTimeoutError("Timeout", details={"service": "network"}))
            "HealthCheckTimeoutError(message='Timeout', details={'service': 'network'})"
        """
        details_str = f", details={self.details}" if self.details else ""
        return f"{self.__class__.__name__}(message='{self.message}'{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        message: str | None = None,
        **details
    ) -> "ViewsBaseError":
        """
        Create an error from another exception.

        Useful for wrapping OS / third-party exceptions with additional context.

        Example:
            >>> try:
            ...     path.write_text(payload)
            ... except OSError as e:
            ...     raise SessionStoreError.from_exception(e, key="debug_logs")
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, details=error_details)

