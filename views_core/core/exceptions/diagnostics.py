"""
Diagnostics Exceptions

Exception types for the debug agent's collaborators. None of these ever
escape a DebugAgent operation: probe failures become a ``down`` health
check and persistence failures are dropped. They exist so the collaborators
(session stores, probes) can fail loudly and be handled in one place.

Author: System Architect
Date: 2025-12-13
"""

from views_core.core.exceptions.base import ViewsBaseError


class DiagnosticsError(ViewsBaseError):
    """Base exception for all diagnostics operations."""

    pass


class HealthCheckTimeoutError(DiagnosticsError):
    """
    Raised when a health probe does not settle within the probe timeout.

    The probe keeps running in the background; only its result is ignored.
    """

    pass


class SessionStoreError(DiagnosticsError):
    """
    Raised when the session store cannot read or write an item.

    COMMON CAUSES:
    --------------
    - Session directory is read-only or missing
    - Disk full
    - Payload could not be serialized
    """

    pass
