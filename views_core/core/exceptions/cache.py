"""
Cache-Related Exceptions

Errors raised by the query cache itself. Fetcher failures are NOT wrapped:
callers of fetch() receive the fetcher's own exception object.

Author: System Architect
Date: 2025-12-08
"""

from views_core.core.exceptions.base import ViewsBaseError


class CacheError(ViewsBaseError):
    """Base exception for cache-related errors."""
    pass


class CacheConfigError(CacheError, ValueError):
    """
    Raised when a CacheConfig is inconsistent.

    Common causes:
    - ttl is zero or negative
    - stale_time is shorter than ttl
    """
    pass
