"""
Exception Module

Structured exception hierarchy for the caching and diagnostics core.

Module Structure:
-----------------
- **base.py**: ViewsBaseError base class
- **cache.py**: Query cache exceptions
- **diagnostics.py**: Debug agent collaborator exceptions

Usage:
------
```python
from views_core.core.exceptions import CacheConfigError, SessionStoreError
```
"""

# Base exception
from views_core.core.exceptions.base import ViewsBaseError

# Cache exceptions
from views_core.core.exceptions.cache import CacheConfigError, CacheError

# Diagnostics exceptions
from views_core.core.exceptions.diagnostics import (
    DiagnosticsError,
    HealthCheckTimeoutError,
    SessionStoreError,
)

__all__ = [
    # Base
    "ViewsBaseError",
    # Cache
    "CacheError",
    "CacheConfigError",
    # Diagnostics
    "DiagnosticsError",
    "HealthCheckTimeoutError",
    "SessionStoreError",
]
