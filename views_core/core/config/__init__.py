"""
Configuration Module

Centralized, type-safe configuration for the caching and diagnostics core.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Enums, buffer capacities, thresholds and probe names

Usage:
------
```python
from views_core.core.config import get_settings
from views_core.core.config.constants import HealthStatus

settings = get_settings()
timeout = settings.diagnostics.HEALTH_CHECK_TIMEOUT
```

Environment Variables:
---------------------
```bash
CACHE_DEFAULT_TTL=300
DEBUG_MAX_LOGS=500
HEALTH_CHECK_TIMEOUT=10
GOOGLE_API_KEY=...
SUPABASE_URL=https://example.supabase.co
LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from views_core.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
