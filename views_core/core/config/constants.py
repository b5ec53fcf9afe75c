"""
System Constants and Enumerations

This module defines constants and enumerations shared by the query cache
and the debug agent.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for buffer capacities and thresholds
- Type-safe enums for every status value that leaves the process
  (exports, reports, CLI output)

Author: System Architect
Date: 2025-12-05
"""

from enum import Enum

# ============================================================================
# Cache Entry Classification
# ============================================================================


class EntryStatus(str, Enum):
    """
    Outcome stored for a cache key.

    SUCCESS: The fetcher resolved and the payload is usable
    ERROR: The fetcher failed and no earlier payload existed
    """

    SUCCESS = "success"
    ERROR = "error"


class Freshness(str, Enum):
    """
    Read-time classification of a successful entry by age.

    FRESH:   age < ttl                 -> served, no fetch
    STALE:   ttl <= age < stale_time   -> served, background revalidation
    EXPIRED: age >= stale_time         -> foreground fetch
    """

    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"


# ============================================================================
# Diagnostics Enums
# ============================================================================


class LogLevel(str, Enum):
    """Severity of a debug log entry."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"


class MetricStatus(str, Enum):
    """
    Status derived for a performance metric at insert time.

    GOOD:     value <= threshold (or no threshold)
    WARNING:  threshold < value <= 2 * threshold
    CRITICAL: value > 2 * threshold
    """

    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class HealthStatus(str, Enum):
    """Result of a single health probe."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"


class OverallHealth(str, Enum):
    """Aggregate of every registered health check."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"


class LogCategory(str, Enum):
    """
    Categories used by the core itself.

    Callers are free to log under any other category string.
    """

    SYSTEM = "system"
    RUNTIME = "runtime"
    ASYNC = "async"
    CONSOLE = "console"
    WARNING = "warning"
    CACHE = "cache"
    HEALTH = "health"
    PERFORMANCE = "performance"
    CONNECTION_TEST = "connection-test"


# ============================================================================
# Cache Defaults
# ============================================================================

# Durations are seconds
DEFAULT_CACHE_TTL = 300.0  # 5 minutes
DEFAULT_FRESHNESS_MAX_AGE = 300.0  # is_fresh() default window
STALE_TIME_MULTIPLIER = 2  # stale_time defaults to 2 * ttl
UNSERIALIZABLE_SIZE = 0  # size reported for payloads orjson cannot encode

# ============================================================================
# Diagnostics Defaults
# ============================================================================

MAX_DEBUG_LOGS = 500  # log ring buffer capacity
MAX_PERFORMANCE_METRICS = 100  # metric ring buffer capacity
PERSISTED_LOG_COUNT = 50  # tail written to the session store on every log
REPORT_TAIL_SIZE = 20  # metrics / errors / warnings included in a report
DEFAULT_LOG_QUERY_LIMIT = 50  # get_logs() default limit

HEALTH_CHECK_TIMEOUT = 10.0  # seconds
HEALTH_CHECK_TIMEOUT_MESSAGE = "Timeout"

RENDER_BUDGET_MS = 16.0  # one frame at 60fps

# ============================================================================
# Session Store Keys
# ============================================================================

SESSION_KEY_DEBUG_LOGS = "debug_logs"
SESSION_KEY_HEALTH_PROBE = "_health_check"

# ============================================================================
# Default Probe Names
# ============================================================================

PROBE_GOOGLE_AI = "google-ai"
PROBE_LOCAL_STORAGE = "local-storage"
PROBE_NETWORK = "network"
PROBE_SUPABASE = "supabase"
PROBE_MCP_SERVICE = "mcp-service"

GOOGLE_API_KEY_MIN_LENGTH = 10

# Export file naming
EXPORT_FILENAME_PREFIX = "views-debug"

# Per-request timeout for the default probes (seconds); stays below
# HEALTH_CHECK_TIMEOUT
PROBE_REQUEST_TIMEOUT = 5.0
