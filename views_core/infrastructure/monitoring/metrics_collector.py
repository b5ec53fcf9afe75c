#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

Mirrors the debug agent's in-process state into Prometheus metrics so the
same signals can be scraped or dumped alongside the JSON export:
- Cache accesses by result (hit/miss)
- Debug log events by level
- Health status and probe latency per service
- Performance metric evaluations by status

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Histogram buckets for probe latency percentiles

Author: Senior Solution Architect
Date: 2025-12-05
"""


from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from views_core.core.config.constants import HealthStatus
from views_core.core.config.settings import Settings, get_settings
from views_core.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# Cache metrics
CACHE_ACCESSES = Counter(
    'views_cache_accesses_total',
    'Query cache lookups observed by the debug agent',
    ['result']  # hit or miss
)

# Log metrics
DEBUG_LOG_EVENTS = Counter(
    'views_debug_log_events_total',
    'Debug log entries recorded',
    ['level']
)

# Health metrics
HEALTH_STATUS = Gauge(
    'views_health_status',
    'Last health check result (0=healthy, 1=degraded, 2=down)',
    ['service']
)

HEALTH_CHECK_LATENCY = Histogram(
    'views_health_check_latency_seconds',
    'Health probe latency',
    ['service'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

# Performance metrics
PERFORMANCE_EVALUATIONS = Counter(
    'views_performance_metrics_total',
    'Performance metrics recorded, by derived status',
    ['status']
)

# App info
APP_INFO = Info(
    'views_app',
    'Application information'
)

_HEALTH_STATUS_VALUES = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.DOWN: 2,
}


class MetricsCollector:
    """
    Centralized metrics collector.

    Usage:
        metrics = MetricsCollector()

        metrics.record_cache_access(hit=True)
        metrics.record_health_check("network", HealthStatus.HEALTHY, 12.5)

        output = metrics.get_prometheus_metrics()
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize metrics collector."""
        self.describe_app(settings or get_settings())

        logger.debug("Metrics collector initialized", category="performance")

    def describe_app(self, settings: Settings) -> None:
        """Publish the app info labels of the wired settings."""
        self.settings = settings
        APP_INFO.info({
            'version': settings.app.APP_VERSION,
            'environment': settings.app.ENVIRONMENT,
            'app_name': settings.app.APP_NAME
        })

    # =========================================================================
    # Cache Metrics
    # =========================================================================

    def record_cache_access(self, hit: bool) -> None:
        """Record a cache lookup outcome."""
        CACHE_ACCESSES.labels(result="hit" if hit else "miss").inc()

    # =========================================================================
    # Log Metrics
    # =========================================================================

    def record_log_event(self, level: str) -> None:
        """Record a debug log entry."""
        DEBUG_LOG_EVENTS.labels(level=level).inc()

    # =========================================================================
    # Health Metrics
    # =========================================================================

    def record_health_check(self, service: str, status: HealthStatus, latency_ms: float) -> None:
        """Record a health check result and its latency."""
        HEALTH_STATUS.labels(service=service).set(_HEALTH_STATUS_VALUES[status])
        HEALTH_CHECK_LATENCY.labels(service=service).observe(latency_ms / 1000.0)

    # =========================================================================
    # Performance Metrics
    # =========================================================================

    def record_performance_status(self, status: str) -> None:
        """Record the derived status of a performance metric."""
        PERFORMANCE_EVALUATIONS.labels(status=status).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector(settings: Settings | None = None) -> MetricsCollector:
    """
    Get global metrics collector.

    When settings are given, the app info labels are updated to match them.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector(settings)
    elif settings is not None:
        _metrics.describe_app(settings)
    return _metrics
