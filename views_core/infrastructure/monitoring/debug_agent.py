#!/usr/bin/env python3
"""
Debug Agent - process-wide diagnostics

Architecture:
    DebugAgent (Public API)
        ├── log ring buffer       (DebugLog, capacity DEBUG_MAX_LOGS)
        ├── metric ring buffer    (PerformanceMetric, capacity DEBUG_MAX_METRICS)
        ├── health registry       (HealthCheck per service, last write wins)
        ├── counters              (errors, warnings, cache hits/misses)
        ├── ErrorSources          (global hooks feeding log())
        └── MetricsCollector      (Prometheus mirror of all of the above)

Failure semantics:
    Nothing here raises because a dependency is unavailable. Probe failures
    become ``down`` health checks, session-store failures are dropped, and a
    failing cache stats provider reports an empty cache.

Concurrency:
    Error sources can call log() from foreign threads (thread excepthook,
    logging handlers), so buffer mutations and snapshots take a lock. None
    of the locked sections await.

Author: Senior Solution Architect
Date: 2025-12-13
"""

import asyncio
import getpass
import inspect
import locale
import math
import os
import platform
import socket
import sys
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, TypeVar, Union

import orjson

from views_core.core.config.constants import (
    DEFAULT_LOG_QUERY_LIMIT,
    EXPORT_FILENAME_PREFIX,
    HEALTH_CHECK_TIMEOUT_MESSAGE,
    PROBE_NETWORK,
    SESSION_KEY_DEBUG_LOGS,
    HealthStatus,
    LogCategory,
    LogLevel,
    MetricStatus,
    OverallHealth,
)
from views_core.core.config.settings import Settings, get_settings
from views_core.core.exceptions.diagnostics import (
    DiagnosticsError,
    HealthCheckTimeoutError,
    SessionStoreError,
)
from views_core.core.logging.logger import get_logger, log_event, set_session_id
from views_core.infrastructure.monitoring.error_capture import ErrorSource, default_error_sources
from views_core.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)
from views_core.infrastructure.monitoring.probes import Probe
from views_core.infrastructure.storage.session_store import SessionStore, build_session_store

logger = get_logger(__name__)

T = TypeVar("T")

CacheStatsProvider = Callable[[], Mapping[str, Any]]

_EXPORT_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS


# =============================================================================
# LAYER 1: RECORD TYPES
# =============================================================================


@dataclass
class DebugLog:
    id: str
    timestamp: datetime
    level: LogLevel
    category: str
    message: str
    data: Any = None
    stack: str | None = None


@dataclass
class PerformanceMetric:
    name: str
    value: float
    unit: str
    timestamp: datetime
    status: MetricStatus
    threshold: float | None = None


@dataclass
class HealthCheck:
    """
    Outcome of one probe run.

    latency is milliseconds from probe start until it settled or timed out.
    """

    service: str
    status: HealthStatus
    latency: float
    last_check: datetime
    error: str | None = None


@dataclass
class DiagnosticReport:
    timestamp: datetime
    environment: dict[str, Any]
    performance: list[PerformanceMetric]
    health: list[HealthCheck]
    cache: dict[str, Any]
    errors: list[DebugLog]
    warnings: list[DebugLog]


@dataclass
class ConnectionTestResult:
    success: bool
    message: str
    latency: float | None = None


@dataclass
class _Counters:
    error_count: int = 0
    warning_count: int = 0
    cache_hits: int = 0
    cache_misses: int = 0


# =============================================================================
# LAYER 2: PURE HELPERS
# =============================================================================


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify_metric(value: float, threshold: float | None) -> MetricStatus:
    """critical at or above 2x threshold, warning above threshold, good otherwise or without one."""
    if not threshold:
        return MetricStatus.GOOD
    if value >= threshold * 2:
        return MetricStatus.CRITICAL
    if value > threshold:
        return MetricStatus.WARNING
    return MetricStatus.GOOD


def encodable_log(entry: DebugLog) -> DebugLog:
    """
    The entry itself when orjson can encode its data, else a copy carrying repr(data).
    """
    try:
        orjson.dumps(entry.data, default=str, option=orjson.OPT_NON_STR_KEYS)
    except TypeError:
        # orjson.JSONEncodeError is a TypeError subclass
        return replace(entry, data=repr(entry.data))
    return entry


def read_persisted_logs(store: SessionStore) -> list[dict[str, Any]]:
    """
    The debug log tail held by a session store, as plain dicts.

    May have been written by another process sharing DEBUG_SESSION_DIR.
    Returns [] when nothing is stored or the store is unreadable.
    """
    try:
        raw = store.get_item(SESSION_KEY_DEBUG_LOGS)
        return orjson.loads(raw) if raw else []
    except (SessionStoreError, orjson.JSONDecodeError) as e:
        logger.debug("Persisted debug logs unavailable", category=LogCategory.SYSTEM.value, error=str(e))
        return []


def _tail(logs: list[DebugLog], level: LogLevel, size: int) -> list[DebugLog]:
    return [entry for entry in logs if entry.level is level][-size:]


def aggregate_health(checks: list[HealthCheck]) -> OverallHealth:
    statuses = {check.status for check in checks}
    if HealthStatus.DOWN in statuses:
        return OverallHealth.CRITICAL
    if HealthStatus.DEGRADED in statuses:
        return OverallHealth.DEGRADED
    return OverallHealth.HEALTHY


def format_duration(seconds: float) -> str:
    """
    Human readable uptime.

    Example:
        >>> format_duration(3725)
        '1h 2m'
        >>> format_duration(65)
        '1m 5s'
    """
    total_seconds = int(seconds)
    minutes, secs = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def hit_rate_percent(hits: int, misses: int) -> int:
    """Integer percentage 0-100, rounding half up. 0 when nothing was looked up."""
    total = hits + misses
    if total == 0:
        return 0
    return math.floor(hits / total * 100 + 0.5)


async def _run_probe(probe: Probe) -> bool:
    result = probe()
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


def _discard_outcome(task: asyncio.Task) -> None:
    # Retrieve the exception so asyncio does not report it as never retrieved
    if not task.cancelled():
        task.exception()


def _peak_memory_kb() -> int | None:
    try:
        import resource
    except ImportError:
        # Not available on Windows
        return None
    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss


# =============================================================================
# LAYER 3: PUBLIC API
# =============================================================================


class DebugAgent:
    """
    Process-wide diagnostics agent.

    Usage:
        agent = DebugAgent(
            cache_stats_provider=cache.get_stats,
            probes=build_default_probes(),
        )
        cache.add_access_listener(agent.record_cache_access)
        agent.install_error_capture()

        agent.log("info", "system", "Portal started")
        agent.record_metric("page-load", 840, "ms", threshold=1000)

        report = await agent.generate_report()
        payload = agent.export_logs()
    """

    def __init__(
        self,
        cache_stats_provider: CacheStatsProvider | None = None,
        probes: Mapping[str, Probe] | None = None,
        session_store: SessionStore | None = None,
        metrics: MetricsCollector | None = None,
        settings: Settings | None = None,
        clock: Callable[[], float] | None = None,
        logger_instance=None,
    ):
        """
        Args:
            cache_stats_provider: Callable returning QueryCache.get_stats()-shaped data
            probes: Named health probes, run in insertion order
            session_store: Where the recent log tail is persisted
            metrics: Prometheus mirror (default: global collector)
            settings: Settings override
            clock: Monotonic clock in seconds (injectable for tests)
            logger_instance: Logger override
        """
        self.settings = settings or get_settings()
        diagnostics = self.settings.diagnostics

        self._cache_stats_provider = cache_stats_provider
        self._probes: dict[str, Probe] = dict(probes or {})
        self._session_store = session_store or build_session_store(diagnostics.DEBUG_SESSION_DIR)
        self._metrics = metrics or get_metrics_collector(self.settings)
        self._clock = clock or time.monotonic
        self._logger = logger_instance or logger

        self._health_timeout = diagnostics.HEALTH_CHECK_TIMEOUT
        self._render_budget_ms = diagnostics.RENDER_BUDGET_MS
        self._persisted_logs = diagnostics.DEBUG_PERSISTED_LOGS
        self._report_tail = diagnostics.DEBUG_REPORT_TAIL

        self._logs: deque[DebugLog] = deque(maxlen=diagnostics.DEBUG_MAX_LOGS)
        self._performance: deque[PerformanceMetric] = deque(maxlen=diagnostics.DEBUG_MAX_METRICS)
        self._health: dict[str, HealthCheck] = {}
        self._counters = _Counters()
        self._lock = threading.RLock()
        self._error_sources: list[ErrorSource] = []

        self._start_time = self._clock()
        self.session_id = uuid.uuid4().hex
        set_session_id(self.session_id)

        log_event(self._logger, LogCategory.SYSTEM.value, "Debug agent initialized", probes=list(self._probes))

    # -------------------------------------------------------------------------
    # Logs
    # -------------------------------------------------------------------------

    def log(
        self,
        level: LogLevel | str,
        category: str,
        message: str,
        data: Any = None,
        stack: str | None = None,
    ) -> DebugLog:
        """
        Append a log entry, evicting the oldest past capacity.

        Raises:
            ValueError: level is not one of info, warn, error, debug
        """
        level = LogLevel(level)
        entry = DebugLog(
            id=f"log_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
            timestamp=_utcnow(),
            level=level,
            category=category,
            message=message,
            data=data,
            stack=stack,
        )

        with self._lock:
            self._logs.append(entry)
            if level is LogLevel.ERROR:
                self._counters.error_count += 1
            elif level is LogLevel.WARN:
                self._counters.warning_count += 1
            tail = list(self._logs)[-self._persisted_logs:]

        self._metrics.record_log_event(level.value)
        # Mirrored at debug only: warnings and errors would be captured again
        # by LoggingErrorSource
        self._logger.debug(message, category=category, debug_level=level.value)
        self._persist(tail)
        return entry

    def _persist(self, tail: list[DebugLog]) -> None:
        try:
            payload = orjson.dumps(
                [encodable_log(entry) for entry in tail], default=str, option=orjson.OPT_NON_STR_KEYS
            )
            self._session_store.set_item(SESSION_KEY_DEBUG_LOGS, payload.decode())
        except (SessionStoreError, TypeError) as e:
            self._logger.debug("Debug log persistence skipped", category=LogCategory.SYSTEM.value, error=str(e))

    def persisted_logs(self) -> list[dict[str, Any]]:
        """The log tail currently held by this agent's session store, as plain dicts."""
        return read_persisted_logs(self._session_store)

    def get_logs(
        self,
        level: LogLevel | str | None = None,
        category: str | None = None,
        limit: int = DEFAULT_LOG_QUERY_LIMIT,
    ) -> list[DebugLog]:
        """
        Most recent matching entries, oldest first.

        Args:
            level: Only entries of this level
            category: Only entries of this category
            limit: Maximum number of entries (<= 0 returns nothing)
        """
        if limit <= 0:
            return []

        level = LogLevel(level) if level is not None else None
        with self._lock:
            logs = list(self._logs)

        filtered = [
            entry for entry in logs
            if (level is None or entry.level is level)
            and (category is None or entry.category == category)
        ]
        return filtered[-limit:]

    # -------------------------------------------------------------------------
    # Performance
    # -------------------------------------------------------------------------

    def record_metric(
        self,
        name: str,
        value: float,
        unit: str,
        threshold: float | None = None,
    ) -> PerformanceMetric:
        metric = PerformanceMetric(
            name=name,
            value=value,
            unit=unit,
            timestamp=_utcnow(),
            status=classify_metric(value, threshold),
            threshold=threshold,
        )

        with self._lock:
            self._performance.append(metric)

        self._metrics.record_performance_status(metric.status.value)
        return metric

    def measure_render(self, name: str, fn: Callable[[], Any]) -> float:
        """
        Time a synchronous callable against the render budget.

        Returns:
            Duration in milliseconds
        """
        start = self._clock()
        fn()
        duration = (self._clock() - start) * 1000
        self.record_metric(f"render-{name}", duration, "ms", self._render_budget_ms)
        return duration

    async def timed(self, name: str, fn: Callable[[], Union[Awaitable[T], T]]) -> T:
        """
        Time a callable. Failures are recorded as ``<name>-error`` and re-raised.
        """
        start = self._clock()
        try:
            result = fn()
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            self.record_metric(f"{name}-error", (self._clock() - start) * 1000, "ms")
            raise

        self.record_metric(name, (self._clock() - start) * 1000, "ms")
        return result

    # -------------------------------------------------------------------------
    # Cache accounting
    # -------------------------------------------------------------------------

    def record_cache_access(self, hit: bool) -> None:
        """Access listener for QueryCache."""
        with self._lock:
            if hit:
                self._counters.cache_hits += 1
            else:
                self._counters.cache_misses += 1

        self._metrics.record_cache_access(hit)

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    def register_probe(self, name: str, probe: Probe) -> None:
        """Add or replace a named probe used by run_health_checks()."""
        self._probes[name] = probe

    @property
    def probes(self) -> dict[str, Probe]:
        return dict(self._probes)

    @property
    def probe_names(self) -> list[str]:
        return list(self._probes)

    async def check_health(self, service: str, probe: Probe) -> HealthCheck:
        """
        Run one probe against the health timeout and record the result.

        Never raises for probe failures:
            exception or timeout -> down (error message, "Timeout" on timeout)
            falsy result         -> degraded
            truthy result        -> healthy

        A timed-out probe is left running; its outcome is discarded.
        """
        start = self._clock()
        task = asyncio.ensure_future(_run_probe(probe))
        done, _ = await asyncio.wait({task}, timeout=self._health_timeout)
        latency = (self._clock() - start) * 1000

        failure: BaseException | None
        if not done:
            task.add_done_callback(_discard_outcome)
            failure = HealthCheckTimeoutError(
                HEALTH_CHECK_TIMEOUT_MESSAGE,
                details={"service": service, "timeout": self._health_timeout},
            )
        elif task.cancelled():
            failure = DiagnosticsError("Probe cancelled", details={"service": service})
        else:
            failure = task.exception()

        error = None
        if failure is not None:
            status, error = HealthStatus.DOWN, str(failure) or type(failure).__name__
        elif task.result():
            status = HealthStatus.HEALTHY
        else:
            status = HealthStatus.DEGRADED

        check = HealthCheck(
            service=service,
            status=status,
            latency=latency,
            last_check=_utcnow(),
            error=error,
        )
        self._health[service] = check

        self._metrics.record_health_check(service, status, latency)
        log_event(
            self._logger,
            LogCategory.HEALTH.value,
            "Health check completed",
            level="debug",
            service=service,
            status=status.value,
            latency_ms=round(latency, 2),
            error=error,
        )
        return check

    async def run_health_checks(self) -> list[HealthCheck]:
        """Run every registered probe concurrently; results in registration order."""
        probes = list(self._probes.items())
        return list(await asyncio.gather(*(self.check_health(name, probe) for name, probe in probes)))

    async def test_connection(self, service: str, probe: Probe) -> ConnectionTestResult:
        """
        Ad hoc connectivity test, recorded in the health registry and the log buffer.
        """
        check = await self.check_health(service, probe)
        latency = round(check.latency, 2)

        if check.status is HealthStatus.HEALTHY:
            message = f"{service} connection successful"
            self.log(LogLevel.INFO, LogCategory.CONNECTION_TEST.value, message, {"latency": latency})
            return ConnectionTestResult(success=True, message=message, latency=latency)

        message = check.error or f"{service} reported unavailable"
        self.log(
            LogLevel.ERROR,
            LogCategory.CONNECTION_TEST.value,
            f"{service} connection failed",
            {"error": message, "status": check.status.value},
        )
        return ConnectionTestResult(success=False, message=message, latency=latency)

    # -------------------------------------------------------------------------
    # Stats, reports and export
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        uptime = self._clock() - self._start_time
        with self._lock:
            counters = _Counters(**vars(self._counters))
            log_count = len(self._logs)

        return {
            "uptime": uptime,
            "uptime_formatted": format_duration(uptime),
            "error_count": counters.error_count,
            "warning_count": counters.warning_count,
            "log_count": log_count,
            "cache_hit_rate": hit_rate_percent(counters.cache_hits, counters.cache_misses),
            "health_status": aggregate_health(list(self._health.values())).value,
        }

    def _cache_summary(self) -> dict[str, Any]:
        stats: Mapping[str, Any] = {}
        if self._cache_stats_provider is not None:
            try:
                stats = self._cache_stats_provider()
            except Exception as e:
                self._logger.debug("Cache stats unavailable", category=LogCategory.CACHE.value, error=str(e))

        with self._lock:
            hits, misses = self._counters.cache_hits, self._counters.cache_misses

        return {
            "entries": stats.get("total_entries", 0),
            "size": stats.get("total_size", 0),
            "pending": stats.get("pending_requests", 0),
            "hits": hits,
            "misses": misses,
            "hit_rate": hit_rate_percent(hits, misses),
        }

    def _environment(self, health: list[HealthCheck]) -> dict[str, Any]:
        network = next((check for check in health if check.service == PROBE_NETWORK), None)

        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = None

        return {
            "python_version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "platform": platform.platform(),
            "hostname": socket.gethostname(),
            "user": user,
            "locale": locale.getlocale()[0],
            "online": network.status is HealthStatus.HEALTHY if network else None,
            "pid": os.getpid(),
            "peak_memory_kb": _peak_memory_kb(),
            "executable": sys.executable,
            "app_version": self.settings.app.APP_VERSION,
            "environment": self.settings.app.ENVIRONMENT,
        }

    async def generate_report(self) -> DiagnosticReport:
        """Re-run health checks and snapshot everything the debug console shows."""
        health = await self.run_health_checks()

        with self._lock:
            logs = list(self._logs)
            performance = list(self._performance)[-self._report_tail:]

        return DiagnosticReport(
            timestamp=_utcnow(),
            environment=self._environment(health),
            performance=performance,
            health=list(self._health.values()),
            cache=self._cache_summary(),
            errors=[encodable_log(entry) for entry in _tail(logs, LogLevel.ERROR, self._report_tail)],
            warnings=[encodable_log(entry) for entry in _tail(logs, LogLevel.WARN, self._report_tail)],
        )

    def clear(self) -> None:
        """Reset logs, metrics and counters. The health registry is kept."""
        with self._lock:
            self._logs.clear()
            self._performance.clear()
            self._counters = _Counters()

        self._persist([])
        log_event(self._logger, LogCategory.SYSTEM.value, "Debug agent cleared")

    def export_logs(self) -> str:
        """JSON document with exported timestamp, stats, logs, metrics and health."""
        with self._lock:
            logs = list(self._logs)
            performance = list(self._performance)

        payload = {
            "exported": _utcnow(),
            "stats": self.get_stats(),
            "logs": [encodable_log(entry) for entry in logs],
            "metrics": performance,
            "health": list(self._health.values()),
        }
        return orjson.dumps(payload, default=str, option=_EXPORT_OPTIONS).decode()

    @staticmethod
    def export_filename() -> str:
        return f"{EXPORT_FILENAME_PREFIX}-{int(time.time() * 1000)}.json"

    def write_export(self, directory: str | Path, payload: str | None = None) -> Path:
        """
        Write an export to a timestamp-named file.

        Args:
            directory: Target directory, created if missing
            payload: JSON document to write (default: export_logs())

        Raises:
            DiagnosticsError: The directory cannot be created or written
        """
        path = Path(directory) / self.export_filename()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(payload if payload is not None else self.export_logs(), encoding="utf-8")
        except OSError as e:
            raise DiagnosticsError.from_exception(e, "Could not write debug export", path=str(path))

        log_event(self._logger, LogCategory.SYSTEM.value, "Debug export written", path=str(path))
        return path

    # -------------------------------------------------------------------------
    # Error capture
    # -------------------------------------------------------------------------

    def install_error_capture(self, sources: list[ErrorSource] | None = None) -> list[ErrorSource]:
        """
        Register error sources that feed log().

        Sources that cannot be registered (e.g. no event loop for the asyncio
        source) are skipped. Calling again while installed is a no-op.

        Returns:
            The sources now registered
        """
        if self._error_sources:
            return list(self._error_sources)

        for source in default_error_sources() if sources is None else sources:
            try:
                source.register(self.log)
            except DiagnosticsError as e:
                self._logger.debug("Error source skipped", category=LogCategory.SYSTEM.value, source=source.name, error=str(e))
                continue
            self._error_sources.append(source)

        log_event(
            self._logger,
            LogCategory.SYSTEM.value,
            "Error capture installed",
            sources=[source.name for source in self._error_sources],
        )
        return list(self._error_sources)

    def uninstall_error_capture(self) -> None:
        """Unregister every source, most recent first."""
        for source in reversed(self._error_sources):
            source.unregister()
        self._error_sources.clear()

    @property
    def error_capture_installed(self) -> bool:
        return bool(self._error_sources)
