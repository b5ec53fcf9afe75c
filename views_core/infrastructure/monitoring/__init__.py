"""
Monitoring Module

Debug agent, error capture sources, default health probes and the
Prometheus mirror.
"""

from .debug_agent import (
    ConnectionTestResult,
    DebugAgent,
    DebugLog,
    DiagnosticReport,
    HealthCheck,
    PerformanceMetric,
    read_persisted_logs,
)
from .error_capture import (
    AsyncioErrorSource,
    ErrorSink,
    ErrorSource,
    ExceptHookSource,
    LoggingErrorSource,
    ManualErrorSource,
    WarningsErrorSource,
    default_error_sources,
)
from .metrics_collector import MetricsCollector, get_metrics_collector
from .probes import Probe, ServiceProbes, build_default_probes

__all__ = [
    "AsyncioErrorSource",
    "ConnectionTestResult",
    "DebugAgent",
    "DebugLog",
    "DiagnosticReport",
    "ErrorSink",
    "ErrorSource",
    "ExceptHookSource",
    "HealthCheck",
    "LoggingErrorSource",
    "ManualErrorSource",
    "MetricsCollector",
    "PerformanceMetric",
    "Probe",
    "ServiceProbes",
    "WarningsErrorSource",
    "build_default_probes",
    "default_error_sources",
    "get_metrics_collector",
    "read_persisted_logs",
]
