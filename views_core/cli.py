#!/usr/bin/env python3
"""
Debug Console (views-debug)

Command-line counterpart of the portal's in-browser debug helpers. Every
command builds a dedicated set of services, runs, and prints JSON to stdout.

stats, logs and export read the debug log tail persisted under
DEBUG_SESSION_DIR by the running process; the console never overwrites it.

Usage:
    views-debug stats
    views-debug health
    views-debug report
    views-debug logs --level error --limit 20
    views-debug test google-ai
    views-debug export --output ./debug
    views-debug metrics

Author: Senior Solution Architect
Date: 2025-12-13
"""

import argparse
import asyncio
import sys
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import orjson

from views_core.app import ViewsCore, lifespan
from views_core.core.config.constants import DEFAULT_LOG_QUERY_LIMIT, HealthStatus, LogLevel
from views_core.core.config.settings import Settings, get_settings
from views_core.core.exceptions.base import ViewsBaseError
from views_core.infrastructure.monitoring.debug_agent import read_persisted_logs
from views_core.infrastructure.monitoring.metrics_collector import get_metrics_collector
from views_core.infrastructure.monitoring.probes import build_default_probes
from views_core.infrastructure.storage.session_store import (
    InMemorySessionStore,
    SessionStore,
    build_session_store,
)


class ExitCode(Enum):
    """Standardized exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    CHECK_FAILED = 2


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="views-debug",
        description="Views caching and diagnostics console",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s stats                        # Counters over the persisted log tail
  %(prog)s health                       # Run every health probe
  %(prog)s report                       # Full diagnostic report
  %(prog)s logs --level error           # Persisted log tail, errors only
  %(prog)s test supabase                # Ad hoc connectivity test
  %(prog)s export --output ./debug      # Write views-debug-<ms>.json
  %(prog)s metrics                      # Prometheus text exposition
        """,
    )

    parser.add_argument(
        "--log-level",
        default="ERROR",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Level for diagnostic log lines mixed into stdout (default: ERROR)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("stats", help="Counters over the persisted log tail")
    subparsers.add_parser("health", help="Run health checks (exit 2 if any is down)")
    subparsers.add_parser("report", help="Generate a diagnostic report")

    logs_parser = subparsers.add_parser("logs", help="Show the persisted log tail")
    logs_parser.add_argument("--level", choices=[level.value for level in LogLevel], help="Filter by level")
    logs_parser.add_argument("--category", help="Filter by category")
    logs_parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LOG_QUERY_LIMIT,
        metavar="N",
        help=f"Most recent N entries (default: {DEFAULT_LOG_QUERY_LIMIT})",
    )

    test_parser = subparsers.add_parser("test", help="Test one named probe (exit 2 on failure)")
    test_parser.add_argument("service", help="Probe name, e.g. google-ai")

    export_parser = subparsers.add_parser("export", help="Write the persisted log tail and fresh health checks to a JSON file")
    export_parser.add_argument("--output", "-o", default=".", metavar="DIR", help="Target directory (default: .)")

    subparsers.add_parser("metrics", help="Run health checks, then print Prometheus metrics")

    return parser


def _dump(payload: Any) -> str:
    return orjson.dumps(payload, default=str, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode()


def _filter_persisted(logs: list[dict[str, Any]], level: str | None, category: str | None, limit: int) -> list[dict[str, Any]]:
    if limit <= 0:
        return []
    filtered = [
        entry for entry in logs
        if (level is None or entry.get("level") == level)
        and (category is None or entry.get("category") == category)
    ]
    return filtered[-limit:]


def summarize_logs(logs: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Counters over a persisted log tail.

    Returns:
        Dict with log_count, error_count, warning_count, per-category counts
        and the first/last entry timestamps (None when the tail is empty)
    """
    return {
        "log_count": len(logs),
        "error_count": sum(1 for entry in logs if entry.get("level") == LogLevel.ERROR.value),
        "warning_count": sum(1 for entry in logs if entry.get("level") == LogLevel.WARN.value),
        "categories": dict(Counter(entry.get("category") for entry in logs)),
        "first": logs[0].get("timestamp") if logs else None,
        "last": logs[-1].get("timestamp") if logs else None,
    }


async def run_command(
    args: argparse.Namespace,
    core: ViewsCore,
    tail_store: SessionStore | None = None,
) -> tuple[Any, ExitCode]:
    """
    Execute one parsed command against wired services.

    Args:
        args: Parsed command line
        core: Services the command runs against
        tail_store: Store holding the debug log tail to read (default: core.session_store)

    Returns:
        (payload, exit code); payload is bytes for raw output, anything else is JSON-encoded
    """
    agent = core.agent
    if tail_store is None:
        tail_store = core.session_store

    if args.command == "stats":
        return summarize_logs(read_persisted_logs(tail_store)), ExitCode.SUCCESS

    if args.command == "health":
        checks = await agent.run_health_checks()
        failed = any(check.status is HealthStatus.DOWN for check in checks)
        return checks, ExitCode.CHECK_FAILED if failed else ExitCode.SUCCESS

    if args.command == "report":
        return await agent.generate_report(), ExitCode.SUCCESS

    if args.command == "logs":
        logs = _filter_persisted(read_persisted_logs(tail_store), args.level, args.category, args.limit)
        return logs, ExitCode.SUCCESS

    if args.command == "test":
        probes = agent.probes
        if args.service not in probes:
            return {"success": False, "message": f"Unknown probe: {args.service}", "available": list(probes)}, ExitCode.GENERAL_ERROR
        result = await agent.test_connection(args.service, probes[args.service])
        return result, ExitCode.SUCCESS if result.success else ExitCode.CHECK_FAILED

    if args.command == "export":
        logs = read_persisted_logs(tail_store)
        document = {
            "exported": datetime.now(timezone.utc),
            "stats": summarize_logs(logs),
            "logs": logs,
            "health": await agent.run_health_checks(),
        }
        path = agent.write_export(args.output, _dump(document))
        return {"path": str(path)}, ExitCode.SUCCESS

    if args.command == "metrics":
        await agent.run_health_checks()
        return get_metrics_collector().get_prometheus_metrics(), ExitCode.SUCCESS

    raise ValueError(f"Unknown command: {args.command}")


async def _main_async(args: argparse.Namespace, settings: Settings) -> int:
    tail_store = build_session_store(settings.diagnostics.DEBUG_SESSION_DIR)
    probes = build_default_probes(settings, tail_store)

    # The console's own agent logs to memory; the persisted tail is only read
    async with lifespan(
        settings,
        install_error_capture=False,
        probes=probes,
        session_store=InMemorySessionStore(),
    ) as core:
        payload, code = await run_command(args, core, tail_store)

    if isinstance(payload, bytes):
        sys.stdout.write(payload.decode())
    else:
        sys.stdout.write(_dump(payload) + "\n")
    return code.value


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = get_settings().model_copy(update={"LOG_LEVEL": args.log_level})

    try:
        return asyncio.run(_main_async(args, settings))
    except KeyboardInterrupt:
        sys.stderr.write("Operation interrupted by user\n")
        return ExitCode.GENERAL_ERROR.value
    except ViewsBaseError as e:
        sys.stderr.write(_dump(e.to_dict()) + "\n")
        return ExitCode.GENERAL_ERROR.value


if __name__ == "__main__":
    sys.exit(main())
