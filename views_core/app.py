#!/usr/bin/env python3
"""
Composition Root

Builds the process-wide QueryCache and DebugAgent, wires cache lookups into
the agent's hit/miss counters and installs error capture.

Usage:
    core = get_app()
    data = await core.cache.fetch(cache_keys.user(user_id), load_user)
    stats = core.agent.get_stats()

    # Scripts and tests
    async with lifespan() as core:
        report = await core.agent.generate_report()

Author: Senior Solution Architect
Date: 2025-12-13
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, Mapping

from views_core.core.config.settings import Settings, get_settings
from views_core.core.logging.logger import get_logger, setup_logging
from views_core.infrastructure.cache.query_cache import QueryCache
from views_core.infrastructure.monitoring.debug_agent import DebugAgent
from views_core.infrastructure.monitoring.probes import Probe, build_default_probes
from views_core.infrastructure.storage.session_store import SessionStore, build_session_store

logger = get_logger(__name__)


@dataclass
class ViewsCore:
    """The wired service instances."""

    settings: Settings
    session_store: SessionStore
    cache: QueryCache
    agent: DebugAgent

    async def shutdown(self) -> None:
        """Let pending fetches settle, then detach the agent and restore error hooks."""
        await self.cache.wait_idle()
        self.close()

    def close(self) -> None:
        self.cache.remove_access_listener(self.agent.record_cache_access)
        self.agent.uninstall_error_capture()
        logger.info("Views core shut down", category="system")


def create_app(
    settings: Settings | None = None,
    install_error_capture: bool | None = None,
    probes: Mapping[str, Probe] | None = None,
    session_store: SessionStore | None = None,
    clock: Callable[[], float] | None = None,
) -> ViewsCore:
    """
    Build and wire a fresh set of services.

    Args:
        settings: Settings override (default: global settings)
        install_error_capture: Override INSTALL_ERROR_CAPTURE
        probes: Named probes (default: build_default_probes())
        session_store: Session store override
        clock: Monotonic clock shared by cache and agent

    Returns:
        ViewsCore: Wired services
    """
    settings = settings or get_settings()

    setup_logging(
        log_level=settings.logging.LOG_LEVEL,
        log_format=settings.logging.LOG_FORMAT,
    )

    store = session_store or build_session_store(settings.diagnostics.DEBUG_SESSION_DIR)
    if probes is None:
        probes = build_default_probes(settings, store)

    cache = QueryCache(clock=clock, settings=settings)
    agent = DebugAgent(
        cache_stats_provider=cache.get_stats,
        probes=probes,
        session_store=store,
        settings=settings,
        clock=clock,
    )
    cache.add_access_listener(agent.record_cache_access)

    if install_error_capture is None:
        install_error_capture = settings.diagnostics.INSTALL_ERROR_CAPTURE
    if install_error_capture:
        agent.install_error_capture()

    logger.info(
        "Views core started",
        category="system",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
        probes=agent.probe_names,
    )
    return ViewsCore(settings=settings, session_store=store, cache=cache, agent=agent)


# Global instance (singleton pattern)
_app: ViewsCore | None = None


def get_app() -> ViewsCore:
    """Get the process-wide services, building them on first use."""
    global _app

    if _app is None:
        _app = create_app()

    return _app


def reset_app() -> None:
    """
    Tear down the global instance so the next get_app() rebuilds it.

    Restores every error hook; pending fetches of the old cache are not awaited.
    """
    global _app

    if _app is not None:
        _app.close()
        _app = None


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    install_error_capture: bool | None = None,
    probes: Mapping[str, Probe] | None = None,
    session_store: SessionStore | None = None,
):
    """
    Run with a dedicated set of services, shutting them down on exit.

    Arguments are passed through to create_app().
    """
    core = create_app(
        settings,
        install_error_capture=install_error_capture,
        probes=probes,
        session_store=session_store,
    )
    try:
        yield core
    finally:
        await core.shutdown()
