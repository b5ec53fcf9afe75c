"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tests.test_fixtures import FakeClock  # noqa: E402


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """
    Isolated settings for testing.

    Ignores .env and blanks every credential so probes never reach out.
    """
    from views_core.core.config.settings import Settings

    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        LOG_FORMAT="console",
        DEBUG_SESSION_DIR=None,
        INSTALL_ERROR_CAPTURE=False,
        GOOGLE_API_KEY=None,
        VITE_GOOGLE_AI_KEY=None,
        SUPABASE_URL=None,
        SUPABASE_ANON_KEY=None,
    )


@pytest.fixture
def fake_clock():
    """Manually advanced clock starting at t=1000s."""
    return FakeClock()


# ============================================================================
# Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def query_cache(settings, fake_clock):
    """QueryCache driven by the fake clock."""
    from views_core.infrastructure.cache.query_cache import QueryCache

    return QueryCache(clock=fake_clock, settings=settings)


@pytest.fixture
def session_store():
    from views_core.infrastructure.storage.session_store import InMemorySessionStore

    return InMemorySessionStore()


@pytest.fixture
def mock_metrics():
    """
    Mock MetricsCollector so agent tests do not depend on the global
    Prometheus registry.
    """
    from views_core.infrastructure.monitoring.metrics_collector import MetricsCollector

    return MagicMock(spec=MetricsCollector)


@pytest.fixture
def debug_agent(settings, session_store, mock_metrics, fake_clock):
    """DebugAgent with no probes, in-memory persistence and the fake clock."""
    from views_core.infrastructure.monitoring.debug_agent import DebugAgent

    return DebugAgent(
        probes={},
        session_store=session_store,
        metrics=mock_metrics,
        settings=settings,
        clock=fake_clock,
    )


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def reset_global_state():
    """Tear down the global app and session id after every test."""
    yield

    from views_core.app import reset_app
    from views_core.core.logging.logger import clear_session_id

    reset_app()
    clear_session_id()
