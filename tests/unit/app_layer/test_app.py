"""
Unit Tests for the Composition Root

Tests that create_app() wires the cache into the agent and that the global
instance and lifespan tear everything down.
"""

import asyncio
import sys

import pytest

from tests.test_fixtures import CacheTestFactory, ProbeTestFactory
from views_core.app import create_app, get_app, lifespan, reset_app
from views_core.infrastructure.cache import cache_keys


@pytest.mark.integration
class TestCreateApp:
    """Test create_app() wiring."""

    @pytest.fixture
    def core(self, settings, session_store, fake_clock):
        core = create_app(
            settings,
            probes={"network": ProbeTestFactory.healthy()},
            session_store=session_store,
            clock=fake_clock,
        )
        yield core
        core.close()

    @pytest.mark.asyncio
    async def test_cache_lookups_reach_agent(self, core):
        fetcher = CacheTestFactory.counting_fetcher({"id": "u1"})

        await core.cache.fetch(cache_keys.user("u1"), fetcher)
        await core.cache.fetch(cache_keys.user("u1"), fetcher)

        assert fetcher.calls == 1
        assert core.agent.get_stats()["cache_hit_rate"] == 50

    @pytest.mark.asyncio
    async def test_report_includes_cache_contents(self, core):
        await core.cache.fetch(cache_keys.project("p1"), CacheTestFactory.counting_fetcher("project"))

        report = await core.agent.generate_report()

        assert report.cache["entries"] == 1
        assert report.cache["misses"] == 1
        assert report.environment["online"] is True

    @pytest.mark.asyncio
    async def test_listener_removed_on_close(self, settings, session_store):
        core = create_app(settings, probes={}, session_store=session_store)
        core.close()

        await core.cache.fetch(cache_keys.user("u1"), CacheTestFactory.counting_fetcher())

        assert core.cache.lookup_stats()["misses"] == 1
        report = await core.agent.generate_report()
        assert report.cache["misses"] == 0

    def test_error_capture_installed_on_request(self, settings, session_store):
        original = sys.excepthook
        core = create_app(settings, install_error_capture=True, probes={}, session_store=session_store)

        assert core.agent.error_capture_installed
        assert sys.excepthook is not original

        core.close()

        assert not core.agent.error_capture_installed
        assert sys.excepthook is original

    def test_error_capture_follows_settings(self, settings, session_store):
        core = create_app(settings, probes={}, session_store=session_store)

        assert not core.agent.error_capture_installed
        core.close()


@pytest.mark.unit
class TestGlobalApp:
    """Test get_app() / reset_app()."""

    def test_singleton_and_reset(self, settings, monkeypatch):
        monkeypatch.setattr("views_core.app.get_settings", lambda: settings)

        first = get_app()
        assert get_app() is first

        reset_app()

        assert get_app() is not first

    def test_reset_without_app_is_noop(self):
        reset_app()
        reset_app()


@pytest.mark.integration
class TestLifespan:
    """Test the lifespan context manager."""

    @pytest.mark.asyncio
    async def test_waits_for_pending_fetches(self, settings):
        gate = CacheTestFactory.gated_fetcher("late")

        async with lifespan(settings) as core:
            pending = core.cache.fetch(cache_keys.stats("daily"), gate)
            task = asyncio.ensure_future(pending)
            await asyncio.sleep(0)
            gate.release()

        assert await task == "late"
        assert core.cache.get_stats()["pending_requests"] == 0
