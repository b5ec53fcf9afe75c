"""
Unit Tests for Configuration Settings

Tests the settings loading, validation, and default values.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from views_core.core.config import constants
from views_core.core.config.settings import Settings, get_settings, reload_settings


@pytest.mark.unit
class TestSettingsDefaults:
    """Test Settings defaults and grouped views."""

    def test_cache_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.cache.CACHE_DEFAULT_TTL == constants.DEFAULT_CACHE_TTL == 300.0
        assert settings.cache.CACHE_FRESHNESS_MAX_AGE == constants.DEFAULT_FRESHNESS_MAX_AGE

    def test_diagnostics_defaults(self):
        diagnostics = Settings(_env_file=None).diagnostics

        assert diagnostics.DEBUG_MAX_LOGS == 500
        assert diagnostics.DEBUG_MAX_METRICS == 100
        assert diagnostics.DEBUG_PERSISTED_LOGS == 50
        assert diagnostics.HEALTH_CHECK_TIMEOUT == 10.0
        assert diagnostics.RENDER_BUDGET_MS == 16.0

    def test_probe_defaults(self):
        probes = Settings(_env_file=None, GOOGLE_API_KEY=None, VITE_GOOGLE_AI_KEY=None).probes

        assert probes.GOOGLE_API_KEY is None
        assert probes.MCP_URL.startswith("https://")
        assert probes.NETWORK_PROBE_PORT == 53

    def test_app_defaults(self):
        app = Settings(_env_file=None, ENVIRONMENT="test").app

        assert app.ENVIRONMENT == "test"
        assert app.APP_VERSION


@pytest.mark.unit
class TestSettingsValidation:
    """Test field validation."""

    def test_log_level_uppercased(self):
        assert Settings(_env_file=None, LOG_LEVEL="debug").logging.LOG_LEVEL == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="VERBOSE")

    @pytest.mark.parametrize("field", ["CACHE_DEFAULT_TTL", "HEALTH_CHECK_TIMEOUT", "DEBUG_MAX_LOGS"])
    def test_non_positive_values_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: 0})

    def test_invalid_environment_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ENVIRONMENT="qa")


@pytest.mark.unit
class TestEnvironmentLoading:
    """Test environment variable overrides."""

    def test_env_overrides(self):
        env = {"DEBUG_MAX_LOGS": "42", "SUPABASE_URL": "https://project.supabase.co"}

        with patch.dict(os.environ, env):
            settings = Settings(_env_file=None)

        assert settings.diagnostics.DEBUG_MAX_LOGS == 42
        assert settings.probes.SUPABASE_URL == "https://project.supabase.co"

    def test_alternative_google_key_name(self):
        with patch.dict(os.environ, {"VITE_GOOGLE_AI_KEY": "AIzaSyExampleKey123"}):
            os.environ.pop("GOOGLE_API_KEY", None)
            settings = Settings(_env_file=None)

        assert settings.probes.GOOGLE_API_KEY == "AIzaSyExampleKey123"

    def test_primary_google_key_wins(self):
        settings = Settings(_env_file=None, GOOGLE_API_KEY="primary-key-value", VITE_GOOGLE_AI_KEY="other-key")

        assert settings.GOOGLE_API_KEY == "primary-key-value"


@pytest.mark.unit
class TestSettingsSingleton:
    """Test get_settings() / reload_settings()."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reload_replaces_instance(self):
        before = get_settings()

        after = reload_settings()

        assert after is not before
        assert get_settings() is after
