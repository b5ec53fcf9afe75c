#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
caching and diagnostics core. All tunables (cache TTLs, ring buffer
capacities, probe endpoints, logging) are centralized here.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms

Author: System Architect
Date: 2025-12-05
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from views_core.core.config.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_FRESHNESS_MAX_AGE,
    HEALTH_CHECK_TIMEOUT,
    MAX_DEBUG_LOGS,
    MAX_PERFORMANCE_METRICS,
    PERSISTED_LOG_COUNT,
    RENDER_BUDGET_MS,
    REPORT_TAIL_SIZE,
)


class CacheSettings(BaseSettings):
    """
    Query cache configuration.

    Durations are seconds.
    """

    CACHE_DEFAULT_TTL: float = Field(default=DEFAULT_CACHE_TTL, gt=0, description="Default entry TTL")
    CACHE_FRESHNESS_MAX_AGE: float = Field(
        default=DEFAULT_FRESHNESS_MAX_AGE, gt=0, description="Default is_fresh() window"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class DiagnosticsSettings(BaseSettings):
    """
    Debug agent configuration.

    Ring buffer capacities, report sizes and the health probe timeout.
    """

    DEBUG_MAX_LOGS: int = Field(default=MAX_DEBUG_LOGS, gt=0, description="Log ring buffer capacity")
    DEBUG_MAX_METRICS: int = Field(
        default=MAX_PERFORMANCE_METRICS, gt=0, description="Metric ring buffer capacity"
    )
    DEBUG_PERSISTED_LOGS: int = Field(
        default=PERSISTED_LOG_COUNT, ge=0, description="Log tail persisted to the session store"
    )
    DEBUG_REPORT_TAIL: int = Field(default=REPORT_TAIL_SIZE, gt=0, description="Entries per report section")
    DEBUG_SESSION_DIR: str | None = Field(
        default=None, description="Directory for the file session store (in-memory if unset)"
    )
    HEALTH_CHECK_TIMEOUT: float = Field(default=HEALTH_CHECK_TIMEOUT, gt=0, description="Probe timeout (s)")
    RENDER_BUDGET_MS: float = Field(default=RENDER_BUDGET_MS, gt=0, description="measure_render threshold")
    INSTALL_ERROR_CAPTURE: bool = Field(default=True, description="Install global error hooks at startup")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ProbeSettings(BaseSettings):
    """
    Endpoints and credentials checked by the default health probes.

    Only presence of the AI key is checked; it is never sent anywhere.
    """

    GOOGLE_API_KEY: str | None = Field(default=None, description="Google AI API key")
    SUPABASE_URL: str | None = Field(default=None, description="Metadata control-plane URL")
    SUPABASE_ANON_KEY: str | None = Field(default=None, description="Metadata control-plane anon key")
    MCP_URL: str = Field(default="https://mcp.elevenviews.io", description="Storage control-plane URL")
    NETWORK_PROBE_HOST: str = Field(default="1.1.1.1", description="Host used for the network probe")
    NETWORK_PROBE_PORT: int = Field(default=53, description="Port used for the network probe")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Views Core", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from views_core.core.config.settings import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_DEFAULT_TTL
        timeout = settings.diagnostics.HEALTH_CHECK_TIMEOUT
    """

    # Cache settings
    CACHE_DEFAULT_TTL: float = Field(default=DEFAULT_CACHE_TTL, gt=0, description="Default entry TTL")
    CACHE_FRESHNESS_MAX_AGE: float = Field(
        default=DEFAULT_FRESHNESS_MAX_AGE, gt=0, description="Default is_fresh() window"
    )

    # Diagnostics settings
    DEBUG_MAX_LOGS: int = Field(default=MAX_DEBUG_LOGS, gt=0, description="Log ring buffer capacity")
    DEBUG_MAX_METRICS: int = Field(
        default=MAX_PERFORMANCE_METRICS, gt=0, description="Metric ring buffer capacity"
    )
    DEBUG_PERSISTED_LOGS: int = Field(
        default=PERSISTED_LOG_COUNT, ge=0, description="Log tail persisted to the session store"
    )
    DEBUG_REPORT_TAIL: int = Field(default=REPORT_TAIL_SIZE, gt=0, description="Entries per report section")
    DEBUG_SESSION_DIR: str | None = Field(
        default=None, description="Directory for the file session store (in-memory if unset)"
    )
    HEALTH_CHECK_TIMEOUT: float = Field(default=HEALTH_CHECK_TIMEOUT, gt=0, description="Probe timeout (s)")
    RENDER_BUDGET_MS: float = Field(default=RENDER_BUDGET_MS, gt=0, description="measure_render threshold")
    INSTALL_ERROR_CAPTURE: bool = Field(default=True, description="Install global error hooks at startup")

    # Probe settings
    GOOGLE_API_KEY: str | None = Field(default=None, description="Google AI API key")
    VITE_GOOGLE_AI_KEY: str | None = Field(default=None, description="Google AI API key (alternative)")
    SUPABASE_URL: str | None = Field(default=None, description="Metadata control-plane URL")
    SUPABASE_ANON_KEY: str | None = Field(default=None, description="Metadata control-plane anon key")
    MCP_URL: str = Field(default="https://mcp.elevenviews.io", description="Storage control-plane URL")
    NETWORK_PROBE_HOST: str = Field(default="1.1.1.1", description="Host used for the network probe")
    NETWORK_PROBE_PORT: int = Field(default=53, description="Port used for the network probe")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Views Core", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    @model_validator(mode="after")
    def merge_google_keys(self):
        """Fall back to the frontend-style key name when GOOGLE_API_KEY is unset."""
        if self.GOOGLE_API_KEY is None and self.VITE_GOOGLE_AI_KEY:
            self.GOOGLE_API_KEY = self.VITE_GOOGLE_AI_KEY
        return self

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration objects
    @property
    def cache(self) -> "CacheSettings":
        """Get cache settings."""
        return CacheSettings(
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
            CACHE_FRESHNESS_MAX_AGE=self.CACHE_FRESHNESS_MAX_AGE,
        )

    @property
    def diagnostics(self) -> "DiagnosticsSettings":
        """Get debug agent settings."""
        return DiagnosticsSettings(
            DEBUG_MAX_LOGS=self.DEBUG_MAX_LOGS,
            DEBUG_MAX_METRICS=self.DEBUG_MAX_METRICS,
            DEBUG_PERSISTED_LOGS=self.DEBUG_PERSISTED_LOGS,
            DEBUG_REPORT_TAIL=self.DEBUG_REPORT_TAIL,
            DEBUG_SESSION_DIR=self.DEBUG_SESSION_DIR,
            HEALTH_CHECK_TIMEOUT=self.HEALTH_CHECK_TIMEOUT,
            RENDER_BUDGET_MS=self.RENDER_BUDGET_MS,
            INSTALL_ERROR_CAPTURE=self.INSTALL_ERROR_CAPTURE,
        )

    @property
    def probes(self) -> "ProbeSettings":
        """Get health probe settings."""
        return ProbeSettings(
            GOOGLE_API_KEY=self.GOOGLE_API_KEY,
            SUPABASE_URL=self.SUPABASE_URL,
            SUPABASE_ANON_KEY=self.SUPABASE_ANON_KEY,
            MCP_URL=self.MCP_URL,
            NETWORK_PROBE_HOST=self.NETWORK_PROBE_HOST,
            NETWORK_PROBE_PORT=self.NETWORK_PROBE_PORT,
        )

    @property
    def logging(self) -> "LoggingSettings":
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT,
        )

    @property
    def app(self) -> "ApplicationSettings":
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
