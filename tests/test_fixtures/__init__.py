"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import CacheTestFactory, CountingFetcher, GatedFetcher
from .clock import FakeClock
from .probe_factory import ProbeTestFactory

__all__ = ["CacheTestFactory", "CountingFetcher", "FakeClock", "GatedFetcher", "ProbeTestFactory"]
