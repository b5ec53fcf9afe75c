"""
Cache Module

Provides the in-process read-through query cache.
"""

from . import cache_keys
from .query_cache import (
    CacheConfig,
    CacheEntry,
    Exact,
    InvalidationTarget,
    Pattern,
    QueryCache,
    estimate_size,
)

__all__ = [
    "CacheConfig",
    "CacheEntry",
    "Exact",
    "InvalidationTarget",
    "Pattern",
    "QueryCache",
    "cache_keys",
    "estimate_size",
]
