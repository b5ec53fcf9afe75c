#!/usr/bin/env python3
"""
Query Cache - read-through cache with request deduplication

Architecture:
    QueryCache (Public API)
        ├── CacheConfig / CacheEntry (freshness classification)
        ├── Exact / Pattern (invalidation targets)
        └── CacheObserver (hit/miss accounting, listeners, logging)

Lookup policy (per key, classified by entry age at read time):
    FRESH   (age < ttl)                 -> cached data, no fetch
    STALE   (ttl <= age < stale_time)   -> cached data + background revalidation
    EXPIRED (age >= stale_time)         -> foreground fetch
    missing / error entry               -> foreground fetch

Deduplication:
    At most one request per key is in flight at any instant. Foreground
    fetches and background revalidations share the same pending map, so a
    caller arriving while either is running joins it instead of starting
    another fetcher call.

Concurrency:
    Every map mutation below is a single synchronous step with no await in
    between. Under a single event loop that is what keeps the one-entry-per-key
    and one-pending-per-key invariants.

Author: Refactored for clarity and maintainability
Date: 2025-12-13
"""

import asyncio
import inspect
import re
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, TypeVar, Union

import orjson

from views_core.core.config.constants import (
    STALE_TIME_MULTIPLIER,
    UNSERIALIZABLE_SIZE,
    EntryStatus,
    Freshness,
    LogCategory,
)
from views_core.core.config.settings import Settings, get_settings
from views_core.core.exceptions.cache import CacheConfigError
from views_core.core.logging.logger import get_logger, log_event

logger = get_logger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Union[Awaitable[T], T]]
AccessListener = Callable[[bool], Any]


# =============================================================================
# LAYER 1: ENTRY MODEL
# Pure data - freshness policy and invalidation targets
# =============================================================================


@dataclass
class CacheConfig:
    """
    Freshness policy for a fetch() call.

    Attributes:
        ttl: Seconds an entry is served without any fetch
        stale_time: Seconds an entry is still served while revalidating
            in the background. Defaults to 2 * ttl and must be >= ttl.
    """

    ttl: float
    stale_time: float | None = None

    def __post_init__(self) -> None:
        if self.ttl <= 0:
            raise CacheConfigError("ttl must be positive", details={"ttl": self.ttl})

        if self.stale_time is None:
            self.stale_time = self.ttl * STALE_TIME_MULTIPLIER
        elif self.stale_time < self.ttl:
            raise CacheConfigError(
                "stale_time must be greater than or equal to ttl",
                details={"ttl": self.ttl, "stale_time": self.stale_time},
            ).with_suggestion("Omit stale_time to use 2 * ttl")

    def classify(self, age: float) -> Freshness:
        """Classify an entry age against this policy."""
        if age < self.ttl:
            return Freshness.FRESH
        if age < self.stale_time:
            return Freshness.STALE
        return Freshness.EXPIRED


@dataclass
class CacheEntry:
    """
    Stored outcome for one key.

    created_at is a reading of the cache's clock, not wall time.
    """

    key: str
    data: Any
    status: EntryStatus
    created_at: float
    error: BaseException | None = None

    @property
    def is_success(self) -> bool:
        return self.status is EntryStatus.SUCCESS


@dataclass(frozen=True)
class Exact:
    """Invalidate exactly one key."""

    key: str

    def matches(self, key: str) -> bool:
        return key == self.key


@dataclass(frozen=True)
class Pattern:
    """
    Invalidate every key the regular expression finds a match in.

    Usage:
        cache.invalidate(Pattern.compile(r"^assets:"))
    """

    regex: re.Pattern

    @classmethod
    def compile(cls, pattern: str, flags: int = 0) -> "Pattern":
        return cls(re.compile(pattern, flags))

    def matches(self, key: str) -> bool:
        return self.regex.search(key) is not None


InvalidationTarget = Exact | Pattern


def estimate_size(data: Any) -> int:
    """
    Best-effort payload size in bytes of its JSON encoding.

    Cyclic, oversized or otherwise unencodable payloads report
    UNSERIALIZABLE_SIZE instead of raising.
    """
    try:
        return len(orjson.dumps(data))
    except TypeError:
        # orjson.JSONEncodeError is a TypeError subclass
        return UNSERIALIZABLE_SIZE


# =============================================================================
# LAYER 2: OBSERVABILITY
# Hit/miss accounting, access listeners and logging
# =============================================================================


class CacheObserver:
    """
    Tracks lookup outcomes and notifies access listeners.

    Responsibility: All side effects of a lookup (logging, counters,
    listener fan-out). The debug agent subscribes here through
    QueryCache.add_access_listener().

    A listener that raises is logged and skipped; it never breaks fetch().
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger
        self._listeners: list[AccessListener] = []

        # Metrics
        self._hits = 0
        self._misses = 0

    def add_listener(self, listener: AccessListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: AccessListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record_lookup(self, key: str, freshness: Freshness | None) -> None:
        """
        Record the outcome of one fetch() lookup.

        Args:
            key: Cache key
            freshness: Classification of the served entry, or None on a miss
                (no entry, error entry, or expired entry)
        """
        hit = freshness in (Freshness.FRESH, Freshness.STALE)

        if freshness is Freshness.FRESH:
            self._hits += 1
            log_event(self._logger, LogCategory.CACHE.value, "Cache hit", level="debug", cache_key=key)
        elif freshness is Freshness.STALE:
            self._hits += 1
            log_event(self._logger, LogCategory.CACHE.value, "Stale cache hit", level="debug", cache_key=key)
        else:
            self._misses += 1
            log_event(self._logger, LogCategory.CACHE.value, "Cache miss", level="debug", cache_key=key)

        for listener in list(self._listeners):
            try:
                listener(hit)
            except Exception as e:
                self._logger.warning(
                    "Cache access listener failed",
                    category=LogCategory.CACHE.value,
                    error=str(e),
                )

    def get_stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "total_lookups": total,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }


# =============================================================================
# LAYER 3: PUBLIC API
# =============================================================================


class QueryCache:
    """
    Generic async memoizing cache with stale-while-revalidate.

    Usage:
        cache = QueryCache()

        assets = await cache.fetch(
            cache_keys.assets(category="video"),
            load_assets,
            CacheConfig(ttl=60),
        )

        # Optimistic write after a mutation
        cache.set(cache_keys.project(project_id), project)

        # Force the next fetch to miss
        cache.invalidate(Pattern.compile(r"^assets:"))

        stats = cache.get_stats()

    Errors:
        A failing foreground fetcher re-raises its own exception to every
        caller waiting on that request. A failing background revalidation is
        logged and dropped; the stale data stays in place.
    """

    def __init__(
        self,
        default_ttl: float | None = None,
        clock: Callable[[], float] | None = None,
        logger_instance=None,
        settings: Settings | None = None,
    ):
        """
        Args:
            default_ttl: TTL used when fetch() gets no config (seconds)
            clock: Monotonic clock in seconds (injectable for tests)
            logger_instance: Logger override
            settings: Settings override
        """
        settings = settings or get_settings()

        self._default_ttl = default_ttl or settings.cache.CACHE_DEFAULT_TTL
        self._freshness_max_age = settings.cache.CACHE_FRESHNESS_MAX_AGE
        self._clock = clock or time.monotonic
        self._logger = logger_instance or logger

        self._entries: dict[str, CacheEntry] = {}
        self._pending: dict[str, asyncio.Task] = {}
        self._observer = CacheObserver(self._logger)

    # -------------------------------------------------------------------------
    # Read-through
    # -------------------------------------------------------------------------

    async def fetch(self, key: str, fetcher: Fetcher[T], config: CacheConfig | None = None) -> T:
        """
        Return data for key, calling fetcher only when the policy requires it.

        Args:
            key: Cache key
            fetcher: Zero-argument callable returning the data or an awaitable of it
            config: Freshness policy (default: CacheConfig(ttl=default_ttl))

        Returns:
            Cached or freshly fetched data

        Raises:
            Whatever the fetcher raises, on the foreground path only
        """
        config = config or CacheConfig(ttl=self._default_ttl)

        entry = self._entries.get(key)
        if entry is not None and entry.is_success:
            freshness = config.classify(self._clock() - entry.created_at)

            if freshness is Freshness.FRESH:
                self._observer.record_lookup(key, freshness)
                return entry.data

            if freshness is Freshness.STALE:
                self._observer.record_lookup(key, freshness)
                if key not in self._pending:
                    self._start_request(key, fetcher, background=True)
                return entry.data

        self._observer.record_lookup(key, None)

        task = self._pending.get(key)
        if task is None:
            task = self._start_request(key, fetcher, background=False)
        else:
            log_event(self._logger, LogCategory.CACHE.value, "Joined in-flight request", level="debug", cache_key=key)

        # shield: one caller being cancelled must not cancel the shared request
        return await asyncio.shield(task)

    def _start_request(self, key: str, fetcher: Fetcher, background: bool) -> asyncio.Task:
        """Create the shared request task and register it before it can run."""
        task = asyncio.ensure_future(self._execute(key, fetcher))
        self._pending[key] = task

        if background:
            log_event(self._logger, LogCategory.CACHE.value, "Background revalidation started", level="debug", cache_key=key)
            task.add_done_callback(partial(self._on_revalidation_done, key))

        return task

    async def _execute(self, key: str, fetcher: Fetcher) -> Any:
        """
        Run the fetcher and apply its outcome.

        A request detached by invalidate()/clear() still resolves its own
        callers but no longer writes to the cache or the pending map.
        """
        task = asyncio.current_task()
        try:
            result = fetcher()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            if self._pending.get(key) is task:
                existing = self._entries.get(key)
                if existing is None or not existing.is_success:
                    self._entries[key] = CacheEntry(
                        key=key,
                        data=None,
                        status=EntryStatus.ERROR,
                        created_at=self._clock(),
                        error=e,
                    )
            raise
        else:
            if self._pending.get(key) is task:
                self._entries[key] = CacheEntry(
                    key=key,
                    data=result,
                    status=EntryStatus.SUCCESS,
                    created_at=self._clock(),
                )
            return result
        finally:
            if self._pending.get(key) is task:
                del self._pending[key]

    def _on_revalidation_done(self, key: str, task: asyncio.Task) -> None:
        """Log and discard the outcome of a background revalidation."""
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            log_event(
                self._logger,
                LogCategory.CACHE.value,
                "Background refresh failed",
                level="warning",
                cache_key=key,
                error=str(error),
                error_type=type(error).__name__,
            )
        else:
            log_event(self._logger, LogCategory.CACHE.value, "Background refresh complete", level="debug", cache_key=key)

    # -------------------------------------------------------------------------
    # Direct access
    # -------------------------------------------------------------------------

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        """
        Unconditionally write a successful entry (optimistic update).

        ttl is accepted for call-site symmetry with fetch(); freshness is
        always judged by the CacheConfig of the next fetch().
        """
        self._entries[key] = CacheEntry(
            key=key,
            data=data,
            status=EntryStatus.SUCCESS,
            created_at=self._clock(),
        )
        log_event(self._logger, LogCategory.CACHE.value, "Cache set", level="debug", cache_key=key, ttl=ttl)

    def get(self, key: str) -> Any | None:
        """Cached data regardless of age, or None. Never fetches."""
        entry = self._entries.get(key)
        if entry is not None and entry.is_success:
            return entry.data
        return None

    def is_fresh(self, key: str, max_age: float | None = None) -> bool:
        """True iff a successful entry exists and is younger than max_age seconds."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_success:
            return False

        max_age = self._freshness_max_age if max_age is None else max_age
        return self._clock() - entry.created_at < max_age

    def invalidate(self, target: InvalidationTarget | str) -> int:
        """
        Remove entries so the next fetch() for them calls its fetcher.

        In-flight requests for matching keys are detached as well; they
        finish for their current callers but do not write back.

        Args:
            target: Exact(key), Pattern(regex), or a plain key

        Returns:
            Number of entries removed
        """
        if isinstance(target, str):
            target = Exact(target)

        removed = [key for key in self._entries if target.matches(key)]
        for key in removed:
            del self._entries[key]

        detached = [key for key in self._pending if target.matches(key)]
        for key in detached:
            del self._pending[key]

        log_event(
            self._logger,
            LogCategory.CACHE.value,
            "Cache invalidated",
            level="debug",
            removed=len(removed),
            detached=len(detached),
        )
        return len(removed)

    def clear(self) -> None:
        """Drop every entry and detach every pending request."""
        self._entries.clear()
        self._pending.clear()
        log_event(self._logger, LogCategory.CACHE.value, "Cache cleared")

    async def wait_idle(self) -> None:
        """
        Wait for every currently pending request to settle.

        Outcomes are ignored here; they were already delivered to callers.
        """
        tasks = list(self._pending.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def add_access_listener(self, listener: AccessListener) -> None:
        """Subscribe to lookup outcomes: listener(True) on hit, listener(False) on miss."""
        self._observer.add_listener(listener)

    def remove_access_listener(self, listener: AccessListener) -> None:
        self._observer.remove_listener(listener)

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """
        Snapshot of the cache contents.

        Returns:
            Dict with total_entries, pending_requests, total_size and a
            per-entry list of key, age (seconds) and size (bytes)
        """
        now = self._clock()
        entries = []
        total_size = 0

        for key, entry in list(self._entries.items()):
            size = estimate_size(entry.data)
            total_size += size
            entries.append({
                "key": key,
                "age": round(now - entry.created_at, 3),
                "size": size,
            })

        return {
            "total_entries": len(entries),
            "pending_requests": len(self._pending),
            "total_size": total_size,
            "entries": entries,
        }

    def lookup_stats(self) -> dict[str, Any]:
        """Hit/miss counters kept by the cache itself."""
        return self._observer.get_stats()
