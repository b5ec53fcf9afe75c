"""
Cache Test Factory

Fetchers with observable call counts and controllable completion for
QueryCache tests.
"""

import asyncio
from typing import Any


class CountingFetcher:
    """Async fetcher returning .value (or raising .error) and counting calls."""

    def __init__(self, value: Any = None, error: BaseException | None = None):
        self.value = value
        self.error = error
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.value


class GatedFetcher(CountingFetcher):
    """
    Fetcher that blocks until release() is called.

    Lets a test hold a request in flight while it issues more fetches.
    """

    def __init__(self, value: Any = None, error: BaseException | None = None):
        super().__init__(value, error)
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self) -> Any:
        self.calls += 1
        await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.value


class CacheTestFactory:
    """Factory for creating cache test objects."""

    @staticmethod
    def counting_fetcher(value: Any = "data") -> CountingFetcher:
        return CountingFetcher(value=value)

    @staticmethod
    def failing_fetcher(message: str = "fetch failed") -> CountingFetcher:
        return CountingFetcher(error=RuntimeError(message))

    @staticmethod
    def gated_fetcher(value: Any = "data", error: BaseException | None = None) -> GatedFetcher:
        return GatedFetcher(value=value, error=error)

    @staticmethod
    def cache_stats(total_entries: int = 3, total_size: int = 120, pending_requests: int = 1) -> dict[str, Any]:
        """Stats shaped like QueryCache.get_stats()."""
        return {
            "total_entries": total_entries,
            "pending_requests": pending_requests,
            "total_size": total_size,
            "entries": [],
        }
