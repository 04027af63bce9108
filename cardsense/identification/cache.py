"""
Result Cache

Time-bounded memoization of catalog lookups:
- Entries keyed by normalized query text
- Expired entries read as absent
- At most one in-flight load per key
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, Union

from loguru import logger


@dataclass
class CacheEntry:
    """Single cache entry."""

    key: str
    value: Any
    inserted_at: float  # seconds, from the cache clock


class ResultCache:
    """
    In-memory TTL cache.

    Writes overwrite unconditionally. Entries leave only through expiry
    checks or clear().

    Usage:
        cache = ResultCache(ttl=timedelta(hours=24))
        cards = await cache.get_or_load("search:lightning bolt", lambda: client.search(name))
    """

    DEFAULT_TTL = timedelta(hours=24)

    def __init__(
        self,
        ttl: Union[timedelta, float, None] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            ttl: Entry lifetime, as a timedelta or seconds
            clock: Time source in seconds
        """
        if ttl is None:
            ttl = self.DEFAULT_TTL
        self.ttl_seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        # Per-key load locks, dropped once no caller holds or waits on them
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}
        self._hits = 0
        self._misses = 0

        logger.info(f"ResultCache initialized: ttl={self.ttl_seconds:.0f}s")

    @staticmethod
    def normalize_key(query: str) -> str:
        """Case- and whitespace-insensitive cache key."""
        return " ".join(query.lower().split())

    def is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.inserted_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        """
        Cached value for key, or None when missing or expired.
        """
        key = self.normalize_key(key)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self.is_expired(entry):
            logger.debug(f"Cache entry expired: {key}")
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    def put(self, key: str, value: Any) -> None:
        key = self.normalize_key(key)
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value or run loader once and cache its result.

        Concurrent callers for the same key wait for the first load instead
        of starting their own. Loader exceptions propagate and nothing is
        cached.
        """
        key = self.normalize_key(key)
        entry = self._entries.get(key)
        if entry is not None and not self.is_expired(entry):
            self._hits += 1
            return entry.value

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                # Another caller may have filled it while we waited
                entry = self._entries.get(key)
                if entry is not None and not self.is_expired(entry):
                    self._hits += 1
                    return entry.value

                self._misses += 1
                value = await loader()
                self.put(key, value)
                return value
        finally:
            self._waiters[key] -= 1
            if not self._waiters[key]:
                del self._waiters[key]
                self._locks.pop(key, None)

    def clear_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        expired = [key for key, entry in self._entries.items() if self.is_expired(entry)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        logger.info("Cache cleared")

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(self.normalize_key(key))
        return entry is not None and not self.is_expired(entry)

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def hit_rate(self) -> float:
        total = self._hits + self._misses
        if total == 0:
            return 0.0
        return self._hits / total

    def stats(self) -> dict:
        """Get cache statistics."""
        return {
            "size": len(self._entries),
            "ttl_seconds": self.ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self.hit_rate,
        }
