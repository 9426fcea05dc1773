"""
Cache Layer

A key -> (value, stored_at, ttl) store with lazy expiry. Entries are only
removed when they are read after expiring; there is no background sweep.
Engine operations depend on the AnalyticsCache port so the in-memory store
can be swapped for a shared cache without touching aggregation logic.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalyticsCache(ABC):
    """Port for caching computed aggregations. A miss is reported as None."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key, overwriting any previous entry."""

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop entries whose key starts with prefix. Caches that cannot enumerate keys drop nothing."""
        return 0


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    ttl: float


class InMemoryCache(AnalyticsCache):
    """Process-local cache with eviction-on-read."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize the cache.

        Args:
            clock: Optional monotonic time source in seconds, defaults to time.monotonic
        """
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() - entry.stored_at >= entry.ttl:
            # Another reader may have evicted it already
            self._entries.pop(key, None)
            self._misses += 1
            logger.debug(f"Cache entry expired: {key}")
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Analytics cache cleared")

    def invalidate_prefix(self, prefix: str) -> int:
        """
        Drop every entry whose key starts with prefix.

        Returns:
            Number of entries removed
        """
        matching = [key for key in list(self._entries) if key.startswith(prefix)]
        for key in matching:
            self._entries.pop(key, None)
        logger.info(f"Invalidated {len(matching)} cache entries matching prefix: {prefix}")
        return len(matching)

    def stats(self) -> Dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups * 100, 1) if lookups else 0.0,
        }

    def __len__(self) -> int:
        return len(self._entries)


def build_cache_key(name: str, org_id: str, *parts: Any) -> str:
    """Build a deterministic key from a metric name, scope and parameters."""
    return ":".join([name, str(org_id)] + ["None" if part is None else str(part) for part in parts])


def get_or_compute(
    cache: AnalyticsCache, key: str, ttl_seconds: float, compute: Callable[[], T]
) -> T:
    """Read-through helper: return a cached value or compute and store it."""
    cached = cache.get(key)
    if cached is not None:
        logger.debug(f"Cache hit: {key}")
        return cached

    value = compute()
    if value is not None:
        cache.set(key, value, ttl_seconds)
    return value


_default_cache: Optional[InMemoryCache] = None


def get_default_cache() -> InMemoryCache:
    """Return the process-wide cache, creating it on first use."""
    global _default_cache
    if _default_cache is None:
        _default_cache = InMemoryCache()
    return _default_cache
