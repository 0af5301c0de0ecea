#!/usr/bin/env python3
"""
Query Caching
In-memory TTL cache for query results, used to avoid refetching the same
data within a short window.
"""

import os
import time
import hashlib
import threading
from typing import Dict, Optional, Any, Callable
from dataclasses import dataclass
from functools import wraps

import structlog

from api.monitoring_logging import CACHE_OPERATIONS

# Configuration
class CacheConfig:
    """Configuration for the query cache."""

    DEFAULT_TTL = float(os.getenv("QUERY_CACHE_TTL", "300"))  # 5 minutes
    MAX_ENTRIES = int(os.getenv("QUERY_CACHE_MAX_ENTRIES", "1024"))

config = CacheConfig()

# Setup logging
logger = structlog.get_logger(__name__)

CACHE_TYPE = "memory"


@dataclass
class CacheKey:
    """Structured cache key."""
    prefix: str
    identifier: str
    version: str = "v1"

    def __str__(self) -> str:
        return f"{self.prefix}:{self.version}:{self.identifier}"


@dataclass
class CacheEntry:
    """Cached value with the time it was stored."""
    data: Any
    timestamp: float


@dataclass
class CacheStats:
    """Cache statistics."""
    hit_count: int = 0
    miss_count: int = 0
    error_count: int = 0
    eviction_count: int = 0
    entry_count: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hit_count + self.miss_count
        return self.hit_count / total if total > 0 else 0.0


class QueryCache:
    """Thread-safe in-memory cache with per-call TTL."""

    def __init__(self, default_ttl: Optional[float] = None, max_entries: Optional[int] = None,
                 clock: Callable[[], float] = time.time):
        """
        Initialize query cache.

        Args:
            default_ttl: Time-to-live in seconds for get_or_fetch
            max_entries: Oldest entries are evicted beyond this size
            clock: Time source in seconds
        """
        self.default_ttl = config.DEFAULT_TTL if default_ttl is None else default_ttl
        self.max_entries = max_entries or config.MAX_ENTRIES
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.stats = CacheStats()

    def get_or_fetch(self, key: str, fetch: Callable[[], Any], ttl: Optional[float] = None) -> Any:
        """
        Return a cached value younger than the TTL, otherwise fetch and cache it.

        A failing fetch caches nothing and the exception propagates.

        Args:
            key: Unique cache key for this query
            fetch: Function producing fresh data
            ttl: Time-to-live in seconds, defaults to the cache default

        Returns:
            Cached or freshly fetched data
        """
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry.timestamp < ttl:
                self.stats.hit_count += 1
                CACHE_OPERATIONS.labels(operation="get", cache_type=CACHE_TYPE, result="hit").inc()
                return entry.data
            self.stats.miss_count += 1
            CACHE_OPERATIONS.labels(operation="get", cache_type=CACHE_TYPE, result="miss").inc()

        try:
            data = fetch()
        except Exception as e:
            with self._lock:
                self.stats.error_count += 1
            CACHE_OPERATIONS.labels(operation="fetch", cache_type=CACHE_TYPE, result="error").inc()
            logger.warning("Query fetch failed", key=key, error=str(e))
            raise

        self._store(key, data, now)
        return data

    def set(self, key: str, data: Any):
        """Store data under a key, stamped with the current time."""
        self._store(key, data, self._clock())

    def get(self, key: str) -> Optional[Any]:
        """Get cached data without triggering a fetch or checking the TTL."""
        with self._lock:
            entry = self._entries.get(key)
        return entry.data if entry is not None else None

    def clear(self, key: Optional[str] = None):
        """Clear one cache entry, or every entry when no key is given."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
            self.stats.entry_count = len(self._entries)
        CACHE_OPERATIONS.labels(operation="clear", cache_type=CACHE_TYPE, result="success").inc()

    def get_stats(self) -> CacheStats:
        with self._lock:
            self.stats.entry_count = len(self._entries)
            return self.stats

    def _store(self, key: str, data: Any, timestamp: float):
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(data=data, timestamp=timestamp)
            while len(self._entries) > self.max_entries:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                self.stats.eviction_count += 1
            self.stats.entry_count = len(self._entries)
        CACHE_OPERATIONS.labels(operation="set", cache_type=CACHE_TYPE, result="success").inc()


def cache_result(cache: QueryCache, ttl: Optional[float] = None, key_prefix: str = "cache"):
    """Decorator to cache function results in a QueryCache."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            key_data = f"{func.__name__}:{str(args)}:{str(sorted(kwargs.items()))}"
            cache_key = str(CacheKey(key_prefix, hashlib.sha256(key_data.encode()).hexdigest()))
            return cache.get_or_fetch(cache_key, lambda: func(*args, **kwargs), ttl)

        return wrapper
    return decorator


# Global instance
query_cache = QueryCache()
