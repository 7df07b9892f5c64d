"""
Result Cache

In-memory cache with TTL for search responses.
Uses cachetools.TTLCache for LRU eviction and TTL expiration.

Features:
- Time-based expiration (TTL) via cachetools
- LRU eviction when max size reached
- Hit/miss statistics
- Deterministic keys from request parameters (``create_cache_key``)

The cache is owned by the search service; there is no module-level
singleton. Callers store snapshots, never live result lists.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Unserializable cache key value: {value!r}")


def create_cache_key(prefix: str, params: dict[str, Any]) -> str:
    """
    Build a deterministic key from request parameters.

    Keys are sorted and values JSON-encoded, so equal parameter dicts always
    map to the same key regardless of insertion order.

    Example:
        >>> create_cache_key("search", {"q": "rust", "limit": 10})
        'search:limit:10|q:"rust"'
    """
    parts = [
        f"{key}:{json.dumps(params[key], sort_keys=True, default=_json_default)}"
        for key in sorted(params)
    ]
    return f"{prefix}:{'|'.join(parts)}"


class ResultCache:
    """
    In-memory cache for search responses.

    Example:
        cache = ResultCache(max_size=500, ttl=300)
        cache.set(key, response.snapshot())
        hit = cache.get(key)
    """

    def __init__(
        self,
        max_size: int = 500,
        ttl: float = 300.0,  # 5 minutes default
    ):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries
            ttl: Time-to-live in seconds
        """
        self._cache: TTLCache[str, Any] = TTLCache(maxsize=max_size, ttl=ttl)
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def ttl(self) -> float:
        return self._cache.ttl

    @property
    def max_size(self) -> int:
        return int(self._cache.maxsize)

    def get(self, key: str) -> Any | None:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found/expired
        """
        try:
            value = self._cache[key]
        except KeyError:
            self._stats.misses += 1
            return None
        self._stats.hits += 1
        logger.debug(f"Cache hit: {key}")
        return value

    def set(self, key: str, value: Any) -> None:
        if key not in self._cache and len(self._cache) >= self._cache.maxsize:
            self._stats.evictions += 1
        self._cache[key] = value

    def invalidate(self, key: str) -> bool:
        """
        Invalidate cache entry.

        Returns:
            True if entry was removed
        """
        try:
            del self._cache[key]
            return True
        except KeyError:
            return False

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        count = len(self._cache)
        self._cache.clear()
        return count

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        cachetools.TTLCache handles expiration lazily on access.
        This method triggers an explicit cleanup via expire().

        Returns:
            Number of entries removed
        """
        removed = len(self._cache.expire())
        self._stats.expirations += removed
        if removed:
            logger.debug(f"Cache cleanup: removed {removed} expired entries")
        return removed

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0
