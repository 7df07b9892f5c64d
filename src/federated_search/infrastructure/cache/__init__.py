"""
Cache Infrastructure

Provides the TTL cache for search responses.
"""

from __future__ import annotations

from federated_search.infrastructure.cache.result_cache import (
    CacheStats,
    ResultCache,
    create_cache_key,
)

__all__ = [
    "CacheStats",
    "ResultCache",
    "create_cache_key",
]
