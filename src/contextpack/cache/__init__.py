"""Content cache with TTL expiry."""

from contextpack.cache.store import DEFAULT_TTL_SECONDS, CacheEntry, CacheStats, ContentCache

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "CacheStats",
    "ContentCache",
]
