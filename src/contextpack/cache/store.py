"""In-memory content cache keyed by canonical path spec.

The cache is the only state shared across fetches, so it is internally
synchronized:

- a short global lock guards the key->lock map and the entry table
- each key has its own lock, serializing the check/expire/insert sequence
  for that key without blocking other keys; a key's lock is dropped with
  its entry (or after a miss), so the lock map never outgrows the entries

Expiry is lazy (checked on get) plus an opportunistic sweep that can run as
an asyncio background task.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


# =============================================================================
# ENTRY
# =============================================================================


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Cached content for one spec key. Immutable once inserted."""

    key: str
    """Canonical PathSpec key (includes the ref)."""

    content: bytes
    """Raw file content."""

    fetched_at: float
    """Monotonic timestamp of the fetch."""

    ttl: float
    """Lifetime in seconds."""

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    def is_expired(self, now: float) -> bool:
        return now - self.fetched_at > self.ttl

    def age(self, now: float) -> float:
        return now - self.fetched_at


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time counters."""

    entries: int
    hits: int
    misses: int
    writes: int
    evictions: int
    bytes_cached: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, int | float]:
        return {
            "entries": self.entries,
            "hits": self.hits,
            "misses": self.misses,
            "writes": self.writes,
            "evictions": self.evictions,
            "bytes_cached": self.bytes_cached,
            "hit_rate": self.hit_rate,
        }


# =============================================================================
# CONTENT CACHE
# =============================================================================


class ContentCache:
    """TTL cache of fetched file content.

    Example:
        >>> cache = ContentCache(ttl=60)
        >>> _ = cache.put("owner/repo:README.md@main", b"# hi")
        >>> entry, hit = cache.get("owner/repo:README.md@main")
        >>> hit, entry.content
        (True, b'# hi')
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        *,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")

        self.default_ttl = ttl
        self.max_entries = max_entries
        self._clock = clock

        self._entries: dict[str, CacheEntry] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._map_lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._evictions = 0

        self._sweeper: asyncio.Task[None] | None = None

    def _lock_for(self, key: str) -> threading.Lock:
        with self._map_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    # -------------------------------------------------------------------------
    # Lookup / insert
    # -------------------------------------------------------------------------

    def get(self, key: str) -> tuple[CacheEntry | None, bool]:
        """Look up a key, evicting it if expired.

        Returns:
            (entry, True) on a live hit, (None, False) otherwise.
        """
        with self._lock_for(key):
            now = self._clock()
            with self._map_lock:
                entry = self._entries.get(key)
                if entry is not None and entry.is_expired(now):
                    del self._entries[key]
                    self._evictions += 1
                    logger.debug("Cache entry expired: %s (age %.1fs)", key, entry.age(now))
                    entry = None
                if entry is None:
                    self._key_locks.pop(key, None)
                    self._misses += 1
                    return None, False
                self._hits += 1
            logger.debug("Cache hit: %s", key)
            return entry, True

    def put(self, key: str, content: bytes, ttl: float | None = None) -> CacheEntry:
        """Insert or replace content for a key."""
        entry = CacheEntry(
            key=key,
            content=content,
            fetched_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        with self._lock_for(key):
            with self._map_lock:
                self._entries.pop(key, None)
                if self.max_entries is not None:
                    while len(self._entries) >= self.max_entries:
                        oldest = next(iter(self._entries))
                        del self._entries[oldest]
                        self._key_locks.pop(oldest, None)
                        self._evictions += 1
                        logger.debug("Cache full, evicted oldest entry %s", oldest)
                self._entries[key] = entry
                self._writes += 1
        return entry

    def __contains__(self, key: object) -> bool:
        """Presence check without touching stats; expired entries count as absent."""
        with self._map_lock:
            entry = self._entries.get(key) if isinstance(key, str) else None
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._entries)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate(self, pattern: str) -> int:
        """Drop every entry whose key starts with or contains ``pattern``.

        Returns:
            Number of entries removed.
        """
        with self._map_lock:
            doomed = [key for key in self._entries if pattern in key]
            for key in doomed:
                del self._entries[key]
                self._key_locks.pop(key, None)
        if doomed:
            logger.info("Invalidated %d cache entries matching %r", len(doomed), pattern)
        return len(doomed)

    def sweep(self) -> int:
        """Evict all expired entries.

        Returns:
            Number of entries evicted.
        """
        now = self._clock()
        with self._map_lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
                self._key_locks.pop(key, None)
            self._evictions += len(expired)
        if expired:
            logger.debug("Sweep evicted %d expired entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Remove all entries and reset counters."""
        with self._map_lock:
            self._entries.clear()
            self._key_locks.clear()
            self._hits = 0
            self._misses = 0
            self._writes = 0
            self._evictions = 0

    @property
    def stats(self) -> CacheStats:
        with self._map_lock:
            return CacheStats(
                entries=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                writes=self._writes,
                evictions=self._evictions,
                bytes_cached=sum(entry.size_bytes for entry in self._entries.values()),
            )

    # -------------------------------------------------------------------------
    # Background sweep
    # -------------------------------------------------------------------------

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start_sweeper(self, interval: float = 300.0) -> None:
        """Run sweep() every ``interval`` seconds on the current event loop.

        Must be called from a running loop. Calling it twice is a no-op.
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if self.sweeper_running:
            return

        async def _loop() -> None:
            while True:
                await asyncio.sleep(interval)
                self.sweep()

        self._sweeper = asyncio.get_running_loop().create_task(_loop())
        logger.debug("Cache sweeper started (interval %.0fs)", interval)

    async def stop_sweeper(self) -> None:
        """Cancel the background sweep task, if any."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Cache sweeper stopped")
