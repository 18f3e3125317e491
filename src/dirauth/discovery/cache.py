"""
dirauth Discovery Cache

Time-bounded, size-bounded cache for server discovery results.

Entries expire a fixed time after insertion and the least recently used
entry is evicted once capacity is exceeded. Thread-safe for concurrent
requests resolving the same or different domains.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

import attrs
import structlog

logger = structlog.get_logger()

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@attrs.define(frozen=True, slots=True)
class CacheEntry(Generic[V]):
    """A cached value and the monotonic time it was stored."""

    value: V
    inserted_at: float

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.inserted_at >= ttl_seconds


@attrs.define
class TTLCache(Generic[K, V]):
    """
    LRU cache with expire-after-write semantics.

    Example:
        cache = TTLCache(ttl_seconds=3600, max_entries=1000)

        servers = cache.get_or_compute("corp.example", lambda: lookup("corp.example"))
    """

    ttl_seconds: float = 3600.0
    max_entries: int = 1000

    # Monotonic clock, injectable for tests
    clock: Callable[[], float] = time.monotonic

    # Internal state
    _entries: "OrderedDict[K, CacheEntry[V]]" = attrs.Factory(OrderedDict)
    _lock: threading.RLock = attrs.Factory(threading.RLock)
    _hits: int = 0
    _misses: int = 0
    _logger: structlog.BoundLogger = attrs.Factory(lambda: structlog.get_logger())

    def get(self, key: K) -> Optional[V]:
        """Return the live value for key, or None if absent or expired."""
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def get_entry(self, key: K) -> Optional[CacheEntry[V]]:
        """Return the live entry for key, dropping it if expired."""
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(now, self.ttl_seconds):
                del self._entries[key]
                self._misses += 1
                self._logger.debug("cache_entry_expired", key=key)
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return entry

    def put(self, key: K, value: V) -> CacheEntry[V]:
        """Store value under key, replacing any existing entry."""
        with self._lock:
            return self._put_locked(key, value, not_before=None)

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        """
        Return the cached value for key, computing and storing it on a miss.

        ``compute`` runs outside the lock so slow lookups for one key do
        not block other keys. Two callers racing on the same key may both
        compute; the first write wins and the second caller receives the
        stored value.
        """
        entry = self.get_entry(key)
        if entry is not None:
            return entry.value

        started = self.clock()
        value = compute()

        with self._lock:
            return self._put_locked(key, value, not_before=started).value

    def _put_locked(
        self, key: K, value: V, not_before: Optional[float]
    ) -> CacheEntry[V]:
        """
        Insert under the lock.

        When ``not_before`` is given, a live entry inserted at or after that
        time is kept and returned instead of being overwritten.
        """
        now = self.clock()
        existing = self._entries.get(key)
        if (
            existing is not None
            and not_before is not None
            and existing.inserted_at >= not_before
            and not existing.is_expired(now, self.ttl_seconds)
        ):
            self._entries.move_to_end(key)
            return existing

        entry = CacheEntry(value=value, inserted_at=now)
        self._entries[key] = entry
        self._entries.move_to_end(key)

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._logger.debug("cache_entry_evicted", key=evicted)

        return entry

    def invalidate(self, key: K) -> bool:
        """Remove key; returns True if it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """
        Clear all entries from cache.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    @property
    def size(self) -> int:
        """Current number of entries (expired ones included until touched)."""
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, float]:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
            }

    def keys(self) -> Tuple[K, ...]:
        """Keys in LRU order (least recently used first)."""
        with self._lock:
            return tuple(self._entries.keys())
