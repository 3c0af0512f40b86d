"""Keyed result cache with absolute and sliding expiration.

The aggregation engine and the provider registry depend on the
``ResultCache`` interface only. ``MemoryResultCache`` serves a single
process; a shared external store can implement the same three methods
for multi-instance deployments.
"""

import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import cachetools

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_MAX_ENTRIES = 128
"""Default capacity of the in-process cache."""


# =============================================================================
# INTERFACE
# =============================================================================


class ResultCache(ABC):
    """Keyed cache honoring absolute and sliding expiration.

    A miss is reported as ``None``, never as an error. Implementations
    must be safe for concurrent callers and must replace values whole.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the live value for ``key`` or None."""

    @abstractmethod
    def set(
        self,
        key: str,
        value: Any,
        absolute_ttl: float | None = None,
        sliding_ttl: float | None = None,
    ) -> None:
        """Store ``value`` under ``key``.

        Args:
            key: Cache key.
            value: Value to store (replaces any previous value).
            absolute_ttl: Seconds after which the entry expires regardless of use.
            sliding_ttl: Seconds of inactivity after which the entry expires.
        """

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Drop ``key`` if present."""


# =============================================================================
# IN-PROCESS IMPLEMENTATION
# =============================================================================


@dataclass
class _CacheEntry:
    """Stored value with its expiration policy.

    Attributes:
        value: Cached value.
        absolute_ttl: Absolute lifetime in seconds (None = unbounded).
        sliding_ttl: Idle lifetime in seconds (None = disabled).
        last_access: Timer value of the last store or hit.
    """

    value: Any
    absolute_ttl: float | None
    sliding_ttl: float | None
    last_access: float

    def is_idle(self, now: float) -> bool:
        """Check whether the sliding window has elapsed."""
        if self.sliding_ttl is None:
            return False
        return now - self.last_access >= self.sliding_ttl


def _time_to_use(_key: str, entry: _CacheEntry, now: float) -> float:
    """Absolute deadline consumed by ``cachetools.TLRUCache``."""
    if entry.absolute_ttl is None:
        return math.inf
    return now + entry.absolute_ttl


class MemoryResultCache(ResultCache):
    """In-process cache backed by ``cachetools.TLRUCache``.

    ``TLRUCache`` enforces the absolute deadline per entry; the sliding
    window is checked on every read and refreshed on every hit. A lock
    guards the underlying cache, which is not thread-safe by itself.

    Attributes:
        maxsize: Maximum number of entries kept (LRU eviction beyond).
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            maxsize: Maximum number of entries.
            timer: Monotonic clock in seconds (injectable for tests).
        """
        self.maxsize = maxsize
        self._timer = timer
        self._lock = threading.RLock()
        self._store: cachetools.TLRUCache = cachetools.TLRUCache(
            maxsize=maxsize,
            ttu=_time_to_use,
            timer=timer,
        )

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry: _CacheEntry | None = self._store.get(key)
            if entry is None:
                return None

            now = self._timer()
            if entry.is_idle(now):
                self._store.pop(key, None)
                return None

            entry.last_access = now
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        absolute_ttl: float | None = None,
        sliding_ttl: float | None = None,
    ) -> None:
        entry = _CacheEntry(
            value=value,
            absolute_ttl=absolute_ttl,
            sliding_ttl=sliding_ttl,
            last_access=self._timer(),
        )
        with self._lock:
            self._store[key] = entry

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            self._store.expire()
            return len(self._store)
