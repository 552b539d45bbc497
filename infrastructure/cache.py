"""In-memory result cache for interactive analysis sessions.

Maps a session parameter tuple (buffer fingerprint, trim range, window
length/kind, channel) to the ``AnalysisViews`` computed for it, so dragging a
slider back to a previous position republishes instantly instead of
recomputing.

Cache key = SHA-256(repr(parameter tuple)). Entries expire after a TTL and
the least recently used entry is evicted when the cache is full. Cached
values are immutable result objects, so handing the same instance to
several readers is safe.

Usage::

    from infrastructure.cache import ResultCache

    cache = ResultCache(max_size=32)
    views = cache.get(params.cache_key())
    if views is None:
        views = analyze(params)
        cache.put(params.cache_key(), views)
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from collections.abc import Hashable
from dataclasses import dataclass
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Cached result with metadata."""

    value: Any
    timestamp: float  # time.monotonic() when cached
    key_repr: str  # parameter tuple, for debugging


def _make_key(key: Hashable) -> str:
    """Deterministic cache key from a parameter tuple.

    Args:
        key: Tuple of plain values (strings, numbers, None, nested tuples).

    Returns:
        Hex-encoded SHA-256 of the tuple's repr.
    """
    return hashlib.sha256(repr(key).encode("utf-8")).hexdigest()


class ResultCache:
    """
    Thread-safe result cache with TTL and LRU eviction.

    Args:
        max_size: Maximum number of entries (default: 32). 0 disables caching.
        ttl_seconds: Time-to-live in seconds (default: 600).
    """

    def __init__(self, max_size: int = 32, ttl_seconds: float = 600.0) -> None:
        """Initialize cache with size and TTL limits."""
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = Lock()

    def get(self, key: Hashable) -> Any | None:
        """
        Retrieve a cached result if present and not expired.

        Args:
            key: Parameter tuple.

        Returns:
            The cached value, or None on miss / expiry.
        """
        digest = _make_key(key)

        with self._lock:
            entry = self._cache.get(digest)
            if entry is None:
                return None

            if time.monotonic() - entry.timestamp > self.ttl_seconds:
                del self._cache[digest]
                logger.debug("ResultCache EXPIRED: %s", entry.key_repr[:80])
                return None

            # Mark as recently used
            self._cache.move_to_end(digest)
            logger.debug("ResultCache HIT: %s", entry.key_repr[:80])
            return entry.value

    def put(self, key: Hashable, value: Any) -> None:
        """
        Store a result with the current timestamp.

        Evicts the least-recently-used entry if the cache is full.

        Args:
            key: Parameter tuple.
            value: Immutable result object.
        """
        if self.max_size <= 0:
            return
        digest = _make_key(key)

        with self._lock:
            if len(self._cache) >= self.max_size and digest not in self._cache:
                self._cache.popitem(last=False)

            self._cache[digest] = CacheEntry(
                value=value,
                timestamp=time.monotonic(),
                key_repr=repr(key),
            )
            self._cache.move_to_end(digest)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        """Return current number of cached entries."""
        with self._lock:
            return len(self._cache)

    def evict_expired(self) -> int:
        """
        Remove all expired entries based on TTL.

        Returns:
            Number of entries evicted
        """
        now = time.monotonic()

        with self._lock:
            expired = [
                digest
                for digest, entry in self._cache.items()
                if (now - entry.timestamp) > self.ttl_seconds
            ]
            for digest in expired:
                del self._cache[digest]

        return len(expired)
