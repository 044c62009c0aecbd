"""Short-lived cache for store lookups."""

import logging
import threading
from typing import Any, Callable, Hashable

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class StoreQueryCache:
    """
    TTL cache for interaction store lookups.

    Instances are passed explicitly to the store that uses them. A cache
    created per request isolates that request completely; a longer-lived
    instance can be shared between requests to reuse corpus-wide lookups
    for at most ``ttl_seconds``.
    """

    def __init__(self, ttl_seconds: float = 300, maxsize: int = 10_000):
        self.ttl_seconds = ttl_seconds
        self.maxsize = maxsize
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, calling loader on a miss.

        The loader runs outside the lock, so two threads missing on the
        same key may both load it; the last result wins. Loader exceptions
        propagate and nothing is cached.

        Args:
            key: Hashable cache key (tuples recommended)
            loader: Zero-argument callable producing the value

        Returns:
            Cached or freshly loaded value
        """
        with self._lock:
            if key in self._cache:
                self.hits += 1
                return self._cache[key]
            self.misses += 1

        value = loader()

        with self._lock:
            self._cache[key] = value
        return value

    def clear(self):
        """Drop all cached entries."""
        with self._lock:
            self._cache.clear()

    def __len__(self):
        with self._lock:
            return len(self._cache)

    def __repr__(self):
        return f"<StoreQueryCache(ttl={self.ttl_seconds}, size={len(self)}, hits={self.hits}, misses={self.misses})>"
