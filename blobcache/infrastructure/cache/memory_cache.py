"""
Memory Cache

Bounded in-memory LRU layer in front of the disk store.

It only ever holds copies: disk is the source of truth, and nothing in
here deletes from disk. Each entry carries the metadata it was read or
written with, so the engine can validate expiry without touching disk.
"""

import asyncio
from collections import OrderedDict

from blobcache.core.config.constants import DEFAULT_MAX_MEMORY_ENTRIES
from blobcache.core.models.cache import CacheEntry, CacheMetadata


class LRUMemoryCache:
    """
    In-memory LRU cache storage.

    Responsibility: Fast, task-safe in-memory storage with LRU eviction.

    Implementation Details:
    - Uses OrderedDict for O(1) access and LRU ordering
    - Guarded by its own asyncio.Lock, independent of the engine's write lock
    - Evicts the least recently touched entry when over capacity
    - Tracks hits/misses of its own for performance monitoring

    A max_size of 0 disables storage entirely: every set is a no-op.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_MEMORY_ENTRIES):
        """
        Initialize LRU cache.

        Args:
            max_size: Maximum number of entries to store
        """
        if max_size < 0:
            raise ValueError("max_size must be >= 0")
        self._max_size = max_size
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> CacheEntry | None:
        """
        Get entry from cache and mark it most recently used.

        Args:
            key: Cache key

        Returns:
            Cached entry or None if not found
        """
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None
            self._cache.move_to_end(key)
            self._hits += 1
            return entry

    async def peek(self, key: str) -> CacheEntry | None:
        """Get entry without updating recency or counters."""
        async with self._lock:
            return self._cache.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        """
        Set entry in cache. Evicts LRU entries while over capacity.

        Args:
            key: Cache key
            entry: Value plus its metadata
        """
        async with self._lock:
            if self._max_size == 0:
                return
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = entry

            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    async def update_metadata(self, key: str, metadata: CacheMetadata) -> bool:
        """
        Replace the metadata of a resident entry, keeping its value and position.

        Returns:
            True if the key was resident
        """
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return False
            self._cache[key] = CacheEntry(value=entry.value, metadata=metadata)
            return True

    async def delete(self, key: str) -> bool:
        """
        Delete entry from cache.

        Returns:
            True if deleted, False if not found
        """
        async with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    async def clear(self) -> None:
        """Clear all entries and reset counters."""
        async with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_size(self) -> int:
        """Get current number of entries in cache."""
        return len(self._cache)

    def get_max_size(self) -> int:
        """Get maximum capacity."""
        return self._max_size

    def get_keys(self) -> list[str]:
        """
        Get all cache keys.

        Returns:
            List of keys in LRU order (oldest first, newest last)
        """
        return list(self._cache.keys())

    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "size": len(self._cache),
            "max_size": self._max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total > 0 else 0.0,
        }
