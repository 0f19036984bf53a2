from blobcache.core.models.cache import (
    CacheEntry,
    CacheMetadata,
    CacheStatistics,
    Clock,
    now_ms,
)

__all__ = [
    "CacheEntry",
    "CacheMetadata",
    "CacheStatistics",
    "Clock",
    "now_ms",
]
