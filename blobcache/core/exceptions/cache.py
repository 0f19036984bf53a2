"""
Cache-Related Exceptions

Raised by the metadata and blob stores. The cache engine absorbs every one
of these at its public boundary and reports absence/failure instead.
"""

from blobcache.core.exceptions.base import BlobCacheError


class CacheError(BlobCacheError):
    """Base exception for cache storage errors."""
    pass


class CacheStorageError(CacheError):
    """
    Raised when a filesystem operation on a cache entry fails.

    Common causes:
    - Disk full
    - Permission denied
    - Cache directory removed underneath the engine
    """
    pass


class CacheSerializationError(CacheError):
    """
    Raised when a metadata record or object payload cannot be encoded/decoded.

    Common causes:
    - Truncated or hand-edited metadata file
    - Object not JSON serializable
    - Payload does not match the requested model type
    """
    pass


class SchedulerError(BlobCacheError):
    """Raised when the cleanup scheduler is misused (e.g. bad interval)."""
    pass
