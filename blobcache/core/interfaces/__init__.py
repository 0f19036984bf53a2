"""
Core interfaces package.

Protocol definitions for dependency injection and testability.
"""

from blobcache.core.interfaces.cache import CacheEngine, SupportsExpiredCleanup

__all__ = [
    "CacheEngine",
    "SupportsExpiredCleanup",
]
