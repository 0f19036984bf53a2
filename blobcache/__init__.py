"""
blobcache

Persistent key-value cache with expiry, tags, an LRU memory layer,
change observation and scheduled cleanup of expired entries.
"""

from blobcache.application.factory import create_cache, create_cleanup_scheduler, open_cache
from blobcache.core.config.cache_config import CacheConfig
from blobcache.core.config.constants import NEVER_EXPIRE, CachePreset, CacheStrategy
from blobcache.core.models.cache import CacheMetadata, CacheStatistics
from blobcache.infrastructure.cache.cache_manager import CacheManager
from blobcache.infrastructure.scheduling.cleanup_scheduler import CleanupScheduler

__version__ = "1.0.0"

__all__ = [
    "CacheConfig",
    "CacheManager",
    "CacheMetadata",
    "CachePreset",
    "CacheStatistics",
    "CacheStrategy",
    "CleanupScheduler",
    "NEVER_EXPIRE",
    "create_cache",
    "create_cleanup_scheduler",
    "open_cache",
]
