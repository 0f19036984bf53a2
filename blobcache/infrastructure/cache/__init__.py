"""
Cache Module

Persistent disk cache with an LRU memory layer.
"""

from .cache_manager import CacheManager
from .change_notifier import ChangeNotifier
from .memory_cache import LRUMemoryCache

__all__ = [
    "CacheManager",
    "ChangeNotifier",
    "LRUMemoryCache",
]
