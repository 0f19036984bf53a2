"""
Exception Module

Structured exception hierarchy for blobcache.

Module Structure:
-----------------
- **base.py**: BlobCacheError base class + ConfigurationError
- **cache.py**: Storage, serialization and scheduler exceptions

Usage:
------
```python
from blobcache.core.exceptions import CacheStorageError, CacheSerializationError
```
"""

from blobcache.core.exceptions.base import BlobCacheError, ConfigurationError
from blobcache.core.exceptions.cache import (
    CacheError,
    CacheSerializationError,
    CacheStorageError,
    SchedulerError,
)

__all__ = [
    "BlobCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheStorageError",
    "CacheSerializationError",
    "SchedulerError",
]
