"""
Configuration Module

Components:
-----------
- **constants.py**: Sentinels, durations, sizes, enums (Stage, CacheStrategy, CachePreset)
- **cache_config.py**: Immutable per-engine CacheConfig and its presets
- **settings.py**: Environment-driven process settings (pydantic-settings)

Usage:
------
```python
from blobcache.core.config import CacheConfig, get_settings

config = CacheConfig.short_term()
config = get_settings().to_cache_config()
```
"""

from blobcache.core.config.cache_config import CacheConfig
from blobcache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    "CacheConfig",
    "Settings",
    "get_settings",
    "reload_settings",
]
