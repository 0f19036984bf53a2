"""
Cache Test Factory

Creates cache configurations, engines and engine mocks for testing.
"""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from blobcache.core.config.cache_config import CacheConfig
from blobcache.core.models.cache import CacheMetadata, CacheStatistics


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class CacheTestFactory:
    """Factory for creating cache test objects."""

    @staticmethod
    def config(**overrides: Any) -> CacheConfig:
        """Test configuration: 1 s default TTL, 3-entry memory layer, no auto-clean."""
        values = {
            "root_dir_name": "test_cache",
            "default_expire_time_ms": 1000,
            "enable_memory_cache": True,
            "max_memory_cache_entries": 3,
            "auto_clean_expired": False,
        }
        values.update(overrides)
        return CacheConfig(**values)

    @staticmethod
    def metadata(key: str = "key", **overrides: Any) -> CacheMetadata:
        values = {"key": key, "create_time": 1_000, "expire_time": -1, "size": 0}
        values.update(overrides)
        return CacheMetadata(**values)

    @staticmethod
    def mock_cache_engine(store: dict[str, str] | None = None) -> MagicMock:
        """
        Mock engine backed by a dict of string values.

        Metadata records are kept in engine.metadata for tests to inspect or
        pre-populate.
        """
        from blobcache.infrastructure.cache.cache_manager import CacheManager

        data = dict(store or {})
        metadata: dict[str, CacheMetadata] = {
            key: CacheMetadata(key=key) for key in data
        }

        engine = MagicMock(spec=CacheManager)
        engine.data = data
        engine.metadata = metadata

        async def get_string(key):
            return data.get(key)

        async def put_string(key, value, ttl_ms=None, **kwargs):
            data[key] = value
            metadata[key] = CacheMetadata(key=key, tags=frozenset(kwargs.get("tags") or ()))
            return True

        async def contains(key):
            return key in data

        async def get_metadata(key, include_expired=False):
            return metadata.get(key)

        async def set_tags(key, tags):
            if key not in metadata:
                return False
            metadata[key] = metadata[key].model_copy(update={"tags": frozenset(tags)})
            return True

        async def update_expire_time(key, expire_time):
            if key not in metadata:
                return False
            metadata[key] = metadata[key].model_copy(update={"expire_time": expire_time})
            return True

        async def get_all_keys():
            return list(metadata)

        engine.get_string = AsyncMock(side_effect=get_string)
        engine.put_string = AsyncMock(side_effect=put_string)
        engine.contains = AsyncMock(side_effect=contains)
        engine.get_metadata = AsyncMock(side_effect=get_metadata)
        engine.set_tags = AsyncMock(side_effect=set_tags)
        engine.update_expire_time = AsyncMock(side_effect=update_expire_time)
        engine.get_all_keys = AsyncMock(side_effect=get_all_keys)
        engine.get_statistics = AsyncMock(return_value=CacheStatistics(hit_count=3, miss_count=1))
        engine.clear_expired = AsyncMock(return_value=0)
        engine.config = CacheTestFactory.config()
        engine.cache_dir = Path("/tmp/mock_cache")
        return engine
