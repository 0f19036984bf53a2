"""
Integration Tests for the Cache Lifecycle

Wall-clock tests exercising expiry, sweeping, scheduled cleanup, restart
persistence and concurrent access against a real cache directory.
"""

import asyncio

import pytest

from blobcache.application.factory import open_cache
from blobcache.core.config.constants import NEVER_EXPIRE
from blobcache.infrastructure.cache.cache_manager import CacheManager
from blobcache.infrastructure.scheduling.cleanup_scheduler import CleanupScheduler
from tests.test_fixtures.cache_factory import CacheTestFactory


@pytest.mark.integration
class TestExpiryLifecycle:
    """Test expiry with real time passing."""

    @pytest.mark.asyncio
    async def test_one_second_expiry(self, real_time_cache):
        cache = real_time_cache
        assert await cache.put_string("a", "hello") is True
        assert await cache.put_string("b", "world") is True
        assert await cache.get_string("a") == "hello"

        await asyncio.sleep(1.1)

        # Reading "a" deletes it; "b" is only removed by the sweep
        assert await cache.get_string("a") is None
        assert await cache.get_cache_count() == 1
        assert await cache.clear_expired() == 1
        assert await cache.get_cache_count() == 0

    @pytest.mark.asyncio
    async def test_scheduler_sweeps_expired_entries(self, real_time_cache):
        cache = real_time_cache
        await cache.put_string("short", "v", ttl_ms=50)
        await cache.put_string("long", "v", ttl_ms=NEVER_EXPIRE)

        scheduler = CleanupScheduler(cache, interval_ms=100, retry_initial_delay=0.01)
        await scheduler.start()
        await asyncio.sleep(0.35)
        await scheduler.stop()

        assert scheduler.run_count >= 1
        assert await cache.get_all_keys() == ["long"]


@pytest.mark.integration
class TestPersistence:
    """Test that disk is the source of truth across engine instances."""

    @pytest.mark.asyncio
    async def test_entries_survive_restart(self, tmp_path):
        config = CacheTestFactory.config(default_expire_time_ms=60_000)
        first = CacheManager(config, base_dir=tmp_path)
        await first.put_string("text", "persisted", tags=["keep"])
        await first.put_bytes("blob", b"\x00\xff")
        await first.put_object("obj", {"n": 1})
        await first.shutdown()

        second = CacheManager(config, base_dir=tmp_path)

        assert await second.get_string("text") == "persisted"
        assert await second.get_bytes("blob") == b"\x00\xff"
        assert await second.get_object("obj") == {"n": 1}
        assert await second.get_keys_by_tag("keep") == ["text"]
        assert await second.get_cache_count() == 3

    @pytest.mark.asyncio
    async def test_orphaned_blob_is_treated_as_absent(self, tmp_path):
        manager = CacheManager(CacheTestFactory.config(enable_memory_cache=False), base_dir=tmp_path)
        await manager.put_string("k", "v")
        for meta in manager.metadata_dir.iterdir():
            meta.unlink()

        assert await manager.contains("k") is False
        assert await manager.get_string("k") is None
        assert await manager.remove("k") is True

    @pytest.mark.asyncio
    async def test_orphaned_metadata_is_treated_as_absent(self, tmp_path):
        manager = CacheManager(CacheTestFactory.config(enable_memory_cache=False), base_dir=tmp_path)
        await manager.put_string("k", "v")
        (await manager.get_file("k")).unlink()

        assert await manager.contains("k") is False
        assert await manager.get_string("k") is None


@pytest.mark.integration
class TestConcurrency:
    """Test concurrent callers on one engine."""

    @pytest.mark.asyncio
    async def test_concurrent_writers_and_readers(self, real_time_cache):
        cache = real_time_cache

        async def writer(i: int) -> bool:
            return await cache.put_string(f"key-{i % 5}", f"value-{i}")

        async def reader(i: int) -> str | None:
            return await cache.get_string(f"key-{i % 5}")

        results = await asyncio.gather(
            *(writer(i) for i in range(50)),
            *(reader(i) for i in range(50)),
        )

        assert all(results[:50])
        for value in results[50:]:
            assert value is None or value.startswith("value-")
        assert await cache.get_cache_count() == 5
        for i in range(5):
            assert (await cache.get_string(f"key-{i}")).startswith("value-")

    @pytest.mark.asyncio
    async def test_sweep_does_not_delete_refreshed_key(self, tmp_path):
        config = CacheTestFactory.config(enable_memory_cache=False)
        cache = CacheManager(config, base_dir=tmp_path)
        await cache.put_string("k", "old", ttl_ms=1)
        await asyncio.sleep(0.01)

        # Refresh concurrently with the sweep; whichever runs first, a fresh
        # write must never be removed
        removed, stored = await asyncio.gather(
            cache.clear_expired(),
            cache.put_string("k", "new", ttl_ms=60_000),
        )

        assert stored is True
        assert removed in (0, 1)
        assert await cache.get_string("k") == "new"

    @pytest.mark.asyncio
    async def test_observer_follows_writes(self, real_time_cache):
        cache = real_time_cache
        seen = []
        done = asyncio.Event()

        async def observe():
            async for value in cache.observe_key("live"):
                seen.append(value)
                if value == "final":
                    done.set()
                    return

        task = asyncio.create_task(observe())
        await asyncio.sleep(0.01)
        await cache.put_string("live", "first")
        await asyncio.sleep(0.01)
        await cache.put_string("live", "final")

        await asyncio.wait_for(done.wait(), timeout=1.0)
        await task

        assert seen[0] is None
        assert seen[-1] == "final"


@pytest.mark.integration
class TestManagedCache:
    @pytest.mark.asyncio
    async def test_open_cache_runs_scheduled_cleanup(self, isolated_settings, tmp_path):
        config = CacheTestFactory.config(auto_clean_expired=True, cleanup_interval_ms=100)

        async with open_cache(config, base_dir=tmp_path) as cache:
            await cache.put_string("k", "v", ttl_ms=20)
            await asyncio.sleep(0.35)
            assert await cache.get_cache_count() == 0
