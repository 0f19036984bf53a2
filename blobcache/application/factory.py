"""
Cache Factory

Explicit construction of cache engines and their cleanup schedulers.

Each call returns a new, independently owned instance; there is no
process-wide registry. Several named caches are simply several objects.

Usage:
    cache = create_cache(CacheConfig.image())

    async with open_cache(CacheConfig.short_term()) as cache:
        await cache.put_string("k", "v")
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from blobcache.core.config.cache_config import CacheConfig
from blobcache.core.config.constants import CachePreset, Stage
from blobcache.core.config.settings import get_settings
from blobcache.core.logging.logger import get_logger, log_stage
from blobcache.core.models.cache import Clock, now_ms
from blobcache.infrastructure.cache.cache_manager import CacheManager
from blobcache.infrastructure.scheduling.cleanup_scheduler import CleanupScheduler

logger = get_logger(__name__)


def create_cache(
    config: CacheConfig | CachePreset | str | None = None,
    base_dir: Path | str | None = None,
    clock: Clock = now_ms,
) -> CacheManager:
    """
    Build a cache engine.

    Args:
        config: CacheConfig, preset (enum or name), or None for the default preset
        base_dir: Directory that config.root_dir_name is resolved against
            (defaults to CACHE_BASE_DIR)
        clock: Epoch-millisecond time source

    Raises:
        ConfigurationError: If the cache directory cannot be created
    """
    if config is None:
        config = CacheConfig.default()
    elif not isinstance(config, CacheConfig):
        config = CacheConfig.from_preset(config)
    return CacheManager(config, base_dir=base_dir, clock=clock)


def create_cleanup_scheduler(
    cache: CacheManager,
    config: CacheConfig | None = None,
) -> CleanupScheduler | None:
    """
    Build the cleanup scheduler for a cache.

    Returns:
        A (not yet started) scheduler, or None if auto_clean_expired is off
    """
    config = config or cache.config
    if not config.auto_clean_expired:
        log_stage(
            logger,
            Stage.SCHEDULER,
            "Automatic cleanup disabled",
            level="debug",
            cache_dir=cache.cache_dir.name,
        )
        return None
    return CleanupScheduler.from_settings(
        cache,
        config.cleanup_interval_ms,
        get_settings().scheduler,
    )


@asynccontextmanager
async def open_cache(
    config: CacheConfig | CachePreset | str | None = None,
    base_dir: Path | str | None = None,
    clock: Clock = now_ms,
) -> AsyncIterator[CacheManager]:
    """
    Cache engine with its cleanup scheduler running for the duration of the block.
    """
    cache = create_cache(config, base_dir=base_dir, clock=clock)
    scheduler = create_cleanup_scheduler(cache)
    if scheduler is not None:
        await scheduler.start()
    try:
        yield cache
    finally:
        if scheduler is not None:
            await scheduler.stop()
        await cache.shutdown()
