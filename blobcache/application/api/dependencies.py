"""
FastAPI Dependency Injection Module
===================================

Route handlers never construct a cache themselves. The application
lifespan (or a test) places one CacheManager on app.state, and these
providers hand it to handlers:

    @router.get("/example")
    async def my_route(cache: CacheDep):
        return await cache.get_string("k")

Tests inject a cache by passing it to create_app(cache=...).
"""

from typing import Annotated

from fastapi import Depends, Request

from blobcache.core.config.settings import Settings, get_settings
from blobcache.infrastructure.cache.cache_manager import CacheManager
from blobcache.infrastructure.scheduling.cleanup_scheduler import CleanupScheduler

# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_cache(request: Request) -> CacheManager:
    """
    Cache engine owned by the application.

    Raises:
        RuntimeError: If the application lifespan has not run
    """
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        raise RuntimeError("Cache not initialized. Check app lifespan.")
    return cache


def get_scheduler(request: Request) -> CleanupScheduler | None:
    """Cleanup scheduler, or None when automatic cleanup is off."""
    return getattr(request.app.state, "scheduler", None)


# ============================================================================
# TYPE ALIASES
# ============================================================================

CacheDep = Annotated[CacheManager, Depends(get_cache)]
SchedulerDep = Annotated[CleanupScheduler | None, Depends(get_scheduler)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
