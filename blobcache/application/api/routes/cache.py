"""
Cache Admin Routes
==================

HTTP view of one cache engine's request/response contract.

    GET    /cache/stats                  statistics + memory layer + scheduler
    GET    /cache/keys?tag=&prefix=      key listing (includes expired keys)
    GET    /cache/entries/{key}          string value + metadata
    PUT    /cache/entries/{key}          store a string value
    DELETE /cache/entries/{key}          remove an entry
    GET    /cache/entries/{key}/metadata metadata only
    PUT    /cache/entries/{key}/tags     replace tag set
    DELETE /cache/tags/{tag}             remove every entry carrying tag
    POST   /cache/sweep                  run clear_expired() now
    DELETE /cache                        clear everything

Status codes:
    404 - key absent (never written, expired or removed)
    500 - the engine reported a failed mutation
"""

from fastapi import APIRouter, HTTPException, Query, status

from blobcache.application.api.dependencies import CacheDep, SchedulerDep
from blobcache.application.api.models.cache import (
    CacheStatsResponse,
    CountResponse,
    EntryResponse,
    KeysResponse,
    MemoryCacheStats,
    MutationResponse,
    PutEntryRequest,
    SchedulerStatus,
    SetTagsRequest,
)
from blobcache.core.config.constants import Stage
from blobcache.core.exceptions import SchedulerError
from blobcache.core.logging.logger import get_logger, log_stage
from blobcache.core.models.cache import CacheMetadata

logger = get_logger(__name__)

router = APIRouter(prefix="/cache", tags=["Cache"])


def _not_found(key: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Cache key not found: {key}")


def _failed(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


# ============================================================================
# STATISTICS AND LISTING
# ============================================================================


@router.get("/stats", response_model=CacheStatsResponse)
async def get_stats(cache: CacheDep, scheduler: SchedulerDep):
    statistics = await cache.get_statistics()
    counters = cache.stats()
    memory = counters["memory_cache"]

    scheduler_status = None
    if scheduler is not None:
        scheduler_status = SchedulerStatus(
            running=scheduler.is_running,
            interval_ms=scheduler.interval_ms,
            run_count=scheduler.run_count,
            failure_count=scheduler.failure_count,
            last_result=scheduler.last_result,
            last_error=scheduler.last_error,
        )

    return CacheStatsResponse(
        statistics=statistics,
        memory_cache=MemoryCacheStats(**memory) if memory is not None else None,
        observed_keys=counters["observed_keys"],
        scheduler=scheduler_status,
    )


@router.get("/keys", response_model=KeysResponse)
async def list_keys(
    cache: CacheDep,
    tag: str | None = Query(default=None, description="Only keys carrying this tag"),
    prefix: str | None = Query(default=None, description="Only keys starting with this prefix"),
):
    """List keys, optionally filtered. Expired-but-unswept keys are included."""
    keys = await cache.get_keys_by_tag(tag) if tag is not None else await cache.get_all_keys()
    if prefix is not None:
        keys = [key for key in keys if key.startswith(prefix)]
    return KeysResponse(keys=keys, count=len(keys))


# ============================================================================
# ENTRIES
# ============================================================================


@router.get("/entries/{key}", response_model=EntryResponse)
async def get_entry(key: str, cache: CacheDep):
    value = await cache.get_string(key)
    if value is None:
        raise _not_found(key)
    return EntryResponse(key=key, value=value, metadata=await cache.get_metadata(key))


@router.put("/entries/{key}", response_model=MutationResponse)
async def put_entry(key: str, body: PutEntryRequest, cache: CacheDep):
    if not await cache.put_string(key, body.value, body.ttl_ms, tags=body.tags):
        raise _failed(f"Failed to store cache key: {key}")
    log_stage(logger, Stage.API, "Entry stored via API", cache_key=key)
    return MutationResponse(key=key, success=True)


@router.delete("/entries/{key}", response_model=MutationResponse)
async def delete_entry(key: str, cache: CacheDep):
    if not await cache.remove(key):
        raise _not_found(key)
    log_stage(logger, Stage.API, "Entry removed via API", cache_key=key)
    return MutationResponse(key=key, success=True)


@router.get("/entries/{key}/metadata", response_model=CacheMetadata)
async def get_entry_metadata(key: str, cache: CacheDep):
    metadata = await cache.get_metadata(key)
    if metadata is None:
        raise _not_found(key)
    return metadata


@router.put("/entries/{key}/tags", response_model=MutationResponse)
async def set_entry_tags(key: str, body: SetTagsRequest, cache: CacheDep):
    if not await cache.set_tags(key, body.tags):
        # set_tags only fails without metadata, or on I/O error
        if await cache.get_metadata(key, include_expired=True) is None:
            raise _not_found(key)
        raise _failed(f"Failed to update tags for cache key: {key}")
    return MutationResponse(key=key, success=True)


# ============================================================================
# BULK OPERATIONS
# ============================================================================


@router.delete("/tags/{tag}", response_model=CountResponse)
async def delete_by_tag(tag: str, cache: CacheDep):
    removed = await cache.remove_by_tag(tag)
    log_stage(logger, Stage.API, "Entries removed by tag via API", tag=tag, removed=removed)
    return CountResponse(removed=removed)


@router.post("/sweep", response_model=CountResponse)
async def sweep_expired(cache: CacheDep, scheduler: SchedulerDep):
    """Run an expiry sweep now, through the scheduler's retry policy if there is one."""
    try:
        if scheduler is not None:
            removed = await scheduler.trigger_now()
        else:
            removed = await cache.clear_expired()
    except SchedulerError as e:
        raise _failed(e.message) from e
    log_stage(logger, Stage.API, "Expiry sweep via API", removed=removed)
    return CountResponse(removed=removed)


@router.delete("", response_model=MutationResponse)
async def clear_cache(cache: CacheDep):
    if not await cache.clear():
        raise _failed("Failed to clear cache")
    log_stage(logger, Stage.API, "Cache cleared via API")
    return MutationResponse(success=True)
