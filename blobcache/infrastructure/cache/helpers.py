"""
Cache Helpers

Convenience operations composed from the CacheEngine protocol: defaults,
cache-aside, conditional writes, tag and expiry edits, key filters and
statistics logging. They work with any CacheEngine implementation.
"""

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import Any, TypeVar

import orjson
from pydantic import TypeAdapter, ValidationError

from blobcache.core.config.constants import Stage
from blobcache.core.interfaces.cache import CacheEngine
from blobcache.core.logging.logger import get_logger, log_stage
from blobcache.core.models.cache import now_ms

logger = get_logger(__name__)

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Reads with defaults
# -----------------------------------------------------------------------------


async def get_string_or_default(cache: CacheEngine, key: str, default: str) -> str:
    value = await cache.get_string(key)
    return default if value is None else value


async def get_object_or_default(cache: CacheEngine, key: str, default: T, model: Any = None) -> T:
    value = await cache.get_object(key, model)
    return default if value is None else value


async def get_or_put(
    cache: CacheEngine,
    key: str,
    compute_fn: Callable[[], T] | Callable[[], Awaitable[T]],
    ttl_ms: int | None = None,
    model: Any = None,
) -> T:
    """
    Get from cache or compute and cache the result (cache-aside pattern).

    Pattern: Cache-aside (lazy loading)
    - Check cache first
    - If miss, compute and cache
    - Return result

    Args:
        cache: Cache engine
        key: Cache key
        compute_fn: Sync or async function producing the value on a miss
        ttl_ms: TTL for the stored value (None for the cache default)
        model: Optional type the cached JSON is decoded into

    Returns:
        Cached or computed value
    """
    cached = await cache.get_object(key, model)
    if cached is not None:
        return cached

    value = compute_fn()
    if inspect.isawaitable(value):
        value = await value

    if value is not None and not await cache.put_object(key, value, ttl_ms):
        log_stage(logger, Stage.WRITE, "Computed value not cached", level="warning", cache_key=key)
    return value


async def observe_object(
    cache: CacheEngine, key: str, model: Any = None
) -> AsyncIterator[Any]:
    """
    observe_key() decoded as JSON.

    Values that fail to decode are yielded as None.
    """
    adapter = TypeAdapter(model) if model is not None else None
    async for raw in cache.observe_key(key):
        if raw is None:
            yield None
            continue
        try:
            yield adapter.validate_json(raw) if adapter is not None else orjson.loads(raw)
        except (orjson.JSONDecodeError, ValidationError, TypeError):
            yield None


# -----------------------------------------------------------------------------
# Conditional writes
# -----------------------------------------------------------------------------


async def put_if_absent(cache: CacheEngine, key: str, value: str, ttl_ms: int | None = None) -> bool:
    """Store value only if the key is not currently present."""
    if await cache.contains(key):
        return False
    return await cache.put_string(key, value, ttl_ms)


async def update_if_present(
    cache: CacheEngine, key: str, value: str, ttl_ms: int | None = None
) -> bool:
    """Overwrite value only if the key is currently present."""
    if not await cache.contains(key):
        return False
    return await cache.put_string(key, value, ttl_ms)


async def contains_all(cache: CacheEngine, keys: Iterable[str]) -> bool:
    for key in keys:
        if not await cache.contains(key):
            return False
    return True


# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------


async def add_tag(cache: CacheEngine, key: str, tag: str) -> bool:
    return await add_tags(cache, key, tag)


async def add_tags(cache: CacheEngine, key: str, *tags: str) -> bool:
    metadata = await cache.get_metadata(key, include_expired=True)
    if metadata is None:
        return False
    return await cache.set_tags(key, metadata.tags | set(tags))


async def remove_tag(cache: CacheEngine, key: str, tag: str) -> bool:
    metadata = await cache.get_metadata(key, include_expired=True)
    if metadata is None:
        return False
    return await cache.set_tags(key, metadata.tags - {tag})


# -----------------------------------------------------------------------------
# Expiry
# -----------------------------------------------------------------------------


async def extend_expire_time(cache: CacheEngine, key: str, extra_ms: int) -> bool:
    """
    Push the expiry of an entry back by extra_ms.

    Fails for missing keys and for entries that never expire.
    """
    metadata = await cache.get_metadata(key, include_expired=True)
    if metadata is None or metadata.never_expires:
        return False
    return await cache.update_expire_time(key, metadata.expire_time + extra_ms)


async def refresh_expire_time(
    cache: CacheEngine,
    key: str,
    duration_ms: int,
    clock: Callable[[], int] = now_ms,
) -> bool:
    """Set the expiry of an entry to now + duration_ms."""
    return await cache.update_expire_time(key, clock() + duration_ms)


# -----------------------------------------------------------------------------
# Key queries
# -----------------------------------------------------------------------------


async def get_valid_keys(cache: CacheEngine, clock: Callable[[], int] = now_ms) -> list[str]:
    """Keys whose entries are unexpired at clock()."""
    now = clock()
    keys = []
    for key in await cache.get_all_keys():
        metadata = await cache.get_metadata(key, include_expired=True)
        if metadata is not None and not metadata.is_expired(now):
            keys.append(key)
    return keys


async def get_expired_keys(cache: CacheEngine, clock: Callable[[], int] = now_ms) -> list[str]:
    """Keys whose entries are expired at clock() but not yet swept."""
    now = clock()
    keys = []
    for key in await cache.get_all_keys():
        metadata = await cache.get_metadata(key, include_expired=True)
        if metadata is not None and metadata.is_expired(now):
            keys.append(key)
    return keys


async def get_keys_by_prefix(cache: CacheEngine, prefix: str) -> list[str]:
    return [key for key in await cache.get_all_keys() if key.startswith(prefix)]


async def get_keys_by_suffix(cache: CacheEngine, suffix: str) -> list[str]:
    return [key for key in await cache.get_all_keys() if key.endswith(suffix)]


# -----------------------------------------------------------------------------
# Statistics
# -----------------------------------------------------------------------------


async def get_hit_rate(cache: CacheEngine) -> float:
    return (await cache.get_statistics()).hit_rate


async def log_statistics(cache: CacheEngine, level: str = "info") -> None:
    """Log a one-line statistics summary for the cache."""
    stats = await cache.get_statistics()
    log_stage(
        logger,
        Stage.STATISTICS,
        "Cache statistics",
        level=level,
        total_size=stats.total_size,
        item_count=stats.item_count,
        expired_count=stats.expired_count,
        hit_count=stats.hit_count,
        miss_count=stats.miss_count,
        hit_rate=round(stats.hit_rate, 4),
    )


# -----------------------------------------------------------------------------
# Key building
# -----------------------------------------------------------------------------


def build_cache_key(*parts: Any, prefix: str | None = None) -> str:
    """
    Join parts into a cache key, skipping None.

    Example:
        >>> build_cache_key("user", 42, None, "avatar", prefix="img")
        'img_user_42_avatar'
    """
    values = [prefix] if prefix is not None else []
    values.extend(part for part in parts if part is not None)
    return "_".join(str(value) for value in values)
