"""
Cache Protocols

Abstract contracts between the cache engine and its collaborators.

Architectural Decision: Protocol-based abstraction
- The cleanup scheduler depends only on SupportsExpiredCleanup, never on
  the engine class, so the engine has no dependency on its scheduler
- Helpers and the admin API are typed against CacheEngine, so they work
  with test doubles as well as CacheManager
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable

from blobcache.core.models.cache import CacheMetadata, CacheStatistics


@runtime_checkable
class SupportsExpiredCleanup(Protocol):
    """
    Anything a periodic cleanup runner can drive.

    The single entry point an external scheduler calls. Interval policy and
    retry-on-failure belong to the runner, not to the implementation.
    """

    async def clear_expired(self, cancel_event: asyncio.Event | None = None) -> int:
        """
        Delete every expired entry.

        Returns:
            int: Number of entries removed
        """
        ...


@runtime_checkable
class CacheEngine(SupportsExpiredCleanup, Protocol):
    """
    Request/response contract of a persistent key-value cache.

    None means absent, False means a failed mutation. Implementations never
    raise for normal operating conditions.
    """

    async def put_string(self, key: str, value: str, ttl_ms: int | None = None) -> bool:
        ...

    async def get_string(self, key: str) -> str | None:
        ...

    async def put_bytes(self, key: str, data: bytes, ttl_ms: int | None = None) -> bool:
        ...

    async def get_bytes(self, key: str) -> bytes | None:
        ...

    async def put_object(self, key: str, value: Any, ttl_ms: int | None = None) -> bool:
        ...

    async def get_object(self, key: str, model: type | None = None) -> Any | None:
        ...

    async def contains(self, key: str) -> bool:
        ...

    async def get_metadata(
        self, key: str, *, include_expired: bool = False
    ) -> CacheMetadata | None:
        ...

    async def get_all_keys(self) -> list[str]:
        ...

    async def get_keys_by_tag(self, tag: str) -> list[str]:
        ...

    async def remove(self, key: str) -> bool:
        ...

    async def remove_all(self, keys: list[str]) -> int:
        ...

    async def remove_by_tag(self, tag: str) -> int:
        ...

    async def clear(self) -> bool:
        ...

    async def get_statistics(self) -> CacheStatistics:
        ...

    def observe_key(self, key: str) -> AsyncIterator[Any]:
        ...

    async def set_tags(self, key: str, tags: set[str] | frozenset[str]) -> bool:
        ...

    async def update_expire_time(self, key: str, expire_time: int) -> bool:
        ...
