"""
Cache Domain Models

- CacheMetadata: persisted per-key record (expiry, size, tags, extras)
- CacheEntry: transient accelerator pairing of value + metadata
- CacheStatistics: derived counters returned by CacheManager.get_statistics()

Timestamps are integer milliseconds since the Unix epoch.
"""

import sys
import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel, Field, computed_field, field_serializer

from blobcache.core.config.constants import NEVER_EXPIRE

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class CacheMetadata(BaseModel):
    """
    Metadata record for one logical cache key.

    The original key is stored inside the record because blob and metadata
    files are named by the key's hash, which cannot be reversed.

    Invariant:
        expire_time < 0  => never expires
        otherwise        => expired iff now > expire_time
    """

    model_config = {"frozen": True}

    key: str = Field(..., description="Original, human-readable cache key")
    create_time: int = Field(default_factory=now_ms, description="Last write time (epoch ms)")
    expire_time: int = Field(default=NEVER_EXPIRE, description="Absolute expiry (epoch ms), -1 = never")
    size: int = Field(default=0, ge=0, description="Payload size in bytes at write time")
    mime_type: str | None = Field(default=None, description="Optional content-type hint")
    tags: frozenset[str] = Field(default_factory=frozenset, description="Caller-defined labels")
    extras: dict[str, str] = Field(default_factory=dict, description="Caller-defined attributes")

    @field_serializer("tags")
    def serialize_tags(self, tags: frozenset[str]) -> list[str]:
        return sorted(tags)

    @property
    def never_expires(self) -> bool:
        return self.expire_time < 0

    def is_expired(self, now: int | None = None) -> bool:
        """
        Whether this entry is expired.

        Args:
            now: Reference time in epoch ms (defaults to the wall clock)
        """
        if self.never_expires:
            return False
        return (now if now is not None else now_ms()) > self.expire_time

    def remaining_time(self, now: int | None = None) -> int:
        """Milliseconds until expiry, never negative; sys.maxsize if never expiring."""
        if self.never_expires:
            return sys.maxsize
        return max(self.expire_time - (now if now is not None else now_ms()), 0)


@dataclass(frozen=True)
class CacheEntry:
    """Accelerator entry; never persisted."""

    value: str
    metadata: CacheMetadata


class CacheStatistics(BaseModel):
    """
    Point-in-time cache statistics.

    Size and counts are recomputed from disk on every request; hit/miss
    counters are cumulative since construction or the last clear().
    """

    model_config = {"frozen": True}

    total_size: int = Field(default=0, ge=0, description="Sum of blob file sizes in bytes")
    item_count: int = Field(default=0, ge=0, description="Number of metadata records")
    expired_count: int = Field(default=0, ge=0, description="Expired but not yet swept")
    hit_count: int = Field(default=0, ge=0, description="Cumulative read hits")
    miss_count: int = Field(default=0, ge=0, description="Cumulative read misses")
    last_access_time: int = Field(default=0, description="Epoch ms of the last hit, 0 if none")
    max_cache_size: int = Field(default=-1, description="Advisory size cap from the config")

    @computed_field
    @property
    def hit_rate(self) -> float:
        """hits / (hits + misses), 0.0 when there were no accesses."""
        total = self.hit_count + self.miss_count
        return self.hit_count / total if total > 0 else 0.0
