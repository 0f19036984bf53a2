"""
Cache API Models

Request and response bodies for the admin endpoints. Metadata and
statistics reuse the domain models directly.
"""

from pydantic import BaseModel, Field

from blobcache.core.models.cache import CacheMetadata, CacheStatistics


class PutEntryRequest(BaseModel):
    """Body of PUT /cache/entries/{key}."""

    value: str = Field(..., description="String value to store")
    ttl_ms: int | None = Field(
        default=None,
        description="TTL in ms; omitted for the cache default, <= 0 for never",
    )
    tags: list[str] = Field(default_factory=list, description="Initial tags")


class SetTagsRequest(BaseModel):
    tags: list[str] = Field(..., description="Replacement tag set")


class EntryResponse(BaseModel):
    key: str
    value: str
    metadata: CacheMetadata | None = None


class KeysResponse(BaseModel):
    keys: list[str]
    count: int = Field(..., ge=0)


class MutationResponse(BaseModel):
    key: str | None = None
    success: bool


class CountResponse(BaseModel):
    """Result of bulk deletes and sweeps."""

    removed: int = Field(..., ge=0)


class MemoryCacheStats(BaseModel):
    size: int = Field(..., ge=0)
    max_size: int = Field(..., ge=0)
    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0.0, le=1.0)


class SchedulerStatus(BaseModel):
    running: bool
    interval_ms: int
    run_count: int
    failure_count: int
    last_result: int | None = None
    last_error: str | None = None


class CacheStatsResponse(BaseModel):
    statistics: CacheStatistics
    memory_cache: MemoryCacheStats | None = None
    observed_keys: int = Field(default=0, ge=0)
    scheduler: SchedulerStatus | None = None


class HealthResponse(BaseModel):
    status: str = Field(..., description="healthy or unhealthy")
    app: str
    version: str
    cache_dir: str
    writable: bool
    timestamp: str
