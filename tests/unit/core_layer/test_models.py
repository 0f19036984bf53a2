"""
Unit Tests for Cache Domain Models

Tests expiry arithmetic, statistics and serialization of metadata.
"""

import sys

import pytest
from pydantic import ValidationError

from blobcache.core.config.constants import NEVER_EXPIRE
from blobcache.core.models.cache import CacheEntry, CacheMetadata, CacheStatistics, now_ms


@pytest.mark.unit
class TestCacheMetadata:
    """Test metadata expiry semantics."""

    def test_never_expire_sentinel(self):
        metadata = CacheMetadata(key="k", expire_time=NEVER_EXPIRE)

        assert metadata.never_expires is True
        assert metadata.is_expired(now=10**15) is False
        assert metadata.remaining_time(now=10**15) == sys.maxsize

    def test_expired_only_strictly_after_expire_time(self):
        metadata = CacheMetadata(key="k", expire_time=1_000)

        assert metadata.is_expired(now=999) is False
        assert metadata.is_expired(now=1_000) is False
        assert metadata.is_expired(now=1_001) is True

    def test_remaining_time_never_negative(self):
        metadata = CacheMetadata(key="k", expire_time=1_000)

        assert metadata.remaining_time(now=400) == 600
        assert metadata.remaining_time(now=5_000) == 0

    def test_is_expired_defaults_to_wall_clock(self):
        assert CacheMetadata(key="k", expire_time=now_ms() - 10).is_expired() is True
        assert CacheMetadata(key="k", expire_time=now_ms() + 60_000).is_expired() is False

    def test_defaults(self):
        metadata = CacheMetadata(key="k")

        assert metadata.tags == frozenset()
        assert metadata.extras == {}
        assert metadata.mime_type is None
        assert metadata.create_time > 0

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            CacheMetadata(key="k", size=-1)

    def test_json_round_trip(self):
        metadata = CacheMetadata(
            key="user:1",
            create_time=5,
            expire_time=10,
            size=3,
            mime_type="text/plain",
            tags=frozenset({"a", "b"}),
            extras={"source": "api"},
        )

        assert CacheMetadata.model_validate(metadata.model_dump(mode="json")) == metadata

    def test_frozen(self):
        with pytest.raises(ValidationError):
            CacheMetadata(key="k").key = "other"


@pytest.mark.unit
class TestCacheStatistics:
    """Test derived statistics."""

    def test_hit_rate_zero_without_accesses(self):
        assert CacheStatistics().hit_rate == 0.0

    def test_hit_rate(self):
        assert CacheStatistics(hit_count=1, miss_count=1).hit_rate == 0.5
        assert CacheStatistics(hit_count=3, miss_count=1).hit_rate == 0.75

    def test_hit_rate_is_serialized(self):
        assert CacheStatistics(hit_count=1).model_dump()["hit_rate"] == 1.0


@pytest.mark.unit
def test_cache_entry_is_immutable():
    entry = CacheEntry(value="v", metadata=CacheMetadata(key="k"))

    with pytest.raises(AttributeError):
        entry.value = "other"
