"""
Cache Manager

Persistent key-value cache engine: disk store + LRU memory layer + change
notifications + expiry sweeping.

Architecture:
    CacheManager (this module)
        ├── BlobStore      payload files, named by key hash
        ├── MetadataStore  .metadata/<hash>.meta JSON records
        ├── LRUMemoryCache bounded accelerator (optional)
        ├── ChangeNotifier per-key latest-value channels
        └── ExpirySweeper  clear_expired() implementation

Concurrency:
    - One asyncio.Lock serializes every mutation (put*, remove, metadata
      updates, clear, sweep deletions). Reads never take it.
    - The memory layer has its own lock.
    - A mutation counter keeps a read that raced a mutation from putting a
      stale value back into the memory layer.

Error policy:
    Every BlobCacheError / OSError is absorbed here, logged, and turned
    into None / False / 0. The exception is clear_expired(), which lets a
    failure to list the metadata directory propagate so that its scheduler
    can retry.
"""

import asyncio
import contextlib
import os
import shutil
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Mapping
from pathlib import Path
from typing import Any, BinaryIO

import aiofiles
import aiofiles.os
import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from blobcache.core.config.cache_config import CacheConfig
from blobcache.core.config.constants import (
    FILE_COPY_CHUNK_SIZE,
    METADATA_DIR_NAME,
    MIME_BINARY,
    MIME_JSON,
    MIME_TEXT,
    NEVER_EXPIRE,
    Stage,
)
from blobcache.core.config.settings import get_settings
from blobcache.core.exceptions import BlobCacheError, CacheSerializationError, ConfigurationError
from blobcache.core.logging.logger import get_logger, log_stage
from blobcache.core.models.cache import (
    CacheEntry,
    CacheMetadata,
    CacheStatistics,
    Clock,
    now_ms,
)
from blobcache.infrastructure.cache.blob_store import BlobStore
from blobcache.infrastructure.cache.change_notifier import ChangeNotifier, ObservedValue
from blobcache.infrastructure.cache.memory_cache import LRUMemoryCache
from blobcache.infrastructure.cache.metadata_store import MetadataStore
from blobcache.infrastructure.cache.sweeper import ExpirySweeper

logger = get_logger(__name__)

FileSource = BinaryIO | AsyncIterable[bytes] | Path | str


def _json_default(value: Any) -> Any:
    """orjson fallback for types it does not serialize natively."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, set | frozenset):
        return sorted(value)
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


def _is_text(mime_type: str | None) -> bool:
    if not mime_type:
        return False
    base = mime_type.split(";", 1)[0].strip().lower()
    return base.startswith("text/") or base == MIME_JSON


async def _iter_file(path: Path) -> AsyncIterator[bytes]:
    async with aiofiles.open(path, "rb") as f:
        while chunk := await f.read(FILE_COPY_CHUNK_SIZE):
            yield chunk


class CacheManager:
    """
    Persistent cache engine for one cache directory.

    Usage:
        cache = CacheManager(CacheConfig.short_term())

        await cache.put_string("user:1", "alice")
        value = await cache.get_string("user:1")

        await cache.put_object("profile:1", {"name": "alice"}, ttl_ms=60_000)
        profile = await cache.get_object("profile:1")

        async for value in cache.observe_key("user:1"):
            ...

        removed = await cache.clear_expired()

    Multiple caches are multiple instances; there is no global registry.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        base_dir: Path | str | None = None,
        clock: Clock = now_ms,
    ):
        """
        Create the engine and its directories.

        Args:
            config: Cache configuration (defaults to CacheConfig.default())
            base_dir: Directory that config.root_dir_name is resolved against
                (defaults to CACHE_BASE_DIR from settings)
            clock: Epoch-millisecond time source

        Raises:
            ConfigurationError: If the cache directory cannot be created
        """
        self._config = config or CacheConfig.default()
        if base_dir is None:
            base_dir = get_settings().cache.CACHE_BASE_DIR
        self._root = self._config.resolve_cache_dir(Path(base_dir))
        self._metadata_dir = self._root / METADATA_DIR_NAME
        self._clock = clock

        try:
            self._metadata_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError.from_exception(
                e, "Cache directory is not usable", cache_dir=str(self._root)
            ) from e

        self._blobs = BlobStore(self._root)
        self._metadata = MetadataStore(self._metadata_dir)
        self._memory: LRUMemoryCache | None = (
            LRUMemoryCache(max_size=self._config.max_memory_cache_entries)
            if self._config.enable_memory_cache
            else None
        )
        self._notifier = ChangeNotifier()
        self._sweeper = ExpirySweeper(self._metadata, self._remove_if_expired, clock)

        self._write_lock = asyncio.Lock()
        self._mutations = 0
        self._hit_count = 0
        self._miss_count = 0
        self._last_access_time = 0

        self._logger = logger.bind(cache_dir=self._root.name)
        log_stage(
            self._logger,
            Stage.INITIALIZATION,
            "Cache manager initialized",
            path=str(self._root),
            default_expire_time_ms=self._config.default_expire_time_ms,
            memory_cache_enabled=self._memory is not None,
            max_memory_cache_entries=self._config.max_memory_cache_entries,
        )
        if self._config.enable_encryption:
            log_stage(
                self._logger,
                Stage.INITIALIZATION,
                "Encryption is enabled in config but not implemented; payloads are stored as-is",
                level="warning",
            )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def cache_dir(self) -> Path:
        return self._root

    @property
    def metadata_dir(self) -> Path:
        return self._metadata_dir

    @property
    def memory_cache(self) -> LRUMemoryCache | None:
        return self._memory

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _expire_time(self, now: int, ttl_ms: int | None) -> int:
        if ttl_ms is None:
            if self._config.never_expires:
                return NEVER_EXPIRE
            return now + self._config.default_expire_time_ms
        if ttl_ms > 0:
            return now + ttl_ms
        return NEVER_EXPIRE

    def _record_hit(self, now: int) -> None:
        self._hit_count += 1
        self._last_access_time = now

    def _record_miss(self) -> None:
        self._miss_count += 1

    def _log_failure(
        self, stage: Stage, message: str, key: str | None, error: Exception, level: str = "warning"
    ) -> None:
        log_stage(
            self._logger,
            stage,
            message,
            level=level,
            cache_key=key,
            error=str(error),
            error_type=type(error).__name__,
        )

    async def _persist(
        self,
        key: str,
        payload: bytes | BinaryIO | AsyncIterable[bytes],
        ttl_ms: int | None,
        mime_type: str,
        tags: Iterable[str] | None,
        extras: Mapping[str, str] | None,
    ) -> CacheMetadata:
        """
        Write blob then metadata. Caller holds the write lock.

        The record is validated before the blob is touched; a blob whose
        record cannot be saved is deleted again.
        """
        now = self._clock()
        try:
            metadata = CacheMetadata(
                key=key,
                create_time=now,
                expire_time=self._expire_time(now, ttl_ms),
                mime_type=mime_type,
                tags=frozenset(tags or ()),
                extras=dict(extras or {}),
            )
        except ValidationError as e:
            raise CacheSerializationError.from_exception(
                e, "Invalid metadata for cache key", cache_key=key
            ) from e

        if isinstance(payload, bytes | bytearray | memoryview):
            size = await self._blobs.write(key, bytes(payload))
        else:
            size = await self._blobs.write_stream(key, payload)
        metadata = metadata.model_copy(update={"size": size})
        try:
            await self._metadata.save(metadata)
        except BlobCacheError:
            with contextlib.suppress(BlobCacheError):
                await self._blobs.delete(key)
            self._mutations += 1
            raise
        self._mutations += 1
        return metadata

    async def _observed_value(
        self, key: str, metadata: CacheMetadata, data: bytes | None = None
    ) -> ObservedValue:
        """Value handed to observers: str for text entries, else the blob path."""
        path = self._blobs.path_for(key)
        if not _is_text(metadata.mime_type):
            return path
        if data is None:
            data = await self._blobs.read(key)
            if data is None:
                return None
        try:
            return data.decode("utf-8", errors="surrogatepass")
        except UnicodeDecodeError:
            return path

    async def _delete_entry(self, key: str) -> bool:
        """
        Delete blob and metadata, evict, publish absence.

        Caller holds the write lock. True if either file was removed.
        """
        removed = False
        for store in (self._blobs, self._metadata):
            try:
                removed = await store.delete(key) or removed
            except BlobCacheError as e:
                self._log_failure(Stage.DELETE, "Partial delete failure", key, e)
        if self._memory is not None:
            await self._memory.delete(key)
        self._mutations += 1
        self._notifier.publish(key, None)
        return removed

    async def _remove_if_expired(self, key: str) -> bool:
        """Delete the entry only if its metadata is still expired under the lock."""
        try:
            async with self._write_lock:
                metadata = await self._metadata.load(key)
                if metadata is None or not metadata.is_expired(self._clock()):
                    return False
                await self._delete_entry(key)
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.DELETE, "Failed to delete expired entry", key, e)
            return False
        log_stage(self._logger, Stage.DELETE, "Expired entry deleted", level="debug", cache_key=key)
        return True

    async def _load_live_metadata(self, key: str) -> CacheMetadata | None:
        """Metadata for an unexpired entry; expired entries are deleted."""
        metadata = await self._metadata.load(key)
        if metadata is None:
            return None
        if metadata.is_expired(self._clock()):
            await self._remove_if_expired(key)
            return None
        return metadata

    # -------------------------------------------------------------------------
    # Strings
    # -------------------------------------------------------------------------

    async def put_string(
        self,
        key: str,
        value: str,
        ttl_ms: int | None = None,
        *,
        tags: Iterable[str] | None = None,
        mime_type: str | None = None,
        extras: Mapping[str, str] | None = None,
    ) -> bool:
        """
        Store a string, overwriting any previous value for the key.

        Args:
            key: Cache key
            value: Value to store (UTF-8 on disk)
            ttl_ms: None for the configured default, > 0 for a custom TTL,
                <= 0 (e.g. NEVER_EXPIRE) for no expiry
            tags: Initial tag set
            mime_type: Content-type hint (defaults to text/plain)
            extras: Caller-defined attributes

        Returns:
            True on success, False if the entry could not be persisted
        """
        try:
            async with self._write_lock:
                payload = value.encode("utf-8", errors="surrogatepass")
                metadata = await self._persist(
                    key, payload, ttl_ms, mime_type or MIME_TEXT, tags, extras
                )
                if self._memory is not None:
                    await self._memory.set(key, CacheEntry(value=value, metadata=metadata))
                self._notifier.publish(key, value)
        except (BlobCacheError, OSError) as e:
            if self._memory is not None:
                await self._memory.delete(key)
            self._log_failure(Stage.WRITE, "Failed to store string", key, e, level="error")
            return False

        log_stage(
            self._logger,
            Stage.WRITE,
            "Cache entry stored",
            cache_key=key,
            size=metadata.size,
            expire_time=metadata.expire_time,
        )
        return True

    async def get_string(self, key: str) -> str | None:
        """
        Read a string.

        Memory layer first (only if its copy is unexpired), then disk.
        Expired entries are deleted and reported as absent.

        Returns:
            The value, or None on miss, expiry or any read failure
        """
        now = self._clock()
        if self._memory is not None:
            entry = await self._memory.get(key)
            if entry is not None and not entry.metadata.is_expired(now):
                self._record_hit(now)
                log_stage(self._logger, Stage.READ, "Memory cache hit", level="debug", cache_key=key)
                return entry.value

        mutations = self._mutations
        try:
            metadata = await self._load_live_metadata(key)
            data = await self._blobs.read(key) if metadata is not None else None
            if data is None:
                self._record_miss()
                log_stage(self._logger, Stage.READ, "Cache miss", level="debug", cache_key=key)
                return None
            value = data.decode("utf-8", errors="surrogatepass")
        except (BlobCacheError, OSError, UnicodeDecodeError) as e:
            self._record_miss()
            self._log_failure(Stage.READ, "Failed to read string", key, e)
            return None

        if self._memory is not None and self._mutations == mutations:
            await self._memory.set(key, CacheEntry(value=value, metadata=metadata))
        self._record_hit(now)
        log_stage(self._logger, Stage.READ, "Disk cache hit", level="debug", cache_key=key)
        return value

    # -------------------------------------------------------------------------
    # Bytes and files
    # -------------------------------------------------------------------------

    async def put_bytes(
        self,
        key: str,
        data: bytes,
        ttl_ms: int | None = None,
        *,
        tags: Iterable[str] | None = None,
        mime_type: str | None = None,
        extras: Mapping[str, str] | None = None,
    ) -> bool:
        """Store raw bytes. Same expiry semantics as put_string."""
        try:
            async with self._write_lock:
                metadata = await self._persist(
                    key, data, ttl_ms, mime_type or MIME_BINARY, tags, extras
                )
                if self._memory is not None:
                    await self._memory.delete(key)
                if self._notifier.has_channel(key):
                    self._notifier.publish(key, await self._observed_value(key, metadata, data))
        except (BlobCacheError, OSError) as e:
            if self._memory is not None:
                await self._memory.delete(key)
            self._log_failure(Stage.WRITE, "Failed to store bytes", key, e, level="error")
            return False

        log_stage(self._logger, Stage.WRITE, "Binary entry stored", cache_key=key, size=metadata.size)
        return True

    async def get_bytes(self, key: str) -> bytes | None:
        """Read raw bytes; None on miss, expiry or read failure."""
        try:
            metadata = await self._load_live_metadata(key)
            data = await self._blobs.read(key) if metadata is not None else None
        except (BlobCacheError, OSError) as e:
            self._record_miss()
            self._log_failure(Stage.READ, "Failed to read bytes", key, e)
            return None

        if data is None:
            self._record_miss()
            log_stage(self._logger, Stage.READ, "Cache miss", level="debug", cache_key=key)
            return None
        self._record_hit(self._clock())
        return data

    async def put_file(
        self,
        key: str,
        source: FileSource,
        ttl_ms: int | None = None,
        *,
        tags: Iterable[str] | None = None,
        mime_type: str | None = None,
        extras: Mapping[str, str] | None = None,
    ) -> bool:
        """
        Store a payload streamed from a file.

        Args:
            source: Path of a file to copy, an open binary file object, or an
                async iterable of byte chunks
        """
        if isinstance(source, str | Path):
            source = _iter_file(Path(source))
        try:
            async with self._write_lock:
                metadata = await self._persist(
                    key, source, ttl_ms, mime_type or MIME_BINARY, tags, extras
                )
                if self._memory is not None:
                    await self._memory.delete(key)
                if self._notifier.has_channel(key):
                    self._notifier.publish(key, await self._observed_value(key, metadata))
        except (BlobCacheError, OSError) as e:
            if self._memory is not None:
                await self._memory.delete(key)
            self._log_failure(Stage.WRITE, "Failed to store file", key, e, level="error")
            return False

        log_stage(self._logger, Stage.WRITE, "File entry stored", cache_key=key, size=metadata.size)
        return True

    async def get_file(self, key: str) -> Path | None:
        """
        Path of the stored blob for a live entry.

        The path stays valid until the entry is overwritten or removed.
        """
        try:
            metadata = await self._load_live_metadata(key)
            exists = metadata is not None and await self._blobs.exists(key)
        except (BlobCacheError, OSError) as e:
            self._record_miss()
            self._log_failure(Stage.READ, "Failed to resolve file", key, e)
            return None

        if not exists:
            self._record_miss()
            return None
        self._record_hit(self._clock())
        return self._blobs.path_for(key)

    # -------------------------------------------------------------------------
    # Objects
    # -------------------------------------------------------------------------

    async def put_object(
        self,
        key: str,
        value: Any,
        ttl_ms: int | None = None,
        *,
        tags: Iterable[str] | None = None,
        extras: Mapping[str, str] | None = None,
    ) -> bool:
        """
        Serialize a value to JSON and store it as a string.

        Supports anything orjson handles natively plus pydantic models and
        sets. Returns False if the value cannot be serialized.
        """
        try:
            if isinstance(value, BaseModel):
                text = value.model_dump_json()
            else:
                text = orjson.dumps(value, default=_json_default).decode("utf-8")
        except (TypeError, ValueError) as e:
            error = CacheSerializationError.from_exception(
                e, "Failed to serialize object", cache_key=key
            )
            self._log_failure(Stage.WRITE, error.message, key, e, level="error")
            return False
        return await self.put_string(
            key, text, ttl_ms, tags=tags, mime_type=MIME_JSON, extras=extras
        )

    async def get_object(self, key: str, model: Any = None) -> Any | None:
        """
        Read and deserialize a JSON value.

        Args:
            key: Cache key
            model: Optional target type (pydantic model, dataclass, typed
                collection); None returns plain JSON types

        Returns:
            The value, or None if absent or not decodable as model
        """
        text = await self.get_string(key)
        if text is None:
            return None
        try:
            if model is None:
                return orjson.loads(text)
            return TypeAdapter(model).validate_json(text)
        except (orjson.JSONDecodeError, ValidationError) as e:
            self._log_failure(Stage.READ, "Failed to deserialize object", key, e)
            return None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def contains(self, key: str) -> bool:
        """True iff metadata exists, is unexpired, and the blob is on disk."""
        try:
            metadata = await self._load_live_metadata(key)
            return metadata is not None and await self._blobs.exists(key)
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.QUERY, "Failed to check entry", key, e)
            return False

    async def get_metadata(
        self, key: str, *, include_expired: bool = False
    ) -> CacheMetadata | None:
        """
        Metadata record for a key.

        Args:
            include_expired: Return expired records as-is instead of
                deleting them and reporting absence
        """
        try:
            if include_expired:
                return await self._metadata.load(key)
            return await self._load_live_metadata(key)
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.QUERY, "Failed to load metadata", key, e)
            return None

    async def _list_metadata(self, cancel_event: asyncio.Event | None = None) -> list[CacheMetadata]:
        try:
            return await self._metadata.list_all(cancel_event)
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.QUERY, "Failed to list metadata", None, e)
            return []

    async def get_all_keys(self) -> list[str]:
        """Every key with a metadata record, including expired ones."""
        return [record.key for record in await self._list_metadata()]

    async def get_keys_by_tag(self, tag: str) -> list[str]:
        return [record.key for record in await self._list_metadata() if tag in record.tags]

    # -------------------------------------------------------------------------
    # Deletes
    # -------------------------------------------------------------------------

    async def remove(self, key: str) -> bool:
        """
        Delete an entry.

        Returns:
            True if either the blob or the metadata file existed and was removed
        """
        async with self._write_lock:
            removed = await self._delete_entry(key)
        log_stage(self._logger, Stage.DELETE, "Cache entry removed", cache_key=key, removed=removed)
        return removed

    async def remove_all(self, keys: Iterable[str]) -> int:
        count = 0
        for key in keys:
            if await self.remove(key):
                count += 1
        return count

    async def remove_by_tag(self, tag: str) -> int:
        """Remove every entry carrying tag; returns the number removed."""
        count = await self.remove_all(await self.get_keys_by_tag(tag))
        log_stage(self._logger, Stage.DELETE, "Entries removed by tag", tag=tag, removed=count)
        return count

    async def clear(self) -> bool:
        """
        Delete the whole cache directory and recreate it empty.

        Also empties the memory layer, publishes absence to every observed
        key and resets hit/miss counters.
        """

        def _remove_tree(path: Path) -> None:
            with contextlib.suppress(FileNotFoundError):
                shutil.rmtree(path)

        try:
            async with self._write_lock:
                await asyncio.to_thread(_remove_tree, self._root)
                await aiofiles.os.makedirs(self._metadata_dir, exist_ok=True)
                if self._memory is not None:
                    await self._memory.clear()
                self._mutations += 1
                self._notifier.reset()
                self._hit_count = 0
                self._miss_count = 0
                self._last_access_time = 0
        except OSError as e:
            self._log_failure(Stage.DELETE, "Failed to clear cache", None, e, level="error")
            return False

        log_stage(self._logger, Stage.DELETE, "Cache cleared")
        return True

    async def clear_expired(self, cancel_event: asyncio.Event | None = None) -> int:
        """
        Delete every expired entry.

        Args:
            cancel_event: Checked between entries; deletions already made
                are kept when it is set

        Returns:
            Number of entries removed

        Raises:
            CacheStorageError: If the metadata directory cannot be listed
        """
        return await self._sweeper.sweep(cancel_event)

    # -------------------------------------------------------------------------
    # Metadata mutations
    # -------------------------------------------------------------------------

    async def _update_metadata(self, key: str, message: str, **changes: Any) -> bool:
        try:
            async with self._write_lock:
                metadata = await self._metadata.load(key)
                if metadata is None:
                    log_stage(
                        self._logger, Stage.METADATA, "No metadata to update", level="debug", cache_key=key
                    )
                    return False
                updated = metadata.model_copy(update=changes)
                await self._metadata.save(updated)
                if self._memory is not None:
                    await self._memory.update_metadata(key, updated)
                self._mutations += 1
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.METADATA, "Failed to update metadata", key, e, level="error")
            return False

        log_stage(self._logger, Stage.METADATA, message, cache_key=key)
        return True

    async def set_tags(self, key: str, tags: Iterable[str]) -> bool:
        """Replace the tag set of an existing entry; the blob is untouched."""
        return await self._update_metadata(key, "Tags updated", tags=frozenset(tags))

    async def update_expire_time(self, key: str, expire_time: int) -> bool:
        """
        Set a new absolute expiry (epoch ms, or NEVER_EXPIRE) for an existing entry.
        """
        return await self._update_metadata(key, "Expire time updated", expire_time=expire_time)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def get_cache_size(self, cancel_event: asyncio.Event | None = None) -> int:
        """Sum of blob file sizes on disk, recomputed on each call."""
        try:
            return await self._blobs.total_size(cancel_event)
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.STATISTICS, "Failed to compute cache size", None, e)
            return 0

    async def get_cache_count(self) -> int:
        """Number of metadata records on disk, expired or not."""
        try:
            return await self._metadata.count()
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.STATISTICS, "Failed to count entries", None, e)
            return 0

    async def get_statistics(self) -> CacheStatistics:
        now = self._clock()
        records = await self._list_metadata()
        stats = CacheStatistics(
            total_size=await self.get_cache_size(),
            item_count=await self.get_cache_count(),
            expired_count=sum(1 for record in records if record.is_expired(now)),
            hit_count=self._hit_count,
            miss_count=self._miss_count,
            last_access_time=self._last_access_time,
            max_cache_size=self._config.max_cache_size,
        )
        log_stage(
            self._logger,
            Stage.STATISTICS,
            "Statistics computed",
            level="debug",
            item_count=stats.item_count,
            hit_rate=round(stats.hit_rate, 4),
        )
        return stats

    def stats(self) -> dict[str, Any]:
        """
        In-process counters only (no disk access).

        Returns:
            Dict with hit/miss counters and memory layer utilization
        """
        total = self._hit_count + self._miss_count
        return {
            "hit_count": self._hit_count,
            "miss_count": self._miss_count,
            "hit_rate": self._hit_count / total if total > 0 else 0.0,
            "last_access_time": self._last_access_time,
            "memory_cache": self._memory.stats() if self._memory is not None else None,
            "observed_keys": self._notifier.get_channel_count(),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Check that the cache directories exist and are writable.

        Returns:
            Dict with status "healthy" or "unhealthy" plus details
        """
        writable = await asyncio.to_thread(
            lambda: self._metadata_dir.is_dir() and os.access(self._root, os.W_OK)
        )
        return {
            "status": "healthy" if writable else "unhealthy",
            "cache_dir": str(self._root),
            "writable": writable,
            "memory_cache": self._memory.stats() if self._memory is not None else None,
        }

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    async def put_batch(self, entries: Mapping[str, str], ttl_ms: int | None = None) -> int:
        """Store several strings; returns how many succeeded."""
        succeeded = 0
        for key, value in entries.items():
            if await self.put_string(key, value, ttl_ms):
                succeeded += 1
        return succeeded

    async def get_batch(self, keys: Iterable[str]) -> dict[str, str | None]:
        return {key: await self.get_string(key) for key in keys}

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    async def _current_value(self, key: str) -> ObservedValue:
        """Current observable value without touching hit/miss counters."""
        try:
            metadata = await self._metadata.load(key)
            if metadata is None or metadata.is_expired(self._clock()):
                return None
            if self._memory is not None:
                entry = await self._memory.peek(key)
                if entry is not None:
                    return entry.value
            if not await self._blobs.exists(key):
                return None
            return await self._observed_value(key, metadata)
        except (BlobCacheError, OSError) as e:
            self._log_failure(Stage.OBSERVE, "Failed to load current value", key, e)
            return None

    async def observe_key(self, key: str) -> AsyncIterator[ObservedValue]:
        """
        Subscribe to a key.

        Yields the current value (None if absent) immediately, then the
        latest value after every write or delete of the key. Observers of
        the same key share one channel. Stops when the consumer stops
        iterating.
        """
        channel = self._notifier.channel(key)
        if not channel.seeded:
            channel.seed(await self._current_value(key))
        log_stage(self._logger, Stage.OBSERVE, "Observer subscribed", level="debug", cache_key=key)
        async for value in channel.subscribe():
            yield value

    async def shutdown(self) -> None:
        """Release in-memory state. Disk contents are kept."""
        if self._memory is not None:
            await self._memory.clear()
        log_stage(self._logger, Stage.INITIALIZATION, "Cache manager shutdown")
