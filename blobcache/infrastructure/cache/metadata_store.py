"""
Metadata Store

One JSON record per cache key under `<root>/.metadata/<hash>.meta`.

The original key lives inside the record, since file names are hashes and
cannot be reversed. Listing therefore parses every record on disk.
Records are encoded with orjson and validated back through pydantic.
"""

import asyncio
import contextlib
import uuid
from collections.abc import Callable
from pathlib import Path

import aiofiles
import aiofiles.os
import orjson
from pydantic import ValidationError

from blobcache.core.config.constants import (
    METADATA_FILE_SUFFIX,
    TEMP_FILE_SUFFIX,
    Stage,
)
from blobcache.core.exceptions.cache import CacheSerializationError, CacheStorageError
from blobcache.core.logging.logger import get_logger, log_stage
from blobcache.core.models.cache import CacheMetadata
from blobcache.infrastructure.cache.key_hasher import hash_key

logger = get_logger(__name__)


def encode_metadata(metadata: CacheMetadata) -> bytes:
    """Serialize a metadata record to JSON bytes."""
    try:
        return orjson.dumps(metadata.model_dump(mode="json"))
    except (TypeError, orjson.JSONEncodeError) as e:
        raise CacheSerializationError.from_exception(
            e, "Failed to encode metadata", cache_key=metadata.key
        ) from e


def decode_metadata(raw: bytes) -> CacheMetadata:
    """Parse JSON bytes back into a metadata record."""
    try:
        return CacheMetadata.model_validate(orjson.loads(raw))
    except (orjson.JSONDecodeError, ValidationError) as e:
        raise CacheSerializationError.from_exception(e, "Corrupted metadata record") from e


class MetadataStore:
    """Per-key metadata records inside the metadata directory."""

    def __init__(self, metadata_dir: Path, hasher: Callable[[str], str] = hash_key):
        self._dir = Path(metadata_dir)
        self._hasher = hasher

    @property
    def metadata_dir(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        return self._dir / f"{self._hasher(key)}{METADATA_FILE_SUFFIX}"

    async def save(self, metadata: CacheMetadata) -> None:
        """
        Atomically write the record for metadata.key.

        Raises:
            CacheSerializationError: If the record cannot be encoded
            CacheStorageError: If the file cannot be written
        """
        raw = encode_metadata(metadata)
        target = self.path_for(metadata.key)
        temp = self._dir / f".{target.stem}.{uuid.uuid4().hex}{TEMP_FILE_SUFFIX}"
        try:
            await aiofiles.os.makedirs(self._dir, exist_ok=True)
            async with aiofiles.open(temp, "wb") as f:
                await f.write(raw)
            await aiofiles.os.replace(temp, target)
        except OSError as e:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(temp)
            raise CacheStorageError.from_exception(
                e, "Failed to write metadata", cache_key=metadata.key, path=str(target)
            ) from e

    async def load(self, key: str) -> CacheMetadata | None:
        """
        Read the record for a key.

        Returns:
            The record, or None if there is no record for this key (including
            a hash collision where the stored key differs)

        Raises:
            CacheSerializationError: If the record is corrupted
            CacheStorageError: If the file exists but cannot be read
        """
        path = self.path_for(key)
        raw = await self._read(path)
        if raw is None:
            return None
        try:
            metadata = decode_metadata(raw)
        except CacheSerializationError as e:
            raise e.with_context(cache_key=key, path=str(path))
        if metadata.key != key:
            log_stage(
                logger,
                Stage.METADATA,
                "Metadata key mismatch, treating as absent",
                level="warning",
                cache_key=key,
                stored_key=metadata.key,
            )
            return None
        return metadata

    async def delete(self, key: str) -> bool:
        """Delete the record for a key; True if a file was removed."""
        path = self.path_for(key)
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheStorageError.from_exception(
                e, "Failed to delete metadata", cache_key=key, path=str(path)
            ) from e

    async def list_all(self, cancel_event: asyncio.Event | None = None) -> list[CacheMetadata]:
        """
        Parse every record on disk.

        Unreadable or corrupted records are logged and skipped.
        """
        records: list[CacheMetadata] = []
        for path in await self._record_paths():
            if cancel_event is not None and cancel_event.is_set():
                break
            try:
                raw = await self._read(path)
                if raw is not None:
                    records.append(decode_metadata(raw))
            except (CacheSerializationError, CacheStorageError) as e:
                log_stage(
                    logger,
                    Stage.METADATA,
                    "Skipping unreadable metadata record",
                    level="warning",
                    path=str(path),
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return records

    async def count(self) -> int:
        """Number of records on disk, without parsing them."""
        return len(await self._record_paths())

    async def _record_paths(self) -> list[Path]:
        try:
            names = await aiofiles.os.listdir(self._dir)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise CacheStorageError.from_exception(
                e, "Failed to list metadata directory", path=str(self._dir)
            ) from e
        return [
            self._dir / name
            for name in sorted(names)
            if name.endswith(METADATA_FILE_SUFFIX) and not name.startswith(".")
        ]

    @staticmethod
    async def _read(path: Path) -> bytes | None:
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheStorageError.from_exception(
                e, "Failed to read metadata", path=str(path)
            ) from e
