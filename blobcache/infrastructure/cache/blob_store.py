"""
Blob Store

Persists raw payload bytes, one file per key, named by the key's hash,
directly inside the root cache directory.

Writes go to a hidden temp file in the same directory and are moved into
place with os.replace, so a reader sees either the old payload or the new
one, never a partial write. I/O runs through aiofiles to keep the event
loop free.
"""

import asyncio
import contextlib
import stat
import uuid
from collections.abc import AsyncIterable, Callable
from pathlib import Path
from typing import BinaryIO

import aiofiles
import aiofiles.os

from blobcache.core.config.constants import FILE_COPY_CHUNK_SIZE, TEMP_FILE_SUFFIX
from blobcache.core.exceptions.cache import CacheStorageError
from blobcache.infrastructure.cache.key_hasher import hash_key

BlobSource = BinaryIO | AsyncIterable[bytes]


class BlobStore:
    """Hash-addressed payload files under one directory."""

    def __init__(self, root_dir: Path, hasher: Callable[[str], str] = hash_key):
        self._root = Path(root_dir)
        self._hasher = hasher

    @property
    def root_dir(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        """Blob path for a cache key (the file may not exist)."""
        return self._root / self._hasher(key)

    def _temp_path_for(self, key: str) -> Path:
        # Leading dot keeps temp files out of size scans
        return self._root / f".{self._hasher(key)}.{uuid.uuid4().hex}{TEMP_FILE_SUFFIX}"

    async def write(self, key: str, data: bytes) -> int:
        """
        Atomically replace the payload for a key.

        Returns:
            Number of bytes written

        Raises:
            CacheStorageError: If the payload could not be persisted
        """

        async def _write(f) -> int:
            await f.write(data)
            return len(data)

        return await self._write_atomic(key, _write)

    async def write_stream(self, key: str, source: BlobSource) -> int:
        """
        Atomically replace the payload for a key from a stream.

        Args:
            key: Cache key
            source: Binary file object (read in chunks off the event loop)
                or an async iterable of byte chunks

        Returns:
            Number of bytes written
        """

        async def _copy(f) -> int:
            written = 0
            if hasattr(source, "read"):
                while chunk := await asyncio.to_thread(source.read, FILE_COPY_CHUNK_SIZE):
                    await f.write(chunk)
                    written += len(chunk)
            else:
                async for chunk in source:
                    await f.write(chunk)
                    written += len(chunk)
            return written

        return await self._write_atomic(key, _copy)

    async def _write_atomic(self, key: str, writer) -> int:
        target = self.path_for(key)
        temp = self._temp_path_for(key)
        try:
            await aiofiles.os.makedirs(self._root, exist_ok=True)
            async with aiofiles.open(temp, "wb") as f:
                written = await writer(f)
            await aiofiles.os.replace(temp, target)
            return written
        except OSError as e:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(temp)
            raise CacheStorageError.from_exception(
                e, "Failed to write blob", cache_key=key, path=str(target)
            ) from e

    async def read(self, key: str) -> bytes | None:
        """
        Load the payload for a key.

        Returns:
            Payload bytes, or None if no blob file exists

        Raises:
            CacheStorageError: On any other read failure
        """
        path = self.path_for(key)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheStorageError.from_exception(
                e, "Failed to read blob", cache_key=key, path=str(path)
            ) from e

    async def exists(self, key: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(key))

    async def delete(self, key: str) -> bool:
        """
        Delete the payload for a key.

        Returns:
            True if a file was removed, False if there was none
        """
        path = self.path_for(key)
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheStorageError.from_exception(
                e, "Failed to delete blob", cache_key=key, path=str(path)
            ) from e

    async def total_size(self, cancel_event: asyncio.Event | None = None) -> int:
        """
        Sum of all blob file sizes, recomputed by listing the directory.

        Hidden entries (temp files, the metadata directory) are skipped.
        Stops early and returns the partial sum if cancel_event is set.
        """
        try:
            names = await aiofiles.os.listdir(self._root)
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise CacheStorageError.from_exception(
                e, "Failed to list cache directory", path=str(self._root)
            ) from e

        total = 0
        for name in names:
            if cancel_event is not None and cancel_event.is_set():
                break
            if name.startswith("."):
                continue
            try:
                st = await aiofiles.os.stat(self._root / name)
            except FileNotFoundError:
                # Removed between listing and stat
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
        return total
