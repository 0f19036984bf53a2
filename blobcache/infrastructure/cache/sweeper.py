"""
Expiry Sweeper

Scans every metadata record and deletes the expired ones.

The scan itself runs without the engine's write lock. The actual delete
goes through a callback that re-reads the record under the lock and only
deletes if it is still expired, so a key refreshed mid-sweep survives.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

from blobcache.core.config.constants import Stage
from blobcache.core.logging.logger import get_logger, log_stage
from blobcache.core.models.cache import Clock, now_ms
from blobcache.infrastructure.cache.metadata_store import MetadataStore

logger = get_logger(__name__)

RemoveIfExpired = Callable[[str], Awaitable[bool]]


class ExpirySweeper:
    """Stateless sweep routine bound to one metadata store."""

    def __init__(
        self,
        metadata_store: MetadataStore,
        remove_if_expired: RemoveIfExpired,
        clock: Clock = now_ms,
    ):
        self._metadata = metadata_store
        self._remove_if_expired = remove_if_expired
        self._clock = clock

    async def sweep(self, cancel_event: asyncio.Event | None = None) -> int:
        """
        Delete every entry whose metadata reports expired.

        Args:
            cancel_event: Checked between entries; once set, the sweep stops
                and returns what it removed so far

        Returns:
            Number of entries removed
        """
        start = time.perf_counter()
        records = await self._metadata.list_all(cancel_event)
        now = self._clock()

        removed = 0
        cancelled = False
        for record in records:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            if record.is_expired(now) and await self._remove_if_expired(record.key):
                removed += 1

        log_stage(
            logger,
            Stage.SWEEP,
            "Expiry sweep cancelled" if cancelled else "Expiry sweep completed",
            scanned=len(records),
            removed=removed,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return removed
