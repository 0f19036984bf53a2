"""
Cleanup Scheduler

Periodic runner that drives expired-entry cleanup on a cache.

The scheduler owns interval and retry policy; the cache only exposes
clear_expired(). It depends on the SupportsExpiredCleanup protocol, never
on a concrete engine.

Lifecycle:
    scheduler = CleanupScheduler(cache, interval_ms=60_000)
    await scheduler.start()      # first sweep one interval from now
    removed = await scheduler.trigger_now()
    await scheduler.stop()       # graceful, then cancel after timeout

Failure Handling:
    A failed sweep is retried with exponential backoff + jitter (tenacity).
    Once attempts are exhausted the failure is logged and the loop waits
    for the next interval. Errors outside the retryable set are not retried
    but are logged and counted the same way; they never end the loop.
"""

import asyncio

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from blobcache.core.config.constants import (
    MILLIS_PER_SECOND,
    SCHEDULER_MAX_ATTEMPTS,
    SCHEDULER_RETRY_INITIAL_DELAY,
    SCHEDULER_RETRY_MAX_DELAY,
    SCHEDULER_SHUTDOWN_TIMEOUT,
    Stage,
)
from blobcache.core.config.settings import SchedulerSettings
from blobcache.core.exceptions import BlobCacheError, SchedulerError
from blobcache.core.interfaces.cache import SupportsExpiredCleanup
from blobcache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

RETRYABLE_ERRORS = (BlobCacheError, OSError)


class CleanupScheduler:
    """Runs target.clear_expired() every interval_ms on an asyncio task."""

    def __init__(
        self,
        target: SupportsExpiredCleanup,
        interval_ms: int,
        *,
        max_attempts: int = SCHEDULER_MAX_ATTEMPTS,
        retry_initial_delay: float = SCHEDULER_RETRY_INITIAL_DELAY,
        retry_max_delay: float = SCHEDULER_RETRY_MAX_DELAY,
        shutdown_timeout: float = SCHEDULER_SHUTDOWN_TIMEOUT,
        name: str = "cache_cleanup",
    ):
        """
        Args:
            target: Object exposing clear_expired()
            interval_ms: Time between sweeps
            max_attempts: Attempts per sweep before giving up until next interval
            retry_initial_delay: First backoff delay (seconds)
            retry_max_delay: Backoff cap (seconds)
            shutdown_timeout: Seconds stop() waits before cancelling the task
            name: Label used in logs

        Raises:
            SchedulerError: If target does not support cleanup or the
                timing parameters are invalid
        """
        if not isinstance(target, SupportsExpiredCleanup):
            raise SchedulerError(
                "Scheduler target must provide clear_expired()",
                details={"target_type": type(target).__name__},
            )
        if interval_ms <= 0:
            raise SchedulerError("interval_ms must be > 0", details={"interval_ms": interval_ms})
        if max_attempts < 1:
            raise SchedulerError("max_attempts must be >= 1", details={"max_attempts": max_attempts})

        self._target = target
        self._interval_ms = interval_ms
        self._max_attempts = max_attempts
        self._retry_initial_delay = retry_initial_delay
        self._retry_max_delay = retry_max_delay
        self._shutdown_timeout = shutdown_timeout
        self._name = name

        self._running = False
        self._shutdown_event = asyncio.Event()
        self._task: asyncio.Task | None = None

        self._run_count = 0
        self._failure_count = 0
        self._last_result: int | None = None
        self._last_error: str | None = None

    @classmethod
    def from_settings(
        cls,
        target: SupportsExpiredCleanup,
        interval_ms: int,
        settings: SchedulerSettings,
    ) -> "CleanupScheduler":
        return cls(
            target,
            interval_ms,
            max_attempts=settings.SCHEDULER_MAX_ATTEMPTS,
            retry_initial_delay=settings.SCHEDULER_RETRY_INITIAL_DELAY,
            retry_max_delay=settings.SCHEDULER_RETRY_MAX_DELAY,
            shutdown_timeout=settings.SCHEDULER_SHUTDOWN_TIMEOUT,
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def run_count(self) -> int:
        """Number of successful sweeps."""
        return self._run_count

    @property
    def failure_count(self) -> int:
        """Number of sweeps that failed after all attempts."""
        return self._failure_count

    @property
    def last_result(self) -> int | None:
        """Entries removed by the last successful sweep."""
        return self._last_result

    @property
    def last_error(self) -> str | None:
        return self._last_error

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic loop. No-op if already running."""
        if self.is_running:
            return

        self._running = True
        self._shutdown_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name=f"{self._name}_scheduler")
        log_stage(
            logger,
            Stage.SCHEDULER,
            "Cleanup scheduler started",
            scheduler=self._name,
            interval_ms=self._interval_ms,
            max_attempts=self._max_attempts,
        )

    async def stop(self) -> None:
        """
        Stop the loop.

        Waits up to shutdown_timeout for an in-flight sweep to notice the
        shutdown signal, then cancels the task.
        """
        if self._task is None:
            return

        self._running = False
        self._shutdown_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=self._shutdown_timeout)
        except asyncio.TimeoutError:
            log_stage(
                logger,
                Stage.SCHEDULER,
                "Scheduler shutdown timeout, cancelling task",
                level="warning",
                scheduler=self._name,
                timeout_seconds=self._shutdown_timeout,
            )
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                log_stage(logger, Stage.SCHEDULER, "Scheduler task cancelled", scheduler=self._name)
        finally:
            self._task = None

        log_stage(logger, Stage.SCHEDULER, "Cleanup scheduler stopped", scheduler=self._name)

    async def _run_loop(self) -> None:
        interval_seconds = self._interval_ms / MILLIS_PER_SECOND
        while self._running and not self._shutdown_event.is_set():
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval_seconds)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.trigger_now()
            except SchedulerError:
                # Already logged; next attempt at the next interval
                continue
            except Exception as e:
                self._failure_count += 1
                self._last_error = str(e)
                log_stage(
                    logger,
                    Stage.SCHEDULER,
                    "Unexpected cleanup error, continuing at next interval",
                    level="error",
                    scheduler=self._name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def trigger_now(self) -> int:
        """
        Run one sweep immediately, with retries.

        Returns:
            Number of entries removed

        Raises:
            SchedulerError: If every attempt failed
        """
        cancel_event = self._shutdown_event if self._running else None

        @retry(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(
                initial=self._retry_initial_delay,
                max=self._retry_max_delay,
                jitter=self._retry_initial_delay,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
            before_sleep=lambda retry_state: log_stage(
                logger,
                Stage.SCHEDULER,
                "Cleanup attempt failed, retrying",
                level="warning",
                scheduler=self._name,
                attempt=retry_state.attempt_number,
                error=str(retry_state.outcome.exception()),
            ),
        )
        async def _sweep_with_retry() -> int:
            return await self._target.clear_expired(cancel_event)

        try:
            removed = await _sweep_with_retry()
        except RETRYABLE_ERRORS as e:
            self._failure_count += 1
            self._last_error = str(e)
            log_stage(
                logger,
                Stage.SCHEDULER,
                "Cleanup failed after all attempts",
                level="error",
                scheduler=self._name,
                attempts=self._max_attempts,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise SchedulerError(
                "Cleanup failed after all attempts",
                details={"scheduler": self._name, "attempts": self._max_attempts, "error": str(e)},
            ) from e

        self._run_count += 1
        self._last_result = removed
        self._last_error = None
        log_stage(
            logger,
            Stage.SCHEDULER,
            "Automatic cleanup completed",
            scheduler=self._name,
            removed=removed,
            run_count=self._run_count,
        )
        return removed
