"""
Unit Tests for CleanupScheduler

Tests periodic execution, retry with backoff and lifecycle handling.
"""

import asyncio

import pytest

from blobcache.core.config.settings import SchedulerSettings
from blobcache.core.exceptions import CacheStorageError, SchedulerError
from blobcache.infrastructure.scheduling.cleanup_scheduler import CleanupScheduler


class CleanupTarget:
    """Cleanup target that fails a configurable number of times first."""

    def __init__(self, failures: int = 0, removed: int = 2, error: Exception | None = None):
        self.failures = failures
        self.removed = removed
        self.error = error or CacheStorageError("metadata directory unreadable")
        self.calls = 0
        self.cancel_events = []

    async def clear_expired(self, cancel_event: asyncio.Event | None = None) -> int:
        self.calls += 1
        self.cancel_events.append(cancel_event)
        if self.calls <= self.failures:
            raise self.error
        return self.removed


def _scheduler(target, **overrides) -> CleanupScheduler:
    values = {
        "interval_ms": 50,
        "max_attempts": 3,
        "retry_initial_delay": 0.01,
        "retry_max_delay": 0.02,
        "shutdown_timeout": 1.0,
    }
    values.update(overrides)
    return CleanupScheduler(target, **values)


@pytest.mark.unit
class TestConstruction:
    """Test argument validation."""

    def test_rejects_target_without_clear_expired(self):
        with pytest.raises(SchedulerError):
            CleanupScheduler(object(), interval_ms=1_000)

    @pytest.mark.parametrize("interval_ms", [0, -1])
    def test_rejects_non_positive_interval(self, interval_ms):
        with pytest.raises(SchedulerError):
            CleanupScheduler(CleanupTarget(), interval_ms=interval_ms)

    def test_rejects_zero_attempts(self):
        with pytest.raises(SchedulerError):
            CleanupScheduler(CleanupTarget(), interval_ms=1_000, max_attempts=0)

    def test_from_settings(self):
        settings = SchedulerSettings(SCHEDULER_MAX_ATTEMPTS=5, SCHEDULER_SHUTDOWN_TIMEOUT=2.0)

        scheduler = CleanupScheduler.from_settings(CleanupTarget(), 30_000, settings)

        assert scheduler.interval_ms == 30_000
        assert scheduler.is_running is False


@pytest.mark.unit
class TestTriggerNow:
    """Test on-demand sweeps with retry."""

    @pytest.mark.asyncio
    async def test_returns_removed_count(self):
        scheduler = _scheduler(CleanupTarget(removed=7))

        assert await scheduler.trigger_now() == 7
        assert scheduler.run_count == 1
        assert scheduler.last_result == 7
        assert scheduler.last_error is None

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self):
        target = CleanupTarget(failures=2, removed=1)
        scheduler = _scheduler(target)

        assert await scheduler.trigger_now() == 1
        assert target.calls == 3

    @pytest.mark.asyncio
    async def test_raises_after_all_attempts(self):
        target = CleanupTarget(failures=10)
        scheduler = _scheduler(target)

        with pytest.raises(SchedulerError) as exc_info:
            await scheduler.trigger_now()

        assert target.calls == 3
        assert exc_info.value.details["attempts"] == 3
        assert scheduler.failure_count == 1
        assert "unreadable" in scheduler.last_error

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates(self):
        target = CleanupTarget(failures=1, error=RuntimeError("bug"))
        scheduler = _scheduler(target)

        with pytest.raises(RuntimeError):
            await scheduler.trigger_now()

        assert target.calls == 1

    @pytest.mark.asyncio
    async def test_no_cancel_event_when_stopped(self):
        target = CleanupTarget()
        scheduler = _scheduler(target)

        await scheduler.trigger_now()

        assert target.cancel_events == [None]


@pytest.mark.unit
class TestLifecycle:
    """Test the periodic loop."""

    @pytest.mark.asyncio
    async def test_runs_periodically(self):
        target = CleanupTarget()
        scheduler = _scheduler(target)

        await scheduler.start()
        assert scheduler.is_running is True
        await asyncio.sleep(0.18)
        await scheduler.stop()

        assert target.calls >= 2
        assert scheduler.is_running is False
        assert all(event is not None for event in target.cancel_events)

    @pytest.mark.asyncio
    async def test_first_run_waits_one_interval(self):
        target = CleanupTarget()
        scheduler = _scheduler(target, interval_ms=10_000)

        await scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert target.calls == 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        scheduler = _scheduler(CleanupTarget(), interval_ms=10_000)

        await scheduler.start()
        task = scheduler._task
        await scheduler.start()

        assert scheduler._task is task
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        scheduler = _scheduler(CleanupTarget())

        await scheduler.stop()

        assert scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_loop_survives_failed_sweep(self):
        target = CleanupTarget(failures=1)
        scheduler = _scheduler(target, max_attempts=1)

        await scheduler.start()
        await asyncio.sleep(0.18)
        await scheduler.stop()

        assert scheduler.failure_count == 1
        assert scheduler.run_count >= 1

    @pytest.mark.asyncio
    async def test_loop_survives_unexpected_error(self):
        target = CleanupTarget(failures=1, error=ValueError("unexpected"))
        scheduler = _scheduler(target)

        await scheduler.start()
        await asyncio.sleep(0.18)
        assert scheduler.is_running is True
        await scheduler.stop()

        assert target.calls >= 2
        assert scheduler.failure_count == 1
        assert scheduler.run_count >= 1
        assert scheduler.last_error is None

    @pytest.mark.asyncio
    async def test_stop_cancels_slow_sweep(self):
        class SlowTarget:
            async def clear_expired(self, cancel_event=None):
                await asyncio.sleep(10)
                return 0

        scheduler = _scheduler(SlowTarget(), interval_ms=10, shutdown_timeout=0.05)

        await scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert scheduler.is_running is False
