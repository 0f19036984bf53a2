"""
Unit Tests for ChangeNotifier

Tests latest-value replay, shared channels and conflation.
"""

import asyncio

import pytest

from blobcache.infrastructure.cache.change_notifier import ChangeNotifier, KeyChannel


async def _next(iterator, timeout: float = 1.0):
    return await asyncio.wait_for(anext(iterator), timeout=timeout)


@pytest.mark.unit
class TestKeyChannel:
    """Test a single latest-value channel."""

    @pytest.mark.asyncio
    async def test_subscriber_receives_current_value_first(self):
        channel = KeyChannel("k")
        channel.seed("initial")

        iterator = channel.subscribe()

        assert await _next(iterator) == "initial"

    @pytest.mark.asyncio
    async def test_subscriber_receives_published_values(self):
        channel = KeyChannel("k")
        iterator = channel.subscribe()
        assert await _next(iterator) is None

        channel.publish("v1")
        assert await _next(iterator) == "v1"

        channel.publish(None)
        assert await _next(iterator) is None

    @pytest.mark.asyncio
    async def test_slow_subscriber_sees_latest_value_only(self):
        channel = KeyChannel("k")
        iterator = channel.subscribe()
        await _next(iterator)

        channel.publish("v1")
        channel.publish("v2")
        channel.publish("v3")

        assert await _next(iterator) == "v3"
        with pytest.raises(asyncio.TimeoutError):
            await _next(iterator, timeout=0.05)

    @pytest.mark.asyncio
    async def test_waiting_subscriber_is_woken(self):
        channel = KeyChannel("k")
        iterator = channel.subscribe()
        await _next(iterator)

        pending = asyncio.create_task(_next(iterator))
        await asyncio.sleep(0)
        channel.publish("later")

        assert await pending == "later"

    def test_seed_ignored_after_publish(self):
        channel = KeyChannel("k")
        channel.publish("published")

        channel.seed("stale")

        assert channel.value == "published"
        assert channel.version == 1


@pytest.mark.unit
class TestChangeNotifier:
    """Test the channel registry."""

    def test_channel_is_created_once_per_key(self):
        notifier = ChangeNotifier()

        assert notifier.channel("k") is notifier.channel("k")
        assert notifier.get_channel_count() == 1

    def test_publish_without_channel_is_noop(self):
        notifier = ChangeNotifier()

        notifier.publish("never-observed", "v")

        assert notifier.has_channel("never-observed") is False

    @pytest.mark.asyncio
    async def test_two_subscribers_share_values(self):
        notifier = ChangeNotifier()
        first = notifier.channel("k").subscribe()
        second = notifier.channel("k").subscribe()
        await _next(first)
        await _next(second)

        notifier.publish("k", "v")

        assert await _next(first) == "v"
        assert await _next(second) == "v"

    @pytest.mark.asyncio
    async def test_reset_publishes_absence_everywhere(self):
        notifier = ChangeNotifier()
        notifier.channel("a").publish("1")
        notifier.channel("b").publish("2")

        notifier.reset()

        assert notifier.channel("a").value is None
        assert notifier.channel("b").value is None
