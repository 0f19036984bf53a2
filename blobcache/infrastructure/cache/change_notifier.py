"""
Change Notifier

Per-key broadcast channels with "replay latest value" semantics.

A channel exists for every key that has ever been observed. Publishing
replaces the channel's value and wakes every waiting subscriber; slow
subscribers skip intermediate values and always see the latest one
(conflation). Nothing is buffered beyond that single value.
"""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

from blobcache.core.config.constants import Stage
from blobcache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

ObservedValue = str | bytes | Path | None


class KeyChannel:
    """
    Latest-value channel for one key.

    Each publish bumps a version counter and swaps in a fresh asyncio.Event,
    setting the previous one. A subscriber that captured the old event is
    therefore woken even if it was not yet waiting when the publish ran.
    """

    def __init__(self, key: str):
        self.key = key
        self._value: ObservedValue = None
        self._version = 0
        self._seeded = False
        self._changed = asyncio.Event()

    @property
    def value(self) -> ObservedValue:
        return self._value

    @property
    def version(self) -> int:
        return self._version

    @property
    def seeded(self) -> bool:
        return self._seeded

    def seed(self, value: ObservedValue) -> None:
        """Set the initial value; ignored once the channel holds one."""
        if not self._seeded:
            self._value = value
            self._seeded = True

    def publish(self, value: ObservedValue) -> None:
        self._value = value
        self._seeded = True
        self._version += 1
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    async def subscribe(self) -> AsyncIterator[ObservedValue]:
        """
        Yield the current value, then the latest value after every change.

        Runs until the consumer stops iterating or its task is cancelled.
        """
        seen = self._version
        yield self._value
        while True:
            changed = self._changed
            if self._version == seen:
                await changed.wait()
            seen = self._version
            yield self._value


class ChangeNotifier:
    """Registry of key channels, created lazily on first observation."""

    def __init__(self):
        self._channels: dict[str, KeyChannel] = {}

    def channel(self, key: str) -> KeyChannel:
        """Get the channel for a key, creating it if needed."""
        channel = self._channels.get(key)
        if channel is None:
            channel = KeyChannel(key)
            self._channels[key] = channel
            log_stage(logger, Stage.OBSERVE, "Change channel created", level="debug", cache_key=key)
        return channel

    def has_channel(self, key: str) -> bool:
        return key in self._channels

    def publish(self, key: str, value: ObservedValue) -> None:
        """Publish to the key's channel; keys never observed have no channel."""
        channel = self._channels.get(key)
        if channel is not None:
            channel.publish(value)

    def reset(self) -> None:
        """Publish absence on every channel."""
        for channel in self._channels.values():
            channel.publish(None)

    def get_channel_count(self) -> int:
        return len(self._channels)
