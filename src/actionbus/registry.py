"""Channel registry: one lazily created channel per action name."""

from __future__ import annotations

import threading

from loguru import logger

from actionbus.channel import Channel
from actionbus.core.constants import SubscriberErrorPolicy


class ChannelRegistry:
    """Maps action name -> Channel, creating channels on first access.

    Any string is accepted as a name; the declared action set is a static
    contract only. There is no removal: channels live until close_all(). After
    that, names not seen before get a closed channel that is not kept.
    """

    def __init__(self, *, subscriber_errors: SubscriberErrorPolicy = "log") -> None:
        self._subscriber_errors = subscriber_errors
        self._lock = threading.Lock()
        self._channels: dict[str, Channel] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once close_all() ran."""
        return self._closed

    def resolve(self, name: str) -> Channel:
        """Return the channel for name, creating it if needed.

        Once the registry is closed, unknown names get a closed channel that
        is not stored.
        """
        channel = self._channels.get(name)
        if channel is not None:
            return channel
        with self._lock:
            channel = self._channels.get(name)
            if channel is not None:
                return channel
            channel = Channel(name, subscriber_errors=self._subscriber_errors)
            if self._closed:
                channel.close()
                logger.debug("Closed channel handed out for {}", name)
                return channel
            self._channels[name] = channel
        logger.debug("Channel created: {}", name)
        return channel

    def get(self, name: str) -> Channel | None:
        """Existing channel for name, without creating one."""
        return self._channels.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._channels)

    def channels(self) -> list[Channel]:
        with self._lock:
            return list(self._channels.values())

    def close_all(self) -> int:
        """Close every channel; return how many were still open."""
        with self._lock:
            self._closed = True
            snapshot = list(self._channels.values())
        closed = 0
        for channel in snapshot:
            if channel.close():
                closed += 1
        return closed

    def __contains__(self, name: object) -> bool:
        return name in self._channels

    def __len__(self) -> int:
        return len(self._channels)
