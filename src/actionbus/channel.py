"""Channel: per-action multicast event source with a terminal closed state."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from actionbus.core.constants import SubscriberErrorPolicy

OnNext = Callable[[Any], None]
OnCompleted = Callable[[], None]


@runtime_checkable
class Observer(Protocol):
    """Listener interface: on_next per value, on_completed once on close."""

    def on_next(self, value: Any) -> None: ...

    def on_completed(self) -> None: ...


class Subscription:
    """Handle returned by subscribe; unsubscribe() stops delivery."""

    __slots__ = ("_channel", "_on_next", "_on_completed", "_active")

    def __init__(
        self,
        channel: Channel,
        on_next: OnNext,
        on_completed: OnCompleted | None,
        *,
        active: bool = True,
    ) -> None:
        self._channel = channel
        self._on_next = on_next
        self._on_completed = on_completed
        self._active = active

    @property
    def active(self) -> bool:
        """True until unsubscribed or the channel closes."""
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving values. Safe to call more than once or mid-delivery."""
        if not self._active:
            return
        self._active = False
        self._channel._remove(self)

    def __repr__(self) -> str:
        state = "active" if self._active else "inactive"
        return f"<Subscription {self._channel.name!r} {state}>"


class Channel:
    """Hot multicast stream for one action. No replay; closing is permanent.

    Values published while open go synchronously, in publish order, to every
    subscription registered at the moment of the call. Delivery runs outside
    the lock on a snapshot, so listeners may subscribe, unsubscribe or publish
    re-entrantly; a subscription deactivated mid-delivery is skipped.
    """

    def __init__(self, name: str, *, subscriber_errors: SubscriberErrorPolicy = "log") -> None:
        self.name = name
        self._subscriber_errors = subscriber_errors
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []
        self._closed = False
        self._stream = Stream(self)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stream(self) -> Stream:
        """Subscribe-only view of this channel (same object on every access)."""
        return self._stream

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(
        self,
        on_next: OnNext | Observer,
        on_completed: OnCompleted | None = None,
    ) -> Subscription:
        """Register a listener. On a closed channel, completes immediately."""
        on_next, on_completed = _split_observer(on_next, on_completed)
        with self._lock:
            if not self._closed:
                sub = Subscription(self, on_next, on_completed)
                self._subscriptions.append(sub)
                return sub

        sub = Subscription(self, on_next, on_completed, active=False)
        if on_completed is not None:
            self._invoke(on_completed)
        return sub

    def publish(self, value: Any) -> bool:
        """Deliver value to current subscribers. Returns False when closed."""
        with self._lock:
            if self._closed:
                return False
            snapshot = list(self._subscriptions)

        for sub in snapshot:
            if sub._active:
                self._invoke(sub._on_next, value)
        return True

    def close(self) -> bool:
        """Complete every subscriber and close. Returns False if already closed."""
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            snapshot = self._subscriptions
            self._subscriptions = []
            for sub in snapshot:
                sub._active = False

        for sub in snapshot:
            if sub._on_completed is not None:
                self._invoke(sub._on_completed)
        return True

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def _invoke(self, fn: Callable[..., None], *args: Any) -> None:
        if self._subscriber_errors == "raise":
            fn(*args)
            return
        try:
            fn(*args)
        except Exception as exc:
            logger.exception("Subscriber of {} failed: {}", self.name, exc)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Channel {self.name!r} {state} subscribers={self.subscriber_count}>"


class Stream:
    """Read-only handle on a channel: subscribe, nothing else."""

    __slots__ = ("_channel",)

    def __init__(self, channel: Channel) -> None:
        self._channel = channel

    @property
    def name(self) -> str:
        return self._channel.name

    @property
    def closed(self) -> bool:
        """True once the owning bus was torn down (stream completed)."""
        return self._channel.closed

    def subscribe(
        self,
        on_next: OnNext | Observer,
        on_completed: OnCompleted | None = None,
    ) -> Subscription:
        """Receive every value published from now on until unsubscribe or completion.

        Accepts either callbacks or an observer object with ``on_next`` and
        optionally ``on_completed``.
        """
        return self._channel.subscribe(on_next, on_completed)

    def __repr__(self) -> str:
        return f"<Stream {self._channel.name!r}>"


def _split_observer(
    target: OnNext | Observer,
    on_completed: OnCompleted | None,
) -> tuple[OnNext, OnCompleted | None]:
    """Normalize an observer object or a bare callback to (on_next, on_completed)."""
    handler = getattr(target, "on_next", None)
    if callable(handler):
        if on_completed is None:
            completed = getattr(target, "on_completed", None)
            on_completed = completed if callable(completed) else None
        return handler, on_completed
    if not callable(target):
        raise TypeError(f"subscribe() needs a callable or an observer, got {type(target).__name__}")
    return target, on_completed
