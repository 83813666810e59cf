"""Action bus: ties the registry, transforms and surface together; owns teardown."""

from __future__ import annotations

import inspect
from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from actionbus.channel import Channel, Stream
from actionbus.config import Config, cfg
from actionbus.core.errors import BusRetiredError
from actionbus.registry import ChannelRegistry
from actionbus.surface import ActionSurface, backend_of
from actionbus.transforms import Transform, TransformPipeline

# A class with annotations (``class UIActions: search: str``), a mapping of
# name -> value type, or an iterable of names.
ActionDeclaration = type | Mapping[str, Any] | Iterable[str] | str


def declared_actions(actions: ActionDeclaration | None, extra: Iterable[str] = ()) -> list[str]:
    """Ordered, de-duplicated action names from a declaration plus extra names."""
    names: list[str] = []
    if actions is None:
        pass
    elif isinstance(actions, str):
        names.append(actions)
    elif isinstance(actions, type):
        for klass in reversed(actions.__mro__):
            if klass is object:
                continue
            names.extend(inspect.get_annotations(klass))
    elif isinstance(actions, Mapping):
        names.extend(actions)
    else:
        names.extend(actions)
    names.extend(extra)
    return list(dict.fromkeys(names))


def _teardown_registry(registry: ChannelRegistry) -> None:
    if registry.closed:
        logger.debug("Teardown skipped: already torn down")
        return
    count = registry.close_all()
    logger.info("Action bus torn down: {} channels closed", count)


class ActionBus:
    """In-process bus: one dispatcher and one stream per action.

    The owning scope calls teardown() once when it ends (or uses the bus as a
    context manager); after that every dispatch is a no-op and every stream is
    completed.
    """

    def __init__(
        self,
        actions: ActionDeclaration | None = None,
        transforms: Mapping[str, Transform] | None = None,
        *,
        config: Config | None = None,
        registry: ChannelRegistry | None = None,
    ) -> None:
        self._config = config if config is not None else cfg
        if registry is None:
            registry = ChannelRegistry(subscriber_errors=self._config.subscriber_errors)
        self._registry = registry
        self._transforms = TransformPipeline(transforms)
        self._actions = ActionSurface(
            self,
            declared_actions(actions, self._transforms.names()),
            suffix=self._config.observable_suffix,
        )

    @property
    def actions(self) -> ActionSurface:
        """The accessor surface: ``actions.search(v)`` / ``actions.search_stream``."""
        return self._actions

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    @property
    def transforms(self) -> TransformPipeline:
        return self._transforms

    @property
    def config(self) -> Config:
        return self._config

    @property
    def retired(self) -> bool:
        """True once teardown() ran."""
        return self._registry.closed

    def channel(self, name: str) -> Channel:
        """Channel for name (created on demand)."""
        return self._registry.resolve(name)

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> None:
        """Transform the arguments and publish the result on the action's channel."""
        channel = self._registry.resolve(name)
        value = self._transforms.apply(name, args, kwargs)
        if not channel.publish(value):
            self._dispatch_after_teardown(name)

    def observe(self, name: str) -> Stream:
        """Subscribe-only stream of the action's values."""
        return self._registry.resolve(name).stream

    def teardown(self) -> None:
        """Close every channel; completes all streams. Idempotent."""
        _teardown_registry(self._registry)

    def _dispatch_after_teardown(self, name: str) -> None:
        policy = self._config.post_teardown_dispatch
        if policy == "raise":
            raise BusRetiredError(
                f"Cannot dispatch {name!r}: bus was torn down",
                code="bus_retired",
                details={"action": name},
            )
        if policy == "warn":
            logger.warning("Dispatch of {} ignored: bus was torn down", name)
        else:
            logger.debug("Dispatch of {} ignored: bus was torn down", name)

    def __enter__(self) -> ActionBus:
        return self

    def __exit__(self, *exc: object) -> None:
        self.teardown()

    def __repr__(self) -> str:
        state = "retired" if self.retired else "active"
        return f"<ActionBus {state} channels={len(self._registry)}>"


class ActionsFactory:
    """Owner-scoped factory; every surface it creates shares one set of channels.

    Each create() call may bring its own transforms, but an action name maps
    to the same channel across all surfaces of the factory. teardown() closes
    them all.
    """

    def __init__(self, actions: ActionDeclaration | None = None, *, config: Config | None = None) -> None:
        self._actions = actions
        self._config = config if config is not None else cfg
        self._registry = ChannelRegistry(subscriber_errors=self._config.subscriber_errors)

    @property
    def retired(self) -> bool:
        return self._registry.closed

    def create(self, transforms: Mapping[str, Transform] | None = None) -> ActionSurface:
        """New surface over the shared channels, with optional transforms."""
        bus = ActionBus(self._actions, transforms, config=self._config, registry=self._registry)
        return bus.actions

    def teardown(self) -> None:
        """Close every shared channel. Idempotent."""
        _teardown_registry(self._registry)

    def __enter__(self) -> ActionsFactory:
        return self

    def __exit__(self, *exc: object) -> None:
        self.teardown()


def create_bus(
    actions: ActionDeclaration | None = None,
    transforms: Mapping[str, Transform] | None = None,
    *,
    config: Config | None = None,
) -> ActionSurface:
    """Build a bus and return its accessor surface.

    ``actions`` declares the action names, ``transforms`` maps some of them
    to argument-normalizing functions. Tear down with ``teardown(surface)``.
    """
    return ActionBus(actions, transforms, config=config).actions


def bus_of(surface: ActionSurface) -> ActionBus:
    """The ActionBus that owns a surface."""
    backend = backend_of(surface)
    if not isinstance(backend, ActionBus):
        raise TypeError(f"surface is not backed by an ActionBus: {backend!r}")
    return backend


def teardown(surface: ActionSurface) -> None:
    """Tear down the bus behind a surface."""
    bus_of(surface).teardown()
