"""Accessor surface: per-action dispatchers and stream accessors by attribute name."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, Protocol

from actionbus.channel import Stream
from actionbus.core.constants import SETTER_REJECTED_MESSAGE
from actionbus.core.errors import ActionBusConfigurationError, UnsupportedOperationError


class ActionBackend(Protocol):
    """What a surface routes to: dispatch for calls, observe for streams."""

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> None: ...

    def observe(self, name: str) -> Stream: ...


class Dispatcher:
    """Callable bound to one action; calling it publishes to the action's channel."""

    __slots__ = ("name", "_backend")

    def __init__(self, backend: ActionBackend, name: str) -> None:
        self.name = name
        self._backend = backend

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self._backend.dispatch(self.name, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<Dispatcher {self.name!r}>"


class ActionSurface:
    """Object through which actions are dispatched and observed.

    ``actions.search("abc")`` dispatches, ``actions.search_stream`` is the
    stream (the suffix is configurable). Declared actions are bound when the
    surface is built; other names resolve on first access and are cached.
    Assigning or deleting attributes raises UnsupportedOperationError.
    """

    def __init__(self, backend: ActionBackend, actions: Iterable[str] = (), *, suffix: str) -> None:
        if not suffix:
            raise ActionBusConfigurationError("observable suffix must not be empty", code="invalid_observable_suffix")
        declared = list(dict.fromkeys(actions))
        _check_collisions(declared, suffix)

        set_ = object.__setattr__
        set_(self, "_ActionSurface__backend", backend)
        set_(self, "_ActionSurface__suffix", suffix)
        set_(self, "_ActionSurface__declared", tuple(declared))
        set_(self, "_ActionSurface__accessors", {})

        for name in declared:
            self.__resolve(name)
            self.__resolve(name + suffix)

    def __resolve(self, key: str) -> Dispatcher | Stream:
        accessors: dict[str, Dispatcher | Stream] = self.__accessors
        accessor = accessors.get(key)
        if accessor is not None:
            return accessor

        if key not in self.__declared and key.endswith(self.__suffix) and key != self.__suffix:
            accessor = self.__backend.observe(key[: -len(self.__suffix)])
        else:
            accessor = Dispatcher(self.__backend, key)
        accessor = accessors.setdefault(key, accessor)
        if key.isidentifier():
            self.__dict__.setdefault(key, accessor)
        return accessor

    def __getattr__(self, name: str) -> Dispatcher | Stream:
        if (name.startswith("__") and name.endswith("__")) or name.startswith("_ActionSurface__"):
            raise AttributeError(name)
        return self.__resolve(name)

    def __getitem__(self, key: str) -> Dispatcher | Stream:
        if not isinstance(key, str):
            raise TypeError(f"action names are strings, got {type(key).__name__}")
        return self.__resolve(key)

    def __setattr__(self, name: str, value: Any) -> None:
        raise _rejected(name)

    def __delattr__(self, name: str) -> None:
        raise _rejected(name)

    def __setitem__(self, key: str, value: Any) -> None:
        raise _rejected(key)

    def __delitem__(self, key: str) -> None:
        raise _rejected(key)

    def __contains__(self, name: object) -> bool:
        return name in self.__declared

    def __iter__(self) -> Iterator[str]:
        return iter(self.__declared)

    def __dir__(self) -> list[str]:
        suffix = self.__suffix
        return sorted([*self.__declared, *(name + suffix for name in self.__declared)])

    def __repr__(self) -> str:
        return f"<ActionSurface actions={list(self.__declared)!r}>"


def backend_of(surface: ActionSurface) -> ActionBackend:
    """The bus behind a surface (read without going through attribute routing)."""
    return object.__getattribute__(surface, "_ActionSurface__backend")


def _rejected(name: str) -> UnsupportedOperationError:
    action = name if isinstance(name, str) else repr(name)
    return UnsupportedOperationError(
        SETTER_REJECTED_MESSAGE.format(name=action),
        code="setter_not_supported",
        details={"attribute": action},
    )


def _check_collisions(declared: list[str], suffix: str) -> None:
    """A declared action must not also be the stream accessor of another one."""
    names = set(declared)
    for name in declared:
        if not isinstance(name, str) or not name:
            raise ActionBusConfigurationError(
                f"action names must be non-empty strings, got {name!r}",
                code="invalid_action_name",
                details={"action": name},
            )
        if name.endswith(suffix) and name[: -len(suffix)] in names:
            raise ActionBusConfigurationError(
                f"action {name!r} collides with the stream accessor of {name[: -len(suffix)]!r}",
                code="action_name_collision",
                details={"action": name, "suffix": suffix},
            )
