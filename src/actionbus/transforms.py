"""Transform pipeline: per-action argument normalization before publish."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from actionbus.core.errors import ActionBusConfigurationError

Transform = Callable[..., Any]


class TransformPipeline:
    """Immutable table of action name -> transform function."""

    def __init__(self, transforms: Mapping[str, Transform] | None = None) -> None:
        table: dict[str, Transform] = {}
        for name, fn in (transforms or {}).items():
            if not callable(fn):
                raise ActionBusConfigurationError(
                    f"transform for {name!r} is not callable",
                    code="invalid_transform",
                    details={"action": name, "type": type(fn).__name__},
                )
            table[str(name)] = fn
        self._table = MappingProxyType(table)

    @property
    def table(self) -> Mapping[str, Transform]:
        """Read-only view of the transforms."""
        return self._table

    def has(self, name: str) -> bool:
        return name in self._table

    def names(self) -> list[str]:
        return list(self._table)

    def apply(self, name: str, args: tuple[Any, ...], kwargs: Mapping[str, Any] | None = None) -> Any:
        """Map raw dispatch arguments to the value to publish.

        With a transform, its result (exceptions propagate to the caller).
        Without one, the first positional argument, or None when there is none.
        """
        fn = self._table.get(name)
        if fn is not None:
            return fn(*args, **(kwargs or {}))
        if kwargs:
            raise TypeError(f"action {name!r} has no transform and takes no keyword arguments")
        return args[0] if args else None
