"""Ready-made transforms for UI-style payloads.

UI callbacks often hand over an event object (``event.target.value``) where
the action wants a plain value. These helpers accept either form::

    actions = create_bus(UIActions, {"search": coerce_string, "count": coerce_int})
    actions.search(event)   # publishes event.target.value as str
    actions.count("4")      # publishes 4
"""

from __future__ import annotations

import math
from typing import Any, TypeVar

F = TypeVar("F")

_MISSING = object()


def _target_value(e: Any) -> Any:
    """``e.target.value`` (attribute or mapping access), or _MISSING."""
    if isinstance(e, dict):
        target = e.get("target")
    else:
        target = getattr(e, "target", None)
    if target is None:
        return _MISSING
    if isinstance(target, dict):
        return target.get("value", _MISSING)
    value = getattr(target, "value", _MISSING)
    return _MISSING if value is None else value


def coerce_event_value(e: Any, fallback: F | None = None) -> str | F | Any:
    """Event target value as str; else ``fallback`` when given, else ``e`` itself."""
    value = _target_value(e)
    if value is not _MISSING:
        return f"{value}"
    return fallback if fallback is not None else e


def coerce_string(e: Any) -> str:
    """Event value or plain value, as a string."""
    value = coerce_event_value(e)
    return "" if value is None else f"{value}"


def _parse_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        number = value
    else:
        text = f"{value}".strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def coerce_number(e: Any, fallback: int | float = 0) -> int | float:
    """Event value parsed as a number (int when integral); ``fallback`` otherwise."""
    number = _parse_number(coerce_event_value(e))
    return fallback if number is None else number


def coerce_int(e: Any, fallback: int = 0) -> int:
    """Event value parsed as an integer; ``fallback`` when not an integer."""
    value = coerce_event_value(e)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(f"{value}".strip())
    except ValueError:
        return fallback
