"""Action bus exceptions."""

from __future__ import annotations


class ActionBusError(Exception):
    """Base for action bus errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class ActionBusConfigurationError(ActionBusError):
    """Config validation or transform table failure."""


class UnsupportedOperationError(ActionBusError, AttributeError):
    """Write or delete attempted on an action surface.

    Actions are triggered by calling them: ``actions.search("abc")``, never by
    assignment (``actions.search = "abc"``).
    """


class BusRetiredError(ActionBusError):
    """Dispatch on a torn-down bus when ``post_teardown_dispatch`` is ``raise``."""
