"""Re-export from core.errors."""

from actionbus.core.errors import (
    ActionBusConfigurationError,
    ActionBusError,
    BusRetiredError,
    UnsupportedOperationError,
)

__all__ = [
    "ActionBusConfigurationError",
    "ActionBusError",
    "BusRetiredError",
    "UnsupportedOperationError",
]
