"""actionbus: in-process action bus with per-action dispatchers and streams."""

from actionbus.bus import ActionBus, ActionsFactory, bus_of, create_bus, teardown
from actionbus.channel import Channel, Observer, Stream, Subscription
from actionbus.core.errors import (
    ActionBusConfigurationError,
    ActionBusError,
    BusRetiredError,
    UnsupportedOperationError,
)
from actionbus.surface import ActionSurface, Dispatcher

__version__ = "0.1.0"

__all__ = [
    "ActionBus",
    "ActionBusConfigurationError",
    "ActionBusError",
    "ActionSurface",
    "ActionsFactory",
    "BusRetiredError",
    "Channel",
    "Dispatcher",
    "Observer",
    "Stream",
    "Subscription",
    "UnsupportedOperationError",
    "__version__",
    "bus_of",
    "create_bus",
    "teardown",
]
