"""Action bus constants."""

from __future__ import annotations

from typing import Literal

DEFAULT_OBSERVABLE_SUFFIX = "_stream"

PostTeardownPolicy = Literal["warn", "ignore", "raise"]
POST_TEARDOWN_POLICIES: tuple[PostTeardownPolicy, ...] = ("warn", "ignore", "raise")

SubscriberErrorPolicy = Literal["log", "raise"]
SUBSCRIBER_ERROR_POLICIES: tuple[SubscriberErrorPolicy, ...] = ("log", "raise")

SETTER_REJECTED_MESSAGE = "No setters available. To emit, call the action: actions.{name}(value)"
