"""Config schema and accessor."""

from __future__ import annotations

import os
from typing import Any

from loguru import logger

from actionbus.core.constants import (
    DEFAULT_OBSERVABLE_SUFFIX,
    POST_TEARDOWN_POLICIES,
    SUBSCRIBER_ERROR_POLICIES,
    PostTeardownPolicy,
    SubscriberErrorPolicy,
)
from actionbus.core.errors import ActionBusConfigurationError

# Env keys that override config (loaded once per reload)
_ENV_OVERRIDE_KEYS = (
    "ACTIONBUS_OBSERVABLE_SUFFIX",
    "ACTIONBUS_POST_TEARDOWN_DISPATCH",
    "ACTIONBUS_SUBSCRIBER_ERRORS",
)


def _load_env_overrides() -> dict[str, str]:
    """Load env overrides once per reload."""
    return {k: os.environ.get(k, "") for k in _ENV_OVERRIDE_KEYS}


class Config:
    """Config accessor with attribute-style access for nested keys."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data."""
        self._data = data or {}
        self._env = _load_env_overrides()
        if validate:
            self._validate()
        logger.debug(
            "Config reloaded: suffix={!r} post_teardown_dispatch={} subscriber_errors={}",
            self.observable_suffix,
            self.post_teardown_dispatch,
            self.subscriber_errors,
        )

    def _validate(self) -> None:
        """Validate config values; raise ActionBusConfigurationError on failure."""
        suffix = self._setting("observable_suffix", "ACTIONBUS_OBSERVABLE_SUFFIX")
        if suffix is not None and (not isinstance(suffix, str) or not suffix):
            raise ActionBusConfigurationError(
                "observable_suffix must be a non-empty string",
                code="invalid_observable_suffix",
                details={"value": suffix},
            )

        policy = self._setting("post_teardown_dispatch", "ACTIONBUS_POST_TEARDOWN_DISPATCH")
        if policy is not None and str(policy).lower() not in POST_TEARDOWN_POLICIES:
            raise ActionBusConfigurationError(
                f"post_teardown_dispatch must be one of {', '.join(POST_TEARDOWN_POLICIES)}",
                code="invalid_post_teardown_dispatch",
                details={"value": policy},
            )

        errors = self._setting("subscriber_errors", "ACTIONBUS_SUBSCRIBER_ERRORS")
        if errors is not None and str(errors).lower() not in SUBSCRIBER_ERROR_POLICIES:
            raise ActionBusConfigurationError(
                f"subscriber_errors must be one of {', '.join(SUBSCRIBER_ERROR_POLICIES)}",
                code="invalid_subscriber_errors",
                details={"value": errors},
            )

    def _setting(self, key: str, env_key: str) -> Any:
        """Env override when set, else the config value (None when absent)."""
        env_val = self._env.get(env_key, "")
        if env_val:
            return env_val
        return self._data.get(key)

    @property
    def raw(self) -> dict[str, Any]:
        """Raw config dict."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path."""
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def observable_suffix(self) -> str:
        """Suffix that marks the stream accessor of an action (``search_stream``)."""
        val = self._setting("observable_suffix", "ACTIONBUS_OBSERVABLE_SUFFIX")
        if isinstance(val, str) and val:
            return val
        return DEFAULT_OBSERVABLE_SUFFIX

    @property
    def post_teardown_dispatch(self) -> PostTeardownPolicy:
        """What a dispatch on a torn-down bus does: warn (default), ignore or raise."""
        val = str(self._setting("post_teardown_dispatch", "ACTIONBUS_POST_TEARDOWN_DISPATCH") or "").lower()
        if val in POST_TEARDOWN_POLICIES:
            return val  # type: ignore[return-value]
        return "warn"

    @property
    def subscriber_errors(self) -> SubscriberErrorPolicy:
        """Whether a failing subscriber is logged and skipped (default) or re-raised."""
        val = str(self._setting("subscriber_errors", "ACTIONBUS_SUBSCRIBER_ERRORS") or "").lower()
        if val in SUBSCRIBER_ERROR_POLICIES:
            return val  # type: ignore[return-value]
        return "log"


# Default config for buses created without one (reloaded by __main__)
cfg: Config = Config({})
