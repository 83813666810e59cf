"""YAML + .env loading for bus settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from loguru import logger

SECTION = "actionbus"


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = _deep_update(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise


def load_config(path: str | Path) -> dict[str, Any]:
    """Settings from a YAML file; ``{}`` when the file is missing or empty.

    Keys may sit at the top level or under an ``actionbus:`` section, which
    wins over the top level.
    """
    path = Path(path)
    if not path.is_file():
        logger.warning("Config file not found: {}", path)
        return {}

    data = _read_yaml(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file {} ignored: top level is {}, expected a mapping", path, type(data).__name__)
        return {}

    section = data.get(SECTION)
    if not isinstance(section, dict):
        return data
    del data[SECTION]
    return _deep_update(data, section)


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """load_config() after ``.env`` is loaded; Config reads ``ACTIONBUS_*`` itself."""
    from dotenv import load_dotenv

    load_dotenv()
    return load_config(path)
