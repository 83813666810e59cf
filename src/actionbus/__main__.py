"""Demo entrypoint. Reads ``action value`` lines from stdin and dispatches them."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from loguru import logger

from actionbus import __version__
from actionbus.bus import ActionBus, declared_actions
from actionbus.coercion import coerce_int, coerce_string
from actionbus.config import Config, cfg, load_config_with_env
from actionbus.surface import Dispatcher


class DemoActions:
    """Actions of the demo bus."""

    search: str
    count: int


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
_LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"
_MARKUP_ESCAPES = str.maketrans({"{": "{{", "}": "}}", "<": "\\<"})


def _intercept_logging(level: str) -> None:
    """Route stdlib logging records to loguru."""

    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            try:
                log_level: str | int = logger.level(record.levelname).name
            except ValueError:
                log_level = record.levelno
            msg = record.getMessage().replace("{", "{{").replace("}", "}}")
            logger.patch(
                lambda r: r.update(
                    name=record.name,
                    function=record.funcName,
                    line=record.lineno,
                ),
            ).opt(exception=record.exc_info).log(log_level, msg)

    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)


def _escape_markup(record: Any) -> bool:
    """Sink filter: dispatched values end up in messages; keep them literal."""
    message = record.get("message")
    if isinstance(message, str):
        record["message"] = message.translate(_MARKUP_ESCAPES)
    return True


def _log_level(verbose: bool) -> str:
    if verbose:
        return "DEBUG"
    requested = (os.environ.get("LOG_LEVEL") or "").upper()
    return requested if requested in _LOG_LEVELS else "INFO"


def setup_logging(verbose: bool = False) -> None:
    """Single stderr sink at DEBUG (--verbose), LOG_LEVEL, or INFO."""
    level = _log_level(verbose)
    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT, filter=_escape_markup)
    _intercept_logging(level)


def reload_config(config_path: Path | None) -> Config:
    """Load config from path (when given) and update global cfg."""
    data = load_config_with_env(config_path) if config_path else {}
    cfg.reload(data)
    return cfg


def build_demo_bus(config: Config, echo: Callable[[str], None]) -> ActionBus:
    """Demo bus with coercing transforms and a printer on every stream."""
    bus = ActionBus(DemoActions, {"search": coerce_string, "count": coerce_int}, config=config)
    for name in bus.actions:
        bus.observe(name).subscribe(
            lambda value, name=name: echo(f"{name}: {value!r}"),
            lambda name=name: echo(f"{name}: completed"),
        )
    return bus


def run_demo(lines: Iterable[str], config: Config, echo: Callable[[str], None] = print) -> ActionBus:
    """Dispatch each ``action value`` line, then tear the bus down."""
    with build_demo_bus(config, echo) as bus:
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            name, _, value = line.partition(" ")
            accessor = bus.actions[name]
            if not isinstance(accessor, Dispatcher):
                logger.warning("Skipping {!r}: {} is a stream, not an action", line, name)
                continue
            if name not in bus.actions:
                logger.debug("Dispatching undeclared action {}", name)
            accessor(value)
    return bus


def main() -> None:
    """Main entrypoint."""
    parser = argparse.ArgumentParser(description="actionbus demo: dispatch `action value` lines read from stdin")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML config file (default: built-in settings)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    if args.config is not None and not args.config.exists():
        logger.error("Config file not found: {}", args.config)
        sys.exit(1)

    config = reload_config(args.config)
    if args.config is not None:
        logger.info("Config loaded from {}", args.config)

    logger.info("Demo bus ready; actions: {}", ", ".join(declared_actions(DemoActions)))
    run_demo(sys.stdin, config)


if __name__ == "__main__":
    main()
