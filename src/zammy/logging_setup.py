"""Logging configuration for the zammy CLI."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from zammy.config.schema import LoggingConfig


def debug_requested() -> bool:
    """Whether ``ZAMMY_DEBUG`` is set to a truthy value."""
    return os.environ.get("ZAMMY_DEBUG", "").lower() not in ("", "0", "false", "no")


def configure_logging(config: LoggingConfig, console: Console | None = None) -> None:
    """Route zammy and plugin log records through rich.

    Plugin loggers live under ``zammy.plugins.<name>`` and inherit this setup.
    """
    level = logging.DEBUG if config.debug or debug_requested() else getattr(logging, config.level)

    root = logging.getLogger("zammy")
    root.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=console, show_time=False, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.propagate = False
