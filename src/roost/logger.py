"""Runtime logging.

Production output goes through a leveled logger: the user's
``custom_logger`` or a stdlib ``logging.Logger``. In debug mode
``Roost.pretty_log`` prints timestamped, colored lines to stderr instead.
Color is only used when stderr is a TTY.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

from roost.config import LoggerOptions

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def level_number(level: str) -> int:
    """Map a level name (``"info"``, ``"warn"``, ...) to its logging constant."""
    try:
        return _LEVELS[level.lower()]
    except KeyError:
        msg = f"Unknown log level {level!r}; expected one of {', '.join(_LEVELS)}"
        raise ValueError(msg) from None


def build_logger(options: LoggerOptions) -> logging.Logger:
    """Return the stdlib logger described by *options*."""
    log = logging.getLogger(options.name)
    log.setLevel(level_number(options.level))
    return log


def log_at(log: Any, level: str, message: str) -> None:
    """Call ``log.<level>(message)``; ``warn`` falls back to ``warning``."""
    method = getattr(log, level, None)
    if method is None and level == "warn":
        method = getattr(log, "warning", None)
    if method is None:
        method = log.info
    method(message)


def _use_color(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


class _Palette:
    """ANSI escape sequences, empty strings when color is disabled."""

    __slots__ = ("dim", "red", "reset", "yellow")

    def __init__(self, *, enabled: bool) -> None:
        if enabled:
            self.reset = "\033[0m"
            self.dim = "\033[2m"
            self.red = "\033[31m"
            self.yellow = "\033[33m"
        else:
            self.reset = ""
            self.dim = ""
            self.red = ""
            self.yellow = ""


def debug_log(message: str, level: str = "info", *, stream: TextIO | None = None) -> None:
    """Write one debug-mode log line to *stream* (stderr by default)."""
    out = stream or sys.stderr
    c = _Palette(enabled=_use_color(out))
    number = level_number(level)
    if number >= logging.ERROR:
        color = c.red
    elif number >= logging.WARNING:
        color = c.yellow
    elif number <= logging.DEBUG:
        color = c.dim
    else:
        color = ""
    out.write(f"{color}{message}{c.reset}\n")
    out.flush()
