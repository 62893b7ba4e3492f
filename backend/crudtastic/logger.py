"""
Crudtastic: Logging
===================

What:  Process-wide logging setup and the per-request logger handed to
       route handlers.
How:   Standard library `logging`. Route handlers receive a
       `RequestLogger`, a plain callable `log(message, color=None)`; the
       colour hint picks the level and is rendered as ANSI colour on a TTY.

Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
"""

import logging
import sys
from typing import Any, Optional

from crudtastic import __version__
from crudtastic.exceptions import CrudtasticError

logger = logging.getLogger("crudtastic")

ANSI_COLORS = {
    "red": "\033[31m",
    "green": "\033[92m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[95m",
    "cyan": "\033[96m",
    "white": "\033[97m",
}
ANSI_RESET = "\033[0m"

# Colour hints double as severity hints for handler diagnostics
COLOR_LEVELS = {
    "red": logging.ERROR,
    "yellow": logging.WARNING,
}


def colorize(text: str, color: Optional[str]) -> str:
    code = ANSI_COLORS.get(color or "")
    if code is None:
        return text
    return f"{code}{text}{ANSI_RESET}"


def tag_message(msg: str) -> str:
    """Prefix a startup/lifecycle message with the product tag."""
    return f"[crudtastic v{__version__}] {msg}"


class ColorFormatter(logging.Formatter):
    """Applies a record's `color` attribute when writing to a terminal."""

    def __init__(self, *args: Any, use_color: bool = True, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        rendered = super().format(record)
        color = getattr(record, "color", None)
        if self.use_color and color:
            return colorize(rendered, color)
        return rendered


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Called once by the Server before any other initialization.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ColorFormatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            use_color=sys.stdout.isatty(),
        )
    )
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


class RequestLogger:
    """
    Per-request diagnostic sink injected into route handlers.

    Fire-and-forget: calling it never raises and returns nothing useful.

    Example:
        log = RequestLogger("a1b2c3d4")
        log(err, "red")     # ERROR  [a1b2c3d4] ...
        log("loaded")       # INFO   [a1b2c3d4] loaded
    """

    def __init__(self, request_id: str = "", base: Optional[logging.Logger] = None):
        self.request_id = request_id
        self._logger = base or logging.getLogger("crudtastic.request")

    def __call__(self, message: Any, color: Optional[str] = None) -> None:
        level = COLOR_LEVELS.get(color or "", logging.INFO)
        # Tracebacks only for unexpected errors; app errors carry their own message
        unexpected = isinstance(message, Exception) and not isinstance(message, CrudtasticError)
        self._logger.log(
            level,
            "[%s] %s",
            self.request_id,
            message,
            exc_info=message if unexpected else None,
            extra={"request_id": self.request_id, "color": color},
        )
