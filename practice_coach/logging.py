"""Project logging: one ``practice_coach`` logger tree writing to stdout.

LOG_LEVEL sets the level (default INFO). Level names are colored when
stdout is a TTY, unless LOG_NO_COLOR=1. The server's own loggers
(uvicorn) can be routed through the same handler with route_server_logs().
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Iterable

BASE_LOGGER = "practice_coach"
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _LevelColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[35m",
    }
    RESET = "\x1b[0m"

    def __init__(self, use_color: bool = True):
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname) if self.use_color else None
        if color is None:
            return super().format(record)
        # other handlers may share the record
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(tinted)


def _wants_color() -> bool:
    if os.getenv("LOG_NO_COLOR") == "1":
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def _resolve_level(level_name: str | None) -> int:
    name = (level_name or os.getenv("LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level_name: str | None = None) -> logging.Logger:
    """Configure the base logger once; later calls only adjust the level."""
    base = logging.getLogger(BASE_LOGGER)
    base.setLevel(_resolve_level(level_name))
    base.propagate = False
    if not base.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_LevelColorFormatter(use_color=_wants_color()))
        base.addHandler(handler)
    return base


def route_server_logs(names: Iterable[str] = SERVER_LOGGERS) -> None:
    """Send third-party loggers through the project handler and level."""
    base = setup_logging()
    for name in names:
        other = logging.getLogger(name)
        other.handlers = list(base.handlers)
        other.setLevel(base.level)
        other.propagate = False


def get_logger(name: str | None = None, *, level_name: str | None = None) -> logging.Logger:
    base = logging.getLogger(BASE_LOGGER)
    if level_name is not None or not base.handlers:
        base = setup_logging(level_name)
    return base.getChild(name) if name else base


logger = get_logger()
