"""Logger setup from a textual log level."""

from __future__ import annotations

import logging

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

_HANDLER_NAME = "flightpipe"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def init_logger(log_level: str) -> int:
    """Configure the root logger for the given level name and return the level.

    Raises ValueError if the name is not a known level.
    """
    try:
        level = _LEVELS[log_level.lower()]
    except KeyError:
        raise ValueError(f"not a valid log level: {log_level!r}") from None

    root = logging.getLogger()
    handler = next((h for h in root.handlers if h.name == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.name = _HANDLER_NAME
        root.addHandler(handler)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    root.setLevel(level)
    return level