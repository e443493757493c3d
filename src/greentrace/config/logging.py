"""Logging setup for the command line."""

from __future__ import annotations

import logging

from .env import optional_env
from .errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# one INFO line per HTTP request drowns out the tracker's own logs
_CHATTY_LOGGERS = ("httpx", "httpcore")


def resolve_log_level(default: int = logging.INFO) -> int:
    """Level named by ``GREENTRACE_LOG_LEVEL``, or ``default`` when unset."""

    raw = optional_env("GREENTRACE_LOG_LEVEL")
    if raw is None:
        return default
    level = logging.getLevelNamesMapping().get(raw.upper())
    if level is None:
        raise ConfigurationError(f"GREENTRACE_LOG_LEVEL is not a logging level: {raw!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger with a terse CLI format.

    ``level`` falls back to ``GREENTRACE_LOG_LEVEL`` and then INFO. The HTTP
    stack's loggers stay at WARNING unless ``level`` asks for DEBUG.
    """

    resolved = level if level is not None else resolve_log_level()
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    chatty_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)
