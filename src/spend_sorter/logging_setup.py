"""Logging configuration for the ``spend_sorter`` package.

- ``configure_logging(...)`` attaches a single stderr ``StreamHandler`` to the
  package logger. The CLI calls it once at startup.
- ``get_logger(name)`` returns a module logger. Until logging is configured
  the package logger carries a ``NullHandler`` so library use stays silent.

Modules never attach handlers of their own.
"""
import logging
import os
import sys
from typing import IO, Optional, Union

PACKAGE_LOGGER_NAME = "spend_sorter"
LOG_LEVEL_ENV = "SPEND_SORTER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: Optional[logging.StreamHandler] = None


def _level_from_name(name: str) -> Optional[int]:
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: Union[int, str, None]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str) and _level_from_name(level) is not None:
        return _level_from_name(level)
    env_val = os.getenv(LOG_LEVEL_ENV)
    if env_val and _level_from_name(env_val) is not None:
        return _level_from_name(env_val)
    return logging.WARNING


def configure_logging(
    level: Union[int, str, None] = None,
    fmt: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Configure the package logger.

    The handler is created on the first call; later calls only update
    its level and stream.

    Args:
        level: Level as int or name. Falls back to SPEND_SORTER_LOG_LEVEL,
            then WARNING.
        fmt: Optional format string
        stream: Output stream, stderr by default so reports on stdout stay clean
    """
    global _handler

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    if _handler is not None:
        _handler.setStream(stream or sys.stderr)
        logger.setLevel(_parse_level(level))
        return

    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger.setLevel(_parse_level(level))
    logger.addHandler(_handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger, keeping the package quiet until configured."""
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    if _handler is None and not package_logger.handlers:
        package_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
