"""Logging utilities for multiopt.

Every module obtains its logger through :func:`get_logger` so that all
package loggers share one handler layout and can be re-levelled together.
The initial level is read from the ``MULTIOPT_LOG_LEVEL`` environment
variable (default: WARNING).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_LEVEL_ENV_VAR = "MULTIOPT_LOG_LEVEL"
_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def _level_from_env() -> int:
    value = os.getenv(_LEVEL_ENV_VAR, "WARNING")
    if value.isdigit():
        return int(value)
    return getattr(logging, value.upper(), logging.WARNING)


_DEFAULT_LEVEL = _level_from_env()

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Loggers are cached to avoid duplicate handlers. The logger name should
    typically be ``__name__`` of the calling module.

    Args:
        name: Logger name (typically ``__name__``). If None, returns the
            package logger ``multiopt``.

    Returns:
        Configured logger instance.

    Example:
        >>> from multiopt.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("Powell iteration %d", 3)
    """
    if name is None:
        name = "multiopt"

    if name == "multiopt" or name.startswith("multiopt."):
        logger_name = name
    else:
        logger_name = f"multiopt.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)

    # Only configure if not already configured (avoid duplicate handlers)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_DEFAULT_LEVEL)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the logging level for all multiopt loggers.

    Args:
        level: Logging level (``logging.DEBUG``, ``logging.INFO``, ...) or its
            name (``'DEBUG'``, ``'INFO'``, ...).
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Configure logging for multiopt.

    Replaces the handlers of every package logger created so far and sets
    the defaults used for loggers created later.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses the default.
        stream: Output stream (default: ``sys.stderr``).
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    if stream is None:
        stream = sys.stderr

    formatter = logging.Formatter(format_string or _FORMAT)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(stream)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


__all__ = ["get_logger", "set_log_level", "configure_logging"]
