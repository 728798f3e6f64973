# qstate/logging.py
"""Logging helpers for qstate.

Every module asks for its logger through `get_logger(__name__)` so that all
loggers live under the ``qstate`` namespace and share one handler setup.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

_DEFAULT_LEVEL = logging.WARNING
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
_format = _DEFAULT_FORMAT
_stream = None

_loggers: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _make_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(_stream if _stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_format))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a cached logger under the ``qstate`` namespace.

    Args:
        name: Logger name, usually ``__name__``. None returns the package logger.
    """
    if name is None:
        name = "qstate"
    logger_name = name if name == "qstate" or name.startswith("qstate.") else f"qstate.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        logger.addHandler(_make_handler(_DEFAULT_LEVEL))
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every qstate logger, current and future."""
    global _DEFAULT_LEVEL
    level = _coerce_level(level)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Replace the handlers of all qstate loggers, current and future.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses the default.
        stream: Output stream (default: sys.stderr).
    """
    global _DEFAULT_LEVEL, _format, _stream
    level = _coerce_level(level)
    _DEFAULT_LEVEL = level
    _format = format_string or _DEFAULT_FORMAT
    _stream = stream
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_make_handler(level))
