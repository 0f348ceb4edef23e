"""Package-wide logging helpers."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_ROOT_LOGGER_NAME = "sbf_e2e"
_DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the ``sbf_e2e`` namespace.

    Parameters
    ----------
    name : Optional[str]
        Name of the child logger. Names already starting with ``sbf_e2e`` (e.g. a module's
        ``__name__``) are used as-is.

    Returns
    -------
    logging.Logger
        The logger.
    """
    if not name:
        return logging.getLogger(_ROOT_LOGGER_NAME)
    if name == _ROOT_LOGGER_NAME or name.startswith(_ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: Union[int, str] = "INFO") -> logging.Logger:
    """Install a single stderr handler on the package logger and set its level.

    Calling this more than once only updates the level.
    """
    global _handler
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(_handler)
    return logger
