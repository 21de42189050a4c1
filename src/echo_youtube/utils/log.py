"""Logger factory shared by every layer.

Loggers live under the ``echo_youtube`` namespace.  :func:`setup_logger`
may be called any number of times for the same name: it adjusts the
level and only adds handlers that are not attached yet.
"""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME: str = "echo_youtube"

_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for *name* inside the package namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: int = logging.WARNING,
    log_file: str | None = None,
) -> logging.Logger:
    """Create or update a logger with a stream handler and optional file handler."""
    logger = get_logger(name)
    logger.setLevel(level)
    formatter = logging.Formatter(_FORMAT)

    has_stream = any(
        type(handler) is logging.StreamHandler for handler in logger.handlers
    )
    if not has_stream:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if log_file:
        has_file = any(
            isinstance(handler, logging.FileHandler) for handler in logger.handlers
        )
        if not has_file:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
