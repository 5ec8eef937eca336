"""Logging setup for silk.

Library modules only call ``logging.getLogger(__name__)``; the application
entry point calls ``setup_logging()`` once to attach handlers to the
``silk`` logger.
"""

from __future__ import annotations

import logging
import sys

from silk.config.logging_config import LoggingConfig

ROOT_LOGGER_NAME = "silk"

# Marks handlers installed here so repeated setup replaces them.
_HANDLER_FLAG = "_silk_handler"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the ``silk`` logger.

    Safe to call more than once: handlers from a previous call are closed
    and replaced, and handlers added by anyone else are left alone.

    Args:
        config: Logging configuration. Uses defaults if ``None``.

    Returns:
        The configured ``silk`` logger.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = getattr(logging, config.level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file is not None:
        path = config.file.expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_FLAG, True)
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger
