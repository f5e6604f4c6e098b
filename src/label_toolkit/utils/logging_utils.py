"""
Logging setup for command-line use.
"""
from __future__ import annotations

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Chatty third-party loggers kept at WARNING unless debugging
_NOISY_LOGGERS = ("httpx", "openai", "PIL")


def configure_logging(verbose: bool = False, logger_name: Optional[str] = None) -> logging.Handler:
    """
    Attach one stream handler to the given logger (root if None).

    Args:
        verbose: DEBUG level when True, INFO otherwise.
        logger_name: Logger to configure. None = root logger.

    Returns:
        The attached handler (for later removal).
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(logger_name)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
    return handler


def detach_handler(handler: logging.Handler, logger_name: Optional[str] = None) -> None:
    """Remove a handler attached by configure_logging()."""
    logging.getLogger(logger_name).removeHandler(handler)
