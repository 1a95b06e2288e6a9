"""
Stash - Logging
================
Console logging shared by the connector, the routes, and the serve script.

Every Stash logger writes ``time | LEVEL | module | message`` to stdout.
Verbosity follows ``settings.ENV`` (``dev`` → DEBUG, ``prod`` → WARNING).

The MongoDB driver logs each command at DEBUG under ``pymongo.*``; those
loggers are held at WARNING so dev output stays readable.

Usage:
    from stash.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("[STORE] Connected.")
"""

import logging
import sys

from stash.config.settings import settings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_DRIVER_LOGGERS = ("pymongo", "motor")

_LEVEL_BY_ENV = {"dev": logging.DEBUG, "prod": logging.WARNING}


def default_level() -> int:
    return _LEVEL_BY_ENV.get(settings.ENV, logging.INFO)


def quiet_driver_loggers(level: int = logging.WARNING) -> None:
    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(level)


def _stdout_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    handler.set_name("stash-console")
    return handler


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Return the named logger, attaching the Stash console handler once.

    Args:
        name:  Usually ``__name__``.
        level: Override for the ``ENV``-derived level.
    """
    logger = logging.getLogger(name)
    if any(h.get_name() == "stash-console" for h in logger.handlers):
        return logger

    resolved = default_level() if level is None else level
    logger.setLevel(resolved)
    logger.addHandler(_stdout_handler(resolved))
    logger.propagate = False
    quiet_driver_loggers()
    return logger
