"""Package-wide logging helpers.

A NullHandler sits on the package logger so importing csv_rescue never
emits "no handler" warnings; the CLI calls ``configure_logging``.
"""

from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER_NAME = "csv_rescue"

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or PACKAGE_LOGGER_NAME)


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream=None,
    fmt: str | None = None,
) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Calling it again updates the level and reuses the existing handler.
    """
    logger = get_logger()
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    if stream is None:
        stream = sys.stderr
    if fmt is None:
        fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            if getattr(handler.stream, "closed", False):
                handler.stream = stream
            break
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt=fmt))
        logger.addHandler(handler)

    return logger
