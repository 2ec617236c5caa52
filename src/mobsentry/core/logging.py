"""Logging configuration for mobsentry.

Console output goes through a Rich handler attached to the ``mobsentry``
logger. Library code never reads verbosity from the environment; it logs to
whatever logger it was given, and the CLI decides the level here.
"""

import logging
from typing import Optional

from rich.logging import RichHandler

LOGGER_NAME = "mobsentry"

LOG_FORMAT = "%(message)s"
DATE_FORMAT = "[%X]"


def setup_logging(verbose: bool = False, level: Optional[str] = None) -> logging.Logger:
    """Configure the mobsentry logger with a Rich handler.

    Calling this again replaces the handler, so the level always reflects
    the latest call.

    Args:
        verbose: If True, log at DEBUG so skipped files, rule failures and
                 cache write errors become visible.
        level: Level name (``debug`` ... ``critical``) used when not
               verbose. Defaults to warning.

    Returns:
        The configured ``mobsentry`` logger.
    """
    if verbose:
        log_level = logging.DEBUG
    elif level:
        log_level = logging.getLevelName(level.upper())
    else:
        log_level = logging.WARNING

    rich_handler = RichHandler(
        level=log_level,
        show_time=True,
        show_level=True,
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(rich_handler)
    logger.propagate = False

    return logger
