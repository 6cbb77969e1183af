"""Logging setup for the command line."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from chartquest.console import err_console

LOGGER_NAME = "chartquest"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Route chartquest log records to stderr through rich.

    WARNING and above by default, DEBUG when ``verbose`` is set. Calling
    this again replaces the previous handler.
    """
    logger: logging.Logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=err_console,
        show_path=verbose,
        show_time=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    return logger
