"""Logging configuration for the treepath CLI."""

from __future__ import annotations

import logging
import sys


LOGGER_NAME = "treepath"


def resolve_log_level(verbose: bool, debug: bool) -> int:
    """Map CLI verbosity flags to a logging level."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbose: bool, debug: bool = False) -> None:
    """Configure the package logger.

    Log records go to stderr so that they never mix with query results
    written to stdout.

    Args:
        verbose: Whether to enable INFO logging
        debug: Whether to enable DEBUG logging of path compilation and matching
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    level = resolve_log_level(verbose, debug)
    logger.setLevel(level)

    if level == logging.WARNING:
        logger.handlers.clear()
        return

    handler = next(
        (item for item in logger.handlers if isinstance(item, logging.StreamHandler)), None
    )
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    handler.setLevel(level)
