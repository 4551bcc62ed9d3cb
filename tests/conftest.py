"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from treepath import cli, config


@pytest.fixture(autouse=True)
def reset_cli_state() -> Iterator[None]:
    """Restore the package logger and CLI config globals after each test."""
    yield
    logger = logging.getLogger("treepath")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    config.CONFIG_DEFAULTS.clear()
    cli.DEFAULT_VERBOSE.update({"value": False, "debug": False})
