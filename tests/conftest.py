"""Pytest configuration and shared fixtures."""

import logging

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    """The client is built on asyncio streams; run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo configure_logging() calls made by the CLI or logging tests."""
    logger = logging.getLogger("touchportal_client")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)
