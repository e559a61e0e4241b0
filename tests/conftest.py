"""Pytest configuration and fixtures for urdf2simox tests."""

import logging

import pytest

console_logger = logging.getLogger(__name__)


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_teardown(item, nextitem):
    """Close file handlers a failed test may have left on the root logger."""
    del nextitem  # Unused but required by hookspec.
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if type(handler) is logging.FileHandler:
            root_logger.removeHandler(handler)
            handler.close()
            console_logger.debug(f"Closed leftover log handler after: {item.nodeid}")
