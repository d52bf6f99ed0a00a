"""
Pytest configuration og shared fixtures.
"""

import logging

import pytest

from target_monitor.dependencies import reset_singletons

# Slå logning fra under tests for at holde output rent
logging.disable(logging.CRITICAL)


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before hver test."""
    reset_singletons()
    yield
    reset_singletons()
