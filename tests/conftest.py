"""
Pytest configuration and shared fixtures for relayfeed tests.

Provides:
- Logging configured with the structured formatter
- Note factories and the in-memory relay network (tests/fixtures/notes.py)
"""

from __future__ import annotations

import logging

import pytest

from relayfeed.core.logger import StructuredFormatter


pytest_plugins = ["tests.fixtures.notes"]


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)
    for handler in logging.getLogger().handlers:
        handler.setFormatter(StructuredFormatter())
