"""Root conftest for all tests."""

import datetime as dt
import sys

import pytest
from loguru import logger

from mend.persistence.repository import InMemoryCooldownRepository

NOW = dt.datetime(2025, 3, 10, 8, 0, tzinfo=dt.UTC)


@pytest.fixture(autouse=True)
def reset_logger():
    """Restore a plain stderr sink after each test.

    CLI tests reconfigure loguru against streams that are closed once the
    runner returns.
    """
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")


@pytest.fixture
def now() -> dt.datetime:
    """Fixed evaluation time shared across tests."""
    return NOW


@pytest.fixture
def today(now: dt.datetime) -> dt.date:
    return now.date()


@pytest.fixture
def repository() -> InMemoryCooldownRepository:
    return InMemoryCooldownRepository()
