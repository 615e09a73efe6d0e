"""Shared fixtures for the test suite."""

from collections.abc import Generator

import pytest
import structlog

from src.fetch.metrics import FetchMetrics


@pytest.fixture(autouse=True)
def _isolated_state() -> Generator[None]:
    """Give each test fresh metrics and the default structlog setup."""
    FetchMetrics.reset()
    structlog.reset_defaults()
    yield
    FetchMetrics.reset()
    structlog.reset_defaults()
