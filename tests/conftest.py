"""Pytest configuration for Route Optimizer tests.

This module configures the Python path for tests to find the application modules
and provides fixtures shared by unit and integration tests.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add the application directory to the Python path for test imports
APP_DIR = Path(__file__).parent.parent / "route_optimizer_service" / "app"
sys.path.insert(0, str(APP_DIR))

from domain.interfaces import IClock  # noqa: E402


class ManualClock(IClock):
    """Clock that only moves when a test advances it."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        """Move the clock forward by a timedelta built from kwargs."""
        self.current += timedelta(**kwargs)


@pytest.fixture
def start_time() -> datetime:
    """A fixed Tuesday morning in spring."""
    return datetime(2024, 4, 16, 9, 30)


@pytest.fixture
def clock(start_time: datetime) -> ManualClock:
    """Manually driven clock starting at start_time."""
    return ManualClock(start_time)
