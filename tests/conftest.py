"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cadence.core.card_state import CardState, CardStatus  # noqa: E402
from cadence.scheduling.base import SchedulerConfig  # noqa: E402

NOW = datetime(2026, 1, 15, 9, 0, tzinfo=UTC)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "simulation: Long randomized runs checking invariants")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "simulation" in str(item.fspath):
            item.add_marker(pytest.mark.simulation)


@pytest.fixture
def now():
    """Fixed review time shared by tests."""
    return NOW


@pytest.fixture
def scheduler_config():
    """Default scheduler configuration."""
    return SchedulerConfig()


@pytest.fixture
def make_review_card():
    """Factory for graduated cards with a chosen overdue offset."""

    def _make(
        card_id: str,
        *,
        days_overdue: float = 0.0,
        stability: float = 10.0,
        difficulty: float = 5.0,
        reps: int = 3,
        lapses: int = 0,
        interval: int = 3,
        **overrides,
    ) -> CardState:
        due = NOW - timedelta(days=days_overdue)
        fields = dict(
            card_id=card_id,
            due=due,
            stability=stability,
            difficulty=difficulty,
            scheduled_days=interval,
            reps=reps,
            lapses=lapses,
            state=CardStatus.REVIEW,
            last_review=due - timedelta(days=interval),
        )
        fields.update(overrides)
        return CardState(**fields)

    return _make


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)
