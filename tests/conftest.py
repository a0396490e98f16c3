"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from microlearn.selection.models import Topic  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class SequenceRandom:
    """Deterministic random source replaying fixed values in [0, 1)."""

    def __init__(self, *values: float):
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed reference instant for recency calculations."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_topic():
    """Factory for topics with sensible defaults."""

    def _make(topic_id: str, mastery: int = 0, **kwargs) -> Topic:
        kwargs.setdefault("name", f"Topic {topic_id}")
        return Topic(id=topic_id, mastery_percentage=mastery, **kwargs)

    return _make


@pytest.fixture
def sample_topics(now):
    """Mixed population: weak, developing, near-mastered and mastered topics."""
    return [
        Topic(id="alg", name="Linear Algebra", mastery_percentage=20, importance_class="foundation"),
        Topic(
            id="prob",
            name="Probability",
            mastery_percentage=55,
            importance_class="subject",
            last_practiced=now - timedelta(days=10),
            selection_weight=120,
        ),
        Topic(
            id="calc",
            name="Calculus",
            mastery_percentage=95,
            last_practiced=now - timedelta(hours=3),
            selection_weight=80,
        ),
        Topic(id="stats", name="Statistics", mastery_percentage=100, importance_class="skill"),
    ]


@pytest.fixture
def sequence_random():
    """Factory for deterministic random sources."""
    return SequenceRandom
