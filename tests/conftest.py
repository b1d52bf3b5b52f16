"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from logos.core.models import ComponentType, ItemParameters, ResponseEvent  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def base_time():
    """Fixed reference time so schedules are reproducible."""
    return datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def ten_items():
    """Ten unit-discrimination items with spread difficulties."""
    difficulties = [-0.5, 0.0, 0.5, 1.0, -1.0, 1.5, 0.2, 0.3, 0.8, 1.2]
    return [
        ItemParameters(item_id=f"item-{i:02d}", difficulty=b, discrimination=1.0)
        for i, b in enumerate(difficulties)
    ]


@pytest.fixture
def make_responses(base_time):
    """
    Factory for component-tagged response logs.

    make_responses(ComponentType.LEX, [True, False, ...], session_id="s1")
    """

    def _make(
        component: ComponentType,
        outcomes: list[bool],
        session_id: str = "session1",
        start: int = 0,
        contents: list[str] | None = None,
    ) -> list[ResponseEvent]:
        return [
            ResponseEvent(
                item_id=f"{session_id}-{component.value}-{start + i}",
                correct=correct,
                component=component,
                timestamp=base_time + timedelta(minutes=start + i),
                session_id=session_id,
                content=contents[i] if contents else f"test-{component.value}-{i}",
            )
            for i, correct in enumerate(outcomes)
        ]

    return _make
