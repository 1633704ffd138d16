"""
Shared fixtures for the collaboration matching tests.
"""
import os

# Must be set before collab_match.main configures logging
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("MATCH_TRIGGER_DELAY", "0")

import pytest
from unittest.mock import AsyncMock, MagicMock

from factories import echo_match, make_opportunity, make_user


@pytest.fixture
def task_opportunity():
    return make_opportunity(
        "1.1",
        attributes={"requiredSkills": ["welding"], "budgetRange": {"min": 500, "max": 1000}},
    )


@pytest.fixture
def welder():
    return make_user(skills=["Welding", "electrical"], annualRevenueRange="50M")


@pytest.fixture
def mock_store():
    """Store double with every async accessor mocked"""
    store = MagicMock()
    store.get_opportunity = AsyncMock(return_value=None)
    store.get_user = AsyncMock(return_value=None)
    store.get_users_by_role = AsyncMock(return_value=[])
    store.get_applications = AsyncMock(return_value=[])
    store.list_matches = AsyncMock(return_value=[])
    store.create_match = AsyncMock(side_effect=echo_match)
    store.create_notification = AsyncMock()
    store.mark_match_notified = AsyncMock()
    store.update_opportunity = AsyncMock()
    return store
