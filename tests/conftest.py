"""Shared test fixtures for famboard kanban tests."""

from datetime import datetime, timezone

import pytest

from famboard.kanban.config import Settings
from famboard.kanban.store import HouseholdStore


# Wednesday. Sunday-start week: 2024-06-09 .. 2024-06-15.
NOW = datetime(2024, 6, 12, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store(tmp_path):
    return HouseholdStore(str(tmp_path / "famboard.db"))


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=str(tmp_path / "famboard.db"))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep developer FAMBOARD_* variables out of the tests."""
    for name in ("FAMBOARD_CONFIG", "FAMBOARD_DB", "FAMBOARD_API_SECRET", "FAMBOARD_LOG_LEVEL", "FAMBOARD_TIMEZONE"):
        monkeypatch.delenv(name, raising=False)
