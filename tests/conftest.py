"""Pytest configuration for assistant-core tests.

Key Principles:
- Mock protocols when testing in isolation
- In-memory SQLite for repository tests, fresh per test
- Deterministic clocks for anything time-dependent
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# tests directory (for fixtures.*)
tests_root = Path(__file__).parent
if str(tests_root) not in sys.path:
    sys.path.insert(0, str(tests_root))

from assistant_core.config import AssistantSettings, reset_settings, set_settings  # noqa: E402
from assistant_core.utils.clock import FixedClock, to_epoch_ms  # noqa: E402
from fixtures.dispatchers import RecordingDispatcher  # noqa: E402
from fixtures.sqlite_client import SQLiteClient  # noqa: E402

# Wednesday 2024-01-17 10:30 UTC
FIXED_NOW = datetime(2024, 1, 17, 10, 30, tzinfo=timezone.utc)


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: tests that wire several components together")


# =============================================================================
# SETTINGS
# =============================================================================

@pytest.fixture
def settings():
    """Default settings, isolated from the environment and any .env file."""
    return AssistantSettings(_env_file=None)


@pytest.fixture(autouse=True)
def _global_settings(settings):
    set_settings(settings)
    yield
    reset_settings()


# =============================================================================
# MOCKS
# =============================================================================

@pytest.fixture
def mock_logger():
    """Mock logger; ``bind`` returns the same mock so calls stay observable."""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.debug = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    logger.bind = MagicMock(return_value=logger)
    return logger


@pytest.fixture
def mock_db():
    """Mock async database client."""
    db = AsyncMock()
    db.execute = AsyncMock(return_value=None)
    db.fetch_one = AsyncMock(return_value=None)
    db.fetch_all = AsyncMock(return_value=[])
    db.insert = AsyncMock(return_value=None)
    return db


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def fixed_now_ms():
    return to_epoch_ms(FIXED_NOW)


@pytest.fixture
def clock(fixed_now_ms):
    return FixedClock(fixed_now_ms)


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
async def sqlite_db():
    """Fresh in-memory SQLite database per test."""
    client = SQLiteClient()
    await client.connect()
    yield client
    await client.disconnect()
