"""Shared test fixtures and configuration.

Sets up environment variables before any src imports and provides pinned
reference instants so no test depends on the wall clock.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("DEFAULT_EVENT_HOUR", "9")
os.environ.setdefault("DEFAULT_EVENT_DURATION_MINUTES", "60")

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def friday():
    """Friday, January 10th 2025."""
    return date(2025, 1, 10)


@pytest.fixture
def wednesday():
    """Wednesday, January 15th 2025."""
    return date(2025, 1, 15)


@pytest.fixture
def friday_morning():
    """Friday, January 10th 2025 at 08:30."""
    return datetime(2025, 1, 10, 8, 30)


@pytest.fixture
def store():
    """A mock EventStorePort whose writes succeed and whose calendar is empty."""
    mock = MagicMock()
    mock.add_event = AsyncMock(return_value={"id": "evt_1"})
    mock.add_note = AsyncMock(return_value={"id": "note_1"})
    mock.list_events = AsyncMock(return_value=[])
    mock.search_events = AsyncMock(return_value=[])
    mock.update_event = AsyncMock(return_value={"id": "evt_1", "title": "Dentist"})
    return mock


@pytest.fixture
def service(store):
    """An ActionService backed by the mock store."""
    from src.core.action_service import ActionService
    return ActionService(store)
