"""Event store port — abstract interface for event and note persistence.

Core modules depend on this protocol, never on a specific database.
All methods raise EventStoreError on failure.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.data.models import EventRecord, NoteRecord


class EventStoreError(Exception):
    """Raised when any event store operation fails."""


class EventStorePort(Protocol):
    """Abstract persistence interface used by the action service."""

    async def add_event(self, record: EventRecord) -> dict: ...

    async def add_note(self, record: NoteRecord) -> dict: ...

    async def list_events(self, start: datetime, end: datetime) -> list[EventRecord]:
        """Events starting within [start, end], ordered by start time."""
        ...

    async def search_events(self, query: str, limit: int = 10) -> list[EventRecord]:
        """Events whose title or description contains `query` (case-insensitive), newest first."""
        ...

    async def update_event(self, event_id: str, changes: dict) -> dict:
        """Apply `changes` to a stored event and return the updated event."""
        ...
