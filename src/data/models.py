"""
BÆKON Core — Data Models.

Records handed to the persistence collaborator. The core never stores
anything itself: an EventRecord or NoteRecord is built, validated and passed
to an EventStorePort adapter, which owns the database.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Section(str, Enum):
    WORK = "work"
    LIFE = "life"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Category(str, Enum):
    WORK = "work"
    PERSONAL = "personal"
    HEALTH = "health"
    SOCIAL = "social"


def _lower(v):
    return v.strip().lower() if isinstance(v, str) else v


class EventRecord(BaseModel):
    """A calendar event ready for persistence.

    `id` is None until the store assigns one.

    JSON example (by_alias=True):
    {
        "id": null,
        "title": "Gym",
        "startTime": "2025-01-11T07:00:00",
        "endTime": "2025-01-11T08:00:00",
        "category": "health",
        "tags": ["voice"],
        "description": ""
    }
    """
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str | None = None
    title: str = Field(min_length=1)
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    category: Category = Field(default=Category.PERSONAL, validate_default=True)
    tags: list[str] = Field(default_factory=list)
    description: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        return _lower(v)

    @model_validator(mode="after")
    def check_order(self) -> EventRecord:
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


class NoteRecord(BaseModel):
    """A freeform note box.

    Section and priority are case-insensitive on input.

    JSON example:
    {
        "title": "Project ideas",
        "content": "Voice-first planner",
        "tags": ["ideas"],
        "section": "work",
        "priority": "MEDIUM"
    }
    """
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)
    section: Section
    priority: Priority = Priority.MEDIUM

    @field_validator("section", mode="before")
    @classmethod
    def normalize_section(cls, v):
        return _lower(v)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        return v.strip().upper() if isinstance(v, str) else v
