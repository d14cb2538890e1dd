"""
BÆKON Core — UI-Agnostic Action Service.

Stateless service layer between callers (chat handler, voice input, AI tool
calls) and the persistence port: resolve dates -> build records -> store ->
return structured response objects.

The date fallback policy lives here, not in the resolver: an event whose
date phrase cannot be resolved lands on today, and an event without a time
starts at DEFAULT_EVENT_HOUR.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from src.config import settings
from src.core.calendar_reference import DAY_NAMES, get_relative_description
from src.core.date_resolver import parse_natural_date, parse_natural_datetime, parse_natural_time
from src.core.schedule_analysis import analysis_window, analyze_schedule, find_optimal_time_slots
from src.core.voice_commands import enhance_voice_command, match
from src.data.models import EventRecord, NoteRecord
from src.ports.event_store_port import EventStoreError

if TYPE_CHECKING:
    from src.ports.event_store_port import EventStorePort

logger = logging.getLogger(__name__)

_DAY_WORDS = {"today", "tomorrow"} | {name.lower() for name in DAY_NAMES}
_AT_TIME_RE = re.compile(r"\bat\s+(\d{1,2}(?::\d{2})?\s*(?:am|pm)?|noon|midnight)", re.IGNORECASE)
_SUGGEST_VERBS = {"suggest", "recommend", "find"}


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    SUCCESS = "success"
    ERROR = "error"
    VOICE_COMMAND = "voice_command"
    SUGGESTION = "suggestion"
    QUERY_RESULT = "query_result"
    ANALYSIS = "analysis"
    SLOT_SUGGESTION = "slot_suggestion"


@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str


@dataclass
class SuccessResponse(ServiceResponse):
    record: dict = field(default_factory=dict)   # record.model_dump(by_alias=True)
    stored: dict = field(default_factory=dict)   # whatever the store returned


@dataclass
class ErrorResponse(ServiceResponse):
    pass


@dataclass
class VoiceCommandResponse(ServiceResponse):
    """A recognised voice command the caller should hand to the assistant."""

    action: str = ""
    category: str = ""
    confidence: float = 0.0
    matched_groups: tuple[str | None, ...] = ()


@dataclass
class SuggestionResponse(ServiceResponse):
    """An unrecognised voice command; message carries the suggestion."""

    corrections: list[str] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class QueryResultResponse(ServiceResponse):
    events: list[dict] = field(default_factory=list)   # EventRecord dumps, by_alias


@dataclass
class AnalysisResponse(ServiceResponse):
    timeframe: str = ""
    analysis: dict = field(default_factory=dict)       # ScheduleAnalysis.to_dict()


@dataclass
class SlotSuggestionResponse(ServiceResponse):
    slots: list[dict] = field(default_factory=list)    # TimeSlot.to_dict()


def _reference_now(now: date | datetime | None) -> datetime:
    """Naive local datetime for `now`, reading the wall clock when None."""
    if now is None:
        now = datetime.now(ZoneInfo(settings.TIMEZONE))
    if isinstance(now, datetime):
        if now.tzinfo is not None:
            now = now.astimezone(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)
        return now.replace(second=0, microsecond=0)
    return datetime.combine(now, time())


class ActionService:
    """Stateless service that turns natural-language requests into stored records.

    Returns structured response objects and never raises for bad input or
    store failures.
    """

    def __init__(self, store: EventStorePort) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def create_event(
        self,
        title: str,
        date_phrase: str,
        time_phrase: str | None = None,
        duration_minutes: int | None = None,
        tags: list[str] | None = None,
        description: str = "",
        category: str = "personal",
        now: date | datetime | None = None,
    ) -> ServiceResponse:
        """Create an event from natural-language date and time phrases.

        Args:
            title: Event title.
            date_phrase: e.g. "tomorrow", "next friday", "december 25".
                Unresolvable phrases fall back to today.
            time_phrase: e.g. "2pm", "noon". When omitted, a time carried by
                the date phrase is kept, otherwise DEFAULT_EVENT_HOUR is used.
            duration_minutes: Defaults to DEFAULT_EVENT_DURATION_MINUTES.
            tags: Optional tags stored with the event.
            description: Optional free text.
            category: work, personal, health or social.
            now: Reference instant; defaults to the wall clock.
        """
        duration = duration_minutes if duration_minutes is not None else settings.DEFAULT_EVENT_DURATION_MINUTES
        if duration <= 0:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"Duration must be positive, got {duration} minutes.",
            )

        resolved = parse_natural_datetime(date_phrase, now)
        start = resolved.value
        if time_phrase:
            hour, minute = parse_natural_time(time_phrase, _reference_now(now))
            start = start.replace(hour=hour, minute=minute, second=0, microsecond=0)
        elif not resolved.has_time:
            start = start.replace(hour=settings.DEFAULT_EVENT_HOUR, minute=0, second=0, microsecond=0)

        try:
            record = EventRecord(
                title=title,
                start_time=start,
                end_time=start + timedelta(minutes=duration),
                category=category,
                tags=list(tags or []),
                description=description,
            )
        except ValidationError as exc:
            logger.warning("Invalid event '%s': %s", title, exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message=f"Invalid event: {exc.errors()[0]['msg']}")

        return await self._store_event(record, now)

    async def block_time(
        self,
        title: str,
        duration_minutes: int,
        start_phrase: str | None = None,
        block_type: str = "focus",
        now: date | datetime | None = None,
    ) -> ServiceResponse:
        """Reserve a block of time starting at `start_phrase` (or now)."""
        if duration_minutes <= 0:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"Duration must be positive, got {duration_minutes} minutes.",
            )

        start = parse_natural_date(start_phrase, now) if start_phrase else _reference_now(now)

        try:
            record = EventRecord(
                title=title,
                start_time=start,
                end_time=start + timedelta(minutes=duration_minutes),
                tags=["time-block", block_type],
                description=f"Time block for {block_type}",
            )
        except ValidationError as exc:
            logger.warning("Invalid time block '%s': %s", title, exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message=f"Invalid time block: {exc.errors()[0]['msg']}")

        response = await self._store_event(record, now)
        if isinstance(response, SuccessResponse):
            response.message = f"Blocked {duration_minutes} minutes for \"{title}\""
        return response

    async def _store_event(self, record: EventRecord, now: date | datetime | None) -> ServiceResponse:
        try:
            stored = await self._store.add_event(record)
        except EventStoreError as exc:
            logger.error("Failed to store event '%s': %s", record.title, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"Sorry, I couldn't save \"{record.title}\". Please try again.",
            )

        start = record.start_time
        relative = get_relative_description(start.date(), _reference_now(now).date())
        logger.info("Created event '%s' at %s (%s)", record.title, start.isoformat(), relative)
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Created event \"{record.title}\" for {start:%a %b %d %Y} at {start:%H:%M} ({relative})",
            record=record.model_dump(mode="json", by_alias=True),
            stored=stored or {},
        )

    async def set_reminder(
        self, event_id: str, reminder_time: str, message: str | None = None,
    ) -> ServiceResponse:
        """Attach a reminder to a stored event.

        The reminder is recorded in the event description; delivery is the
        store's concern.
        """
        description = f"{message or 'Reminder set'} ({reminder_time})"
        try:
            updated = await self._store.update_event(event_id, {"description": description})
        except EventStoreError as exc:
            logger.error("Failed to set reminder on event %s: %s", event_id, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="Sorry, I couldn't set that reminder. Please try again.",
            )

        title = (updated or {}).get("title", event_id)
        logger.info("Reminder set for event %s: %s", event_id, reminder_time)
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Set reminder for \"{title}\" - {reminder_time}",
            record=updated or {},
            stored=updated or {},
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_schedule(
        self,
        start_phrase: str,
        end_phrase: str | None = None,
        category: str | None = None,
        now: date | datetime | None = None,
    ) -> ServiceResponse:
        """List events between two date phrases (default: one day from the start)."""
        start = parse_natural_date(start_phrase, now)
        end = parse_natural_date(end_phrase, now) if end_phrase else start + timedelta(days=1)

        try:
            events = await self._store.list_events(start, end)
        except EventStoreError as exc:
            logger.error("Failed to list events %s..%s: %s", start, end, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="Sorry, I couldn't fetch your schedule right now. Please try again.",
            )

        if category:
            events = [ev for ev in events if ev.category == category.lower()]

        return QueryResultResponse(
            kind=ResponseKind.QUERY_RESULT,
            message=f"Found {len(events)} events between {start:%a %b %d %Y} and {end:%a %b %d %Y}",
            events=[ev.model_dump(mode="json", by_alias=True) for ev in events],
        )

    async def search_events(self, query: str, limit: int = 10) -> ServiceResponse:
        """Find events whose title or description mentions `query`."""
        if not query or not query.strip():
            return ErrorResponse(kind=ResponseKind.ERROR, message="Search query must not be empty.")

        try:
            events = await self._store.search_events(query.strip(), limit)
        except EventStoreError as exc:
            logger.error("Event search for '%s' failed: %s", query, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="Sorry, I couldn't search your events right now. Please try again.",
            )

        events = events[:limit]
        return QueryResultResponse(
            kind=ResponseKind.QUERY_RESULT,
            message=f"Found {len(events)} events matching \"{query}\"",
            events=[ev.model_dump(mode="json", by_alias=True) for ev in events],
        )

    async def analyze_schedule(
        self,
        timeframe: str = "week",
        include_recommendations: bool = True,
        now: date | datetime | None = None,
    ) -> ServiceResponse:
        """Analyze the events of the past week, month or quarter."""
        try:
            start, end = analysis_window(timeframe, _reference_now(now))
        except ValueError as exc:
            return ErrorResponse(kind=ResponseKind.ERROR, message=str(exc))

        try:
            events = await self._store.list_events(start, end)
        except EventStoreError as exc:
            logger.error("Failed to list events for analysis: %s", exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="Sorry, I couldn't analyze your schedule right now. Please try again.",
            )

        analysis = analyze_schedule(events, start, end, include_recommendations)
        logger.info("Analyzed %d events over the past %s", analysis.total_events, timeframe)
        return AnalysisResponse(
            kind=ResponseKind.ANALYSIS,
            message=f"Analyzed {analysis.total_events} events over the past {timeframe.lower()}",
            timeframe=timeframe.lower(),
            analysis=analysis.to_dict(),
        )

    async def suggest_optimal_time(
        self,
        event_type: str,
        duration_minutes: int,
        preferred_timeframe: str = "any",
        days_ahead: int = 7,
        now: date | datetime | None = None,
    ) -> ServiceResponse:
        """Suggest up to five free slots for a new event over the coming days."""
        if duration_minutes <= 0 or days_ahead <= 0:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="Duration and days ahead must be positive.",
            )

        reference = _reference_now(now)
        horizon = datetime.combine(reference.date() + timedelta(days=days_ahead), time())
        try:
            events = await self._store.list_events(reference - timedelta(days=1), horizon)
        except EventStoreError as exc:
            logger.error("Failed to list events for slot search: %s", exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="Sorry, I couldn't check your calendar right now. Please try again.",
            )

        slots = find_optimal_time_slots(
            events, duration_minutes, reference,
            timeframe=preferred_timeframe, days_ahead=days_ahead,
        )
        return SlotSuggestionResponse(
            kind=ResponseKind.SLOT_SUGGESTION,
            message=f"Found {len(slots)} optimal time slots for {event_type}",
            slots=[slot.to_dict() for slot in slots],
        )

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def create_note(
        self,
        title: str,
        content: str,
        section: str,
        tags: list[str] | None = None,
        priority: str = "MEDIUM",
    ) -> ServiceResponse:
        """Create a note in the work or life section."""
        try:
            record = NoteRecord(
                title=title,
                content=content,
                section=section,
                tags=list(tags or []),
                priority=priority,
            )
        except ValidationError as exc:
            logger.warning("Invalid note '%s': %s", title, exc)
            return ErrorResponse(kind=ResponseKind.ERROR, message=f"Invalid note: {exc.errors()[0]['msg']}")

        try:
            stored = await self._store.add_note(record)
        except EventStoreError as exc:
            logger.error("Failed to store note '%s': %s", title, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"Sorry, I couldn't save the note \"{title}\". Please try again.",
            )

        logger.info("Created note '%s' in %s", record.title, record.section)
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Created note \"{record.title}\" in {record.section} section",
            record=record.model_dump(mode="json"),
            stored=stored or {},
        )

    # ------------------------------------------------------------------
    # Voice
    # ------------------------------------------------------------------

    async def process_voice(
        self, transcript: str, now: date | datetime | None = None,
    ) -> ServiceResponse:
        """Route a voice transcript.

        "Schedule <title> <day> [at <time>]" creates the event directly.
        Productivity requests run the weekly analysis, or the slot search for
        "suggest optimal time for <x>". Other recognised commands are returned
        with an enhanced prompt; anything else yields suggestions.
        """
        result = match(transcript)

        if not result.recognized or result.command is None:
            return SuggestionResponse(
                kind=ResponseKind.SUGGESTION,
                message=result.suggestion or "",
                corrections=result.corrections,
                confidence=result.confidence,
            )

        command = result.command
        groups = result.matched_groups

        if (
            command.action == "schedule_event"
            and len(groups) == 3
            and groups[2]
            and groups[2].lower() in _DAY_WORDS
        ):
            # Patterns are anchored, so the matched text is a prefix
            tail = transcript[len(result.matched_text or ""):]
            time_match = _AT_TIME_RE.search(tail)
            return await self.create_event(
                title=groups[1],
                date_phrase=groups[2],
                time_phrase=time_match.group(1) if time_match else None,
                tags=["voice"],
                now=now,
            )

        if command.action == "analyze_productivity":
            if groups and groups[0] and groups[0].lower() in _SUGGEST_VERBS and groups[-1]:
                return await self.suggest_optimal_time(
                    event_type=groups[-1],
                    duration_minutes=settings.DEFAULT_EVENT_DURATION_MINUTES,
                    now=now,
                )
            return await self.analyze_schedule("week", now=now)

        return VoiceCommandResponse(
            kind=ResponseKind.VOICE_COMMAND,
            message=enhance_voice_command(transcript),
            action=command.action,
            category=command.category.value,
            confidence=result.confidence,
            matched_groups=groups,
        )
