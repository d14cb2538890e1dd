"""
BÆKON Core — Schedule Analysis.

Pure logic over lists of EventRecords: usage patterns for a past window
(busiest weekday, categories, time-of-day distribution, recommendations)
and free slots for a new event over the coming days.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable

from dateutil.relativedelta import relativedelta

from src.core.calendar_reference import DAY_NAMES, weekday_index
from src.data.models import EventRecord

logger = logging.getLogger(__name__)

# Lookback per analysis timeframe
ANALYSIS_WINDOWS: dict[str, relativedelta] = {
    "week": relativedelta(days=7),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
}

# Slot search windows as (first hour, end hour)
TIMEFRAME_HOURS: dict[str, tuple[int, int]] = {
    "morning": (8, 12),
    "afternoon": (12, 18),
    "evening": (18, 22),
}
DEFAULT_HOURS = (8, 22)
SLOT_STEP_HOURS = 2
MAX_SUGGESTIONS = 5

MORNING_END_HOUR = 12
AFTERNOON_END_HOUR = 18
BUSY_SCHEDULE_EVENTS = 20

REC_MORE_MORNINGS = "Consider scheduling more activities in the morning for better energy management"
REC_BUSY = "Your schedule is quite busy. Consider blocking time for breaks and focused work"


@dataclass(frozen=True)
class TimeDistribution:
    morning: int = 0
    afternoon: int = 0
    evening: int = 0


@dataclass
class ScheduleAnalysis:
    """Patterns found in the events of one analysis window."""

    total_events: int
    average_events_per_day: float
    busiest_day: str
    categories: dict[str, int] = field(default_factory=dict)
    time_distribution: TimeDistribution = field(default_factory=TimeDistribution)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalEvents": self.total_events,
            "averageEventsPerDay": self.average_events_per_day,
            "busiest": self.busiest_day,
            "categories": dict(self.categories),
            "timeDistribution": {
                "morning": self.time_distribution.morning,
                "afternoon": self.time_distribution.afternoon,
                "evening": self.time_distribution.evening,
            },
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {
            "date": self.start.date().isoformat(),
            "time": f"{self.start:%H:%M}",
            "datetime": self.start.isoformat(),
        }


# ---------------------------------------------------------------------------
# Pattern analysis
# ---------------------------------------------------------------------------


def analysis_window(timeframe: str, now: datetime) -> tuple[datetime, datetime]:
    """Return (start, end) of the lookback window ending at `now`.

    Raises:
        ValueError: for a timeframe other than week, month or quarter.
    """
    lookback = ANALYSIS_WINDOWS.get(timeframe.lower() if isinstance(timeframe, str) else "")
    if lookback is None:
        raise ValueError(f"Unknown timeframe: {timeframe!r}")
    return now - lookback, now


def days_between(start: datetime, end: datetime) -> int:
    return math.ceil(abs((end - start).total_seconds()) / 86400)


def find_busiest_day(events: Iterable[EventRecord]) -> str:
    """Weekday name with the most events; ties go to the weekday seen first."""
    counts = Counter(DAY_NAMES[weekday_index(ev.start_time.date())] for ev in events)
    if not counts:
        return "No data"
    return counts.most_common(1)[0][0]


def analyze_categories(events: Iterable[EventRecord]) -> dict[str, int]:
    return dict(Counter(ev.category for ev in events))


def analyze_time_distribution(events: Iterable[EventRecord]) -> TimeDistribution:
    morning = afternoon = evening = 0
    for ev in events:
        hour = ev.start_time.hour
        if hour < MORNING_END_HOUR:
            morning += 1
        elif hour < AFTERNOON_END_HOUR:
            afternoon += 1
        else:
            evening += 1
    return TimeDistribution(morning=morning, afternoon=afternoon, evening=evening)


def generate_recommendations(events: list[EventRecord]) -> list[str]:
    recommendations: list[str] = []
    distribution = analyze_time_distribution(events)

    if distribution.morning < distribution.evening:
        recommendations.append(REC_MORE_MORNINGS)
    if len(events) > BUSY_SCHEDULE_EVENTS:
        recommendations.append(REC_BUSY)

    return recommendations


def analyze_schedule(
    events: list[EventRecord],
    start: datetime,
    end: datetime,
    include_recommendations: bool = True,
) -> ScheduleAnalysis:
    """Summarise the events that fall in [start, end]."""
    days = max(days_between(start, end), 1)
    analysis = ScheduleAnalysis(
        total_events=len(events),
        average_events_per_day=len(events) / days,
        busiest_day=find_busiest_day(events),
        categories=analyze_categories(events),
        time_distribution=analyze_time_distribution(events),
        recommendations=generate_recommendations(events) if include_recommendations else [],
    )
    logger.debug("Analyzed %d events over %d days", len(events), days)
    return analysis


# ---------------------------------------------------------------------------
# Free slot search
# ---------------------------------------------------------------------------


def overlaps_any(start: datetime, end: datetime, events: Iterable[EventRecord]) -> bool:
    """Check if [start, end) overlaps any event."""
    for ev in events:
        if start < ev.end_time and end > ev.start_time:
            return True
    return False


def find_free_slots_for_day(
    day: date,
    events: list[EventRecord],
    duration_minutes: int,
    timeframe: str = "any",
    not_before: datetime | None = None,
) -> list[TimeSlot]:
    """Candidate slots on `day`, every SLOT_STEP_HOURS within the timeframe window.

    A slot must end by the window end and must not overlap an event.
    Unknown timeframes search the whole day (08:00-22:00).
    """
    first_hour, end_hour = TIMEFRAME_HOURS.get((timeframe or "").lower(), DEFAULT_HOURS)
    window_end = datetime.combine(day, time(end_hour))
    duration = timedelta(minutes=duration_minutes)

    slots: list[TimeSlot] = []
    for hour in range(first_hour, end_hour, SLOT_STEP_HOURS):
        start = datetime.combine(day, time(hour))
        end = start + duration
        if not_before is not None and start < not_before:
            continue
        if end > window_end:
            break
        if not overlaps_any(start, end, events):
            slots.append(TimeSlot(start=start, end=end))
    return slots


def find_optimal_time_slots(
    events: list[EventRecord],
    duration_minutes: int,
    now: datetime,
    timeframe: str = "any",
    days_ahead: int = 7,
    limit: int = MAX_SUGGESTIONS,
) -> list[TimeSlot]:
    """First `limit` free slots over the next `days_ahead` days, starting today.

    Slots that start before `now` are skipped.

    Raises:
        ValueError: if duration_minutes or days_ahead is not positive.
    """
    if duration_minutes <= 0:
        raise ValueError(f"Duration must be positive, got {duration_minutes}")
    if days_ahead <= 0:
        raise ValueError(f"days_ahead must be positive, got {days_ahead}")

    suggestions: list[TimeSlot] = []
    for offset in range(days_ahead):
        day = now.date() + timedelta(days=offset)
        suggestions.extend(
            find_free_slots_for_day(day, events, duration_minutes, timeframe, not_before=now)
        )
        if len(suggestions) >= limit:
            break
    return suggestions[:limit]
