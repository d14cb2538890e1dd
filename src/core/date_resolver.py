"""
BÆKON Core — Date Resolver.

Converts free-text date phrases into concrete datetimes using the calendar
snapshot as ground truth instead of ad hoc arithmetic at each call site.

`resolve()` returns None when nothing matches; fallback policy (e.g. "default
to today") belongs to callers, see `parse_natural_datetime()`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable

from dateutil import parser as date_parser

from src.core.calendar_reference import (
    MONTH_NAMES,
    CalendarSnapshot,
    current_today,
    get_calendar_reference,
    get_relative_description,
)

logger = logging.getLogger(__name__)

_MONTH_RE = re.compile(
    r"\b(" + "|".join(name.lower() for name in MONTH_NAMES) + r")\b\s*(\d{1,2})?"
)
_TIME_PREFIX_RE = re.compile(r"at\s+(\d{1,2}):?(\d{2})?\s*(am|pm)?\s+(.*)")
_TIME_SUFFIX_RE = re.compile(r"^(.*?)\s+at\s+(\d{1,2}):?(\d{2})?\s*(am|pm)?$")
_CLOCK_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?", re.IGNORECASE)
_BARE_NUMBER_RE = re.compile(r"\d+(?:\s+\d+)*")
_FUZZY_TIME_RE = re.compile(r"\d:\d{2}|\d\s*(?:am|pm)\b", re.IGNORECASE)

_DEFAULT_MONTH_DAY = 15
_FALLBACK_YEAR_WINDOW = (-1, 2)

# Ordered keyword → (hour, minute); first keyword contained in the text wins.
# "afternoon" contains "noon" and "midnight" contains "night".
_NAMED_TIMES: list[tuple[tuple[str, ...], tuple[int, int]]] = [
    (("afternoon",), (14, 0)),
    (("noon", "12pm"), (12, 0)),
    (("midnight", "12am"), (0, 0)),
    (("morning",), (9, 0)),
    (("evening",), (18, 0)),
    (("night",), (20, 0)),
]

_Rule = Callable[[str, CalendarSnapshot], "datetime | None"]


def _midnight(d: date) -> datetime:
    return datetime.combine(d, time())


def _to_24h(hour: int, minute: int, ampm: str | None) -> tuple[int, int] | None:
    """Convert a 12/24-hour clock reading to 24-hour, or None if out of range."""
    if ampm == "pm" and hour != 12:
        hour += 12
    elif ampm == "am" and hour == 12:
        hour = 0
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour, minute


# ---------------------------------------------------------------------------
# Resolution rules, evaluated in the order of _RULES, first hit wins
# ---------------------------------------------------------------------------


def _exact_rule(phrase: str, snapshot: CalendarSnapshot) -> datetime | None:
    hit = snapshot.upcoming_dates.get(phrase)
    if hit is None:
        return None
    logger.debug("Exact match '%s' → %s", phrase, hit)
    return _midnight(hit)


def _with_time(rest: str, hour_raw: str, minute_raw: str | None, ampm: str | None,
               snapshot: CalendarSnapshot) -> datetime | None:
    clock = _to_24h(int(hour_raw), int(minute_raw) if minute_raw else 0, ampm)
    if clock is None:
        logger.debug("Ignoring out-of-range time %s:%s %s", hour_raw, minute_raw, ampm)
        return None
    base = _resolve_with(rest.strip(), snapshot)
    if base is None:
        return None
    hour, minute = clock
    return base.value.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _time_prefixed_rule(phrase: str, snapshot: CalendarSnapshot) -> datetime | None:
    """'at 2pm tomorrow' → tomorrow at 14:00."""
    m = _TIME_PREFIX_RE.search(phrase)
    if not m:
        return None
    hour_raw, minute_raw, ampm, rest = m.groups()
    result = _with_time(rest, hour_raw, minute_raw, ampm, snapshot)
    if result is not None:
        logger.debug("Time + date match '%s' → %s", phrase, result)
    return result


def _time_suffixed_rule(phrase: str, snapshot: CalendarSnapshot) -> datetime | None:
    """'friday at 9:30am' → friday at 09:30."""
    m = _TIME_SUFFIX_RE.match(phrase)
    if not m:
        return None
    rest, hour_raw, minute_raw, ampm = m.groups()
    result = _with_time(rest, hour_raw, minute_raw, ampm, snapshot)
    if result is not None:
        logger.debug("Date + time match '%s' → %s", phrase, result)
    return result


def _partial_rule(phrase: str, snapshot: CalendarSnapshot) -> datetime | None:
    # Priority is the insertion order of upcoming_dates
    for key, hit in snapshot.upcoming_dates.items():
        if key in phrase or phrase in key:
            logger.debug("Partial match '%s' in '%s' → %s", key, phrase, hit)
            return _midnight(hit)
    return None


def _month_day_rule(phrase: str, snapshot: CalendarSnapshot) -> datetime | None:
    """'december 25' → the next December 25th that is not before today."""
    m = _MONTH_RE.search(phrase)
    if not m:
        return None
    month_name, day_raw = m.groups()
    month = [name.lower() for name in MONTH_NAMES].index(month_name) + 1
    day = int(day_raw) if day_raw else _DEFAULT_MONTH_DAY

    today = snapshot.today_info
    year = today.year
    if month < today.month_number or (month == today.month_number and day < today.day_number):
        year += 1

    try:
        result = date(year, month, day)
    except ValueError:
        logger.debug("No such day: %s %d, %d", month_name, day, year)
        return None
    logger.debug("Month match '%s %d' → %s", month_name, day, result)
    return _midnight(result)


_RULES: list[tuple[str, _Rule]] = [
    ("exact", _exact_rule),
    ("time_prefixed", _time_prefixed_rule),
    ("time_suffixed", _time_suffixed_rule),
    ("partial", _partial_rule),
    ("month_day", _month_day_rule),
]


_TIME_RULES = frozenset({"time_prefixed", "time_suffixed"})


@dataclass(frozen=True)
class ResolvedDate:
    """A resolved datetime and the rule that produced it.

    `has_time` is True only when the phrase itself carried a time of day, so
    an explicit "at 12am" is distinguishable from a date-only phrase.
    """

    value: datetime
    rule: str
    has_time: bool = False


def _resolve_with(phrase: str, snapshot: CalendarSnapshot) -> ResolvedDate | None:
    if not phrase:
        return None
    for name, rule in _RULES:
        result = rule(phrase, snapshot)
        if result is not None:
            return ResolvedDate(value=result, rule=name, has_time=name in _TIME_RULES)
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_detailed(phrase: str, reference_date: date | datetime | None = None) -> ResolvedDate | None:
    """Like `resolve()`, but also reports the matching rule and whether a time was given."""
    snapshot = get_calendar_reference(reference_date)
    normalized = (phrase or "").lower().strip()

    logger.debug(
        "Resolving '%s' (today is %s, %s %d, %d)",
        phrase,
        snapshot.today_info.day_name,
        snapshot.today_info.month_name,
        snapshot.today_info.day_number,
        snapshot.today_info.year,
    )

    result = _resolve_with(normalized, snapshot)
    if result is None:
        logger.info("No calendar match for '%s'", phrase)
    return result


def resolve(phrase: str, reference_date: date | datetime | None = None) -> datetime | None:
    """Resolve a natural-language date phrase against the calendar.

    Args:
        phrase: Free text such as "tomorrow", "next friday", "in 3 weeks",
                "december 25" or "at 2pm tomorrow". Case-insensitive.
        reference_date: The instant to treat as "now". Defaults to the wall
                        clock in the configured timezone.

    Returns:
        A naive datetime at midnight for date-only phrases, at the given
        time-of-day for phrases carrying a time, or None if nothing matched.
    """
    result = resolve_detailed(phrase, reference_date)
    return result.value if result is not None else None


def _consumed_text(text: str, skipped: tuple[str, ...]) -> str:
    """The part of `text` dateutil actually used, given its skipped tokens."""
    consumed = text
    for token in skipped:
        consumed = consumed.replace(token, " ", 1)
    return " ".join(consumed.split())


def parse_natural_datetime(text: str, now: date | datetime | None = None) -> ResolvedDate:
    """Resolve a date phrase, falling back to a fuzzy parse and then today.

    This is the event-creation fallback policy: it always returns a value.
    The fuzzy parse is rejected when all it read was a bare number, so
    "dinner with 2 friends" stays on today instead of becoming the 2nd.
    """
    resolved = resolve_detailed(text, now)
    if resolved is not None:
        return resolved

    today = _midnight(current_today(now))
    lowered = (text or "").lower()
    logger.info("Falling back to basic parsing for '%s'", text)

    if "today" in lowered:
        return ResolvedDate(value=today, rule="today")

    try:
        parsed, skipped = date_parser.parse(text or "", default=today, fuzzy_with_tokens=True)
    except (ValueError, OverflowError) as exc:
        logger.info("Fuzzy parse failed for '%s': %s, defaulting to today", text, exc)
        return ResolvedDate(value=today, rule="fallback")

    consumed = _consumed_text(text, skipped)
    if _BARE_NUMBER_RE.fullmatch(consumed):
        logger.info("Fuzzy parse of '%s' only read the number '%s', defaulting to today", text, consumed)
        return ResolvedDate(value=today, rule="fallback")

    low, high = _FALLBACK_YEAR_WINDOW
    if low <= parsed.year - today.year <= high:
        logger.info("Fuzzy parse success: '%s' → %s", text, parsed)
        return ResolvedDate(
            value=parsed.replace(tzinfo=None),
            rule="fuzzy",
            has_time=bool(_FUZZY_TIME_RE.search(consumed)),
        )

    logger.info("Fuzzy parse year %d out of range for '%s', defaulting to today", parsed.year, text)
    return ResolvedDate(value=today, rule="fallback")


def parse_natural_date(text: str, now: date | datetime | None = None) -> datetime:
    """`parse_natural_datetime()` without the match details."""
    return parse_natural_datetime(text, now).value


def parse_natural_time(text: str, now: datetime | None = None) -> tuple[int, int]:
    """Parse a time phrase into (hour, minute) in 24-hour form.

    Named times ("noon", "evening", ...) win over clock readings; unparsable
    input falls back to the current time.
    """
    lowered = (text or "").lower()

    for keywords, clock in _NAMED_TIMES:
        if any(kw in lowered for kw in keywords):
            return clock

    m = _CLOCK_RE.search(text or "")
    if m:
        hour_raw, minute_raw, ampm = m.groups()
        clock = _to_24h(int(hour_raw), int(minute_raw or 0), ampm.lower() if ampm else None)
        if clock is not None:
            return clock
        logger.warning("Time out of range in '%s'", text)

    if now is None:
        from zoneinfo import ZoneInfo

        from src.config import settings

        now = datetime.now(ZoneInfo(settings.TIMEZONE))
    return now.hour, now.minute


def get_date_parsing_context(now: date | datetime | None = None) -> str:
    """Ground-truth date context for inclusion in an LLM prompt."""
    ref = get_calendar_reference(now)
    today = ref.today_info
    upcoming = ref.upcoming_dates

    week = ", ".join(f"{d.day_name}({d.day_number})" for d in ref.week_info.days)
    phrases = ", ".join(list(upcoming)[:10])

    return (
        "CURRENT DATE CONTEXT (Ground Truth):\n"
        f"- Today: {today.day_name}, {today.month_name} {today.day_number}, {today.year}\n"
        f"- Current Week: {week}\n"
        f"- This Month: {ref.month_info.month_name} {ref.month_info.year} "
        f"({ref.month_info.total_days} days)\n"
        f"- Available upcoming dates: {phrases}...\n"
        "\n"
        "USE THIS CONTEXT: When user says a date, match it against these known calendar positions.\n"
        "Examples:\n"
        f'- "tomorrow" → {get_relative_description(upcoming["tomorrow"], ref.today)}\n'
        f'- "monday" → {get_relative_description(upcoming["monday"], ref.today)}\n'
        f'- "next week" → {get_relative_description(upcoming["next week"], ref.today)}\n'
    )
