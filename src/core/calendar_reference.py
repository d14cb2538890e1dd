"""
BÆKON Core — Calendar Reference.

Authoritative calendar data anchored to a single "today": day, week, month
and year structures, plus a lookup table from natural-language phrases
("tomorrow", "next friday", "in 3 weeks") to concrete dates.

Every date derived here comes from one truncated reference instant, so no two
fields of a snapshot can disagree about what "today" is.

No I/O: this module only transforms dates.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from types import MappingProxyType
from typing import Mapping
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# Sunday-indexed, matching the week layout used everywhere below
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_UPCOMING_WEEKDAY_WINDOW = 14
_MAX_DAYS_AHEAD = 30
_MAX_WEEKS_AHEAD = 12
_MAX_MONTHS_AHEAD = 12


@dataclass(frozen=True)
class DateInfo:
    """Everything a caller may want to know about one calendar day."""

    date: date
    day_name: str          # "Sunday" .. "Saturday"
    day_number: int        # day of month, 1-31
    month_name: str
    month_number: int      # 1-12
    year: int
    quarter: int           # 1-4
    week_of_year: int
    day_of_year: int       # 1-based
    is_weekend: bool
    is_today: bool


@dataclass(frozen=True)
class WeekInfo:
    """A Sunday-to-Saturday week."""

    week_number: int
    start_date: date       # the Sunday on/before the anchor date
    end_date: date         # start_date + 6 days
    days: list[DateInfo]


@dataclass(frozen=True)
class MonthInfo:
    """A calendar month with the (non-aligned) weeks that cover it."""

    month_name: str
    month_number: int
    year: int
    start_date: date
    end_date: date
    total_days: int
    weeks: list[WeekInfo]


@dataclass(frozen=True)
class YearInfo:
    year: int
    is_leap_year: bool
    total_days: int
    months: list[MonthInfo]


@dataclass(frozen=True)
class CalendarSnapshot:
    """Immutable bundle of calendar facts anchored to one instant of "now"."""

    today: date
    today_info: DateInfo
    week_info: WeekInfo
    month_info: MonthInfo
    year_info: YearInfo
    upcoming_dates: Mapping[str, date]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def current_today(now: date | datetime | None = None) -> date:
    """Truncate a reference instant to its calendar day.

    `None` reads the wall clock in the configured timezone. Aware datetimes
    are converted to that timezone first; naive ones are taken as local.
    """
    if now is None:
        from src.config import settings

        return datetime.now(ZoneInfo(settings.TIMEZONE)).date()
    if isinstance(now, datetime):
        if now.tzinfo is not None:
            from src.config import settings

            now = now.astimezone(ZoneInfo(settings.TIMEZONE))
        return now.date()
    return now


def weekday_index(d: date) -> int:
    """Day of week with Sunday = 0."""
    return (d.weekday() + 1) % 7


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def get_day_of_year(d: date) -> int:
    return (d - date(d.year, 1, 1)).days + 1


def get_week_of_year(d: date) -> int:
    """Week number where week 1 is the (partial) week containing January 1st."""
    jan1 = date(d.year, 1, 1)
    return math.ceil((get_day_of_year(d) + weekday_index(jan1)) / 7)


def _last_day_of_month(year: int, month: int) -> date:
    return date(year, month, 1) + relativedelta(months=1) - timedelta(days=1)


# ---------------------------------------------------------------------------
# Calendar structures
# ---------------------------------------------------------------------------


def get_date_info(d: date, today: date | None = None) -> DateInfo:
    """Get detailed information about a specific date."""
    if today is None:
        today = current_today()
    dow = weekday_index(d)

    return DateInfo(
        date=d,
        day_name=DAY_NAMES[dow],
        day_number=d.day,
        month_name=MONTH_NAMES[d.month - 1],
        month_number=d.month,
        year=d.year,
        quarter=(d.month - 1) // 3 + 1,
        week_of_year=get_week_of_year(d),
        day_of_year=get_day_of_year(d),
        is_weekend=dow in (0, 6),
        is_today=d == today,
    )


def get_week_info(d: date, today: date | None = None) -> WeekInfo:
    """Get the Sunday-started week containing the given date."""
    if today is None:
        today = current_today()
    start = d - timedelta(days=weekday_index(d))
    days = [get_date_info(start + timedelta(days=i), today) for i in range(7)]

    return WeekInfo(
        week_number=get_week_of_year(d),
        start_date=start,
        end_date=start + timedelta(days=6),
        days=days,
    )


def get_month_info(d: date, today: date | None = None) -> MonthInfo:
    """Get the month containing the given date.

    Weeks are built from the 1st in 7-day steps and are not aligned to the
    month, so the first and last week usually spill into adjacent months.
    """
    if today is None:
        today = current_today()
    start = date(d.year, d.month, 1)
    end = _last_day_of_month(d.year, d.month)

    weeks: list[WeekInfo] = []
    cursor = start
    while cursor <= end:
        weeks.append(get_week_info(cursor, today))
        cursor += timedelta(days=7)

    return MonthInfo(
        month_name=MONTH_NAMES[d.month - 1],
        month_number=d.month,
        year=d.year,
        start_date=start,
        end_date=end,
        total_days=end.day,
        weeks=weeks,
    )


def get_year_info(d: date, today: date | None = None) -> YearInfo:
    """Get the year containing the given date, months anchored mid-month."""
    if today is None:
        today = current_today()
    leap = is_leap_year(d.year)
    months = [get_month_info(date(d.year, month, 15), today) for month in range(1, 13)]

    return YearInfo(
        year=d.year,
        is_leap_year=leap,
        total_days=366 if leap else 365,
        months=months,
    )


def generate_upcoming_dates(today: date) -> Mapping[str, date]:
    """Map natural-language phrases to dates relative to `today`.

    The insertion order is the lookup priority for partial matching:
    "tomorrow", weekday names, "next <weekday>", "next week",
    "week after next", "next month", then "in N days/weeks/months".

    Weekday names point at their first occurrence 1..7 days out (never today);
    "next <weekday>" points at the second occurrence, 8..14 days out. Every
    weekday occurs exactly once in each of those ranges, so all seven
    "next <weekday>" keys always exist.
    """
    dates: dict[str, date] = {"tomorrow": today + timedelta(days=1)}

    for offset in range(1, _UPCOMING_WEEKDAY_WINDOW + 1):
        future = today + timedelta(days=offset)
        day_name = DAY_NAMES[weekday_index(future)].lower()
        dates.setdefault(day_name, future)
        if offset > 7:
            dates.setdefault(f"next {day_name}", future)

    dates["next week"] = today + timedelta(days=7)
    dates["week after next"] = today + timedelta(days=14)
    dates["next month"] = today + relativedelta(months=1)

    for days in range(1, _MAX_DAYS_AHEAD + 1):
        dates[f"in {days} day{'' if days == 1 else 's'}"] = today + timedelta(days=days)

    for weeks in range(1, _MAX_WEEKS_AHEAD + 1):
        dates[f"in {weeks} week{'' if weeks == 1 else 's'}"] = today + timedelta(weeks=weeks)

    for months in range(1, _MAX_MONTHS_AHEAD + 1):
        dates[f"in {months} month{'' if months == 1 else 's'}"] = today + relativedelta(months=months)

    return MappingProxyType(dates)


def get_calendar_reference(now: date | datetime | None = None) -> CalendarSnapshot:
    """Build the calendar snapshot for `now` (defaults to the wall clock).

    This is the authoritative source for all date operations.
    """
    today = current_today(now)

    return CalendarSnapshot(
        today=today,
        today_info=get_date_info(today, today),
        week_info=get_week_info(today, today),
        month_info=get_month_info(today, today),
        year_info=get_year_info(today, today),
        upcoming_dates=generate_upcoming_dates(today),
    )


def get_relative_description(target: date | datetime, today: date | None = None) -> str:
    """Describe when `target` occurs relative to `today`, e.g. "in 3 days"."""
    if today is None:
        today = current_today()
    if isinstance(target, datetime):
        if target.tzinfo is not None:
            from src.config import settings

            target = target.astimezone(ZoneInfo(settings.TIMEZONE))
        target_dt = target.replace(tzinfo=None)
    else:
        target_dt = datetime.combine(target, time())
    gap = target_dt - datetime.combine(today, time())
    diff_days = math.ceil(gap.total_seconds() / 86400)

    if diff_days == 0:
        return "today"
    if diff_days == 1:
        return "tomorrow"
    if diff_days == -1:
        return "yesterday"
    if 1 < diff_days <= 7:
        return f"in {diff_days} days"
    if 7 < diff_days <= 14:
        return "next week"
    if 14 < diff_days <= 30:
        return f"in {math.ceil(diff_days / 7)} weeks"
    if diff_days > 30:
        return f"in {math.ceil(diff_days / 30)} months"

    return target_dt.strftime("%a %b %d %Y")
