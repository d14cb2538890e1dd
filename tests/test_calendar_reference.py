"""Tests for src.core.calendar_reference — calendar snapshot and structures."""

from datetime import date, datetime, timedelta, timezone

import pytest

from src.core.calendar_reference import (
    CalendarSnapshot,
    current_today,
    generate_upcoming_dates,
    get_calendar_reference,
    get_date_info,
    get_month_info,
    get_relative_description,
    get_week_info,
    get_week_of_year,
    get_year_info,
    is_leap_year,
    weekday_index,
)


class TestHelpers:
    def test_weekday_index_is_sunday_based(self):
        assert weekday_index(date(2025, 1, 12)) == 0  # Sunday
        assert weekday_index(date(2025, 1, 13)) == 1  # Monday
        assert weekday_index(date(2025, 1, 18)) == 6  # Saturday

    @pytest.mark.parametrize(
        "year,expected",
        [(1900, False), (1996, True), (2000, True), (2023, False), (2024, True), (2100, False)],
    )
    def test_leap_years(self, year, expected):
        assert is_leap_year(year) is expected
        assert get_year_info(date(year, 6, 1), date(year, 6, 1)).is_leap_year is expected

    def test_week_of_year(self):
        # Jan 1st 2025 is a Wednesday; Jan 4th is the Saturday closing week 1
        assert get_week_of_year(date(2025, 1, 1)) == 1
        assert get_week_of_year(date(2025, 1, 4)) == 1
        assert get_week_of_year(date(2025, 1, 5)) == 2
        assert get_week_of_year(date(2025, 12, 31)) == 53

    def test_current_today_truncates_datetime(self):
        assert current_today(datetime(2025, 1, 10, 23, 59)) == date(2025, 1, 10)

    def test_current_today_accepts_date(self):
        assert current_today(date(2025, 1, 10)) == date(2025, 1, 10)

    def test_current_today_converts_aware_datetime(self):
        # TIMEZONE is UTC in tests
        aware = datetime(2025, 1, 10, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert current_today(aware) == date(2025, 1, 11)


class TestDateInfo:
    def test_fields(self, friday):
        info = get_date_info(friday, friday)
        assert info.day_name == "Friday"
        assert info.day_number == 10
        assert info.month_name == "January"
        assert info.month_number == 1
        assert info.year == 2025
        assert info.quarter == 1
        assert info.day_of_year == 10
        assert info.is_weekend is False
        assert info.is_today is True

    def test_weekend_and_not_today(self, friday):
        info = get_date_info(date(2025, 1, 11), friday)
        assert info.day_name == "Saturday"
        assert info.is_weekend is True
        assert info.is_today is False

    @pytest.mark.parametrize("month,quarter", [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (10, 4), (12, 4)])
    def test_quarters(self, month, quarter):
        d = date(2025, month, 1)
        assert get_date_info(d, d).quarter == quarter

    def test_day_of_year_leap(self):
        d = date(2024, 12, 31)
        assert get_date_info(d, d).day_of_year == 366


class TestWeekInfo:
    @pytest.mark.parametrize(
        "anchor",
        [date(2025, 1, 10), date(2025, 1, 12), date(2024, 2, 29), date(2025, 12, 31), date(2026, 1, 1)],
    )
    def test_starts_sunday_and_is_contiguous(self, anchor):
        week = get_week_info(anchor, anchor)
        assert len(week.days) == 7
        assert week.days[0].day_name == "Sunday"
        assert week.days[0].date == week.start_date
        assert week.days[-1].date == week.end_date
        for prev, nxt in zip(week.days, week.days[1:]):
            assert nxt.date - prev.date == timedelta(days=1)
        assert week.start_date <= anchor <= week.end_date

    def test_week_crosses_year_boundary(self):
        week = get_week_info(date(2025, 1, 1), date(2025, 1, 1))
        assert week.start_date == date(2024, 12, 29)
        assert week.end_date == date(2025, 1, 4)


class TestMonthInfo:
    def test_february_leap(self):
        month = get_month_info(date(2024, 2, 10), date(2024, 2, 10))
        assert month.month_name == "February"
        assert month.start_date == date(2024, 2, 1)
        assert month.end_date == date(2024, 2, 29)
        assert month.total_days == 29

    def test_weeks_cover_month(self, friday):
        month = get_month_info(friday, friday)
        covered = {d.date for week in month.weeks for d in week.days}
        for day in range(1, 32):
            assert date(2025, 1, day) in covered
        # January 2025 starts on Wednesday, so the first week includes December
        assert month.weeks[0].start_date == date(2024, 12, 29)
        assert len(month.weeks) == 5

    def test_december_end(self):
        month = get_month_info(date(2025, 12, 5), date(2025, 12, 5))
        assert month.end_date == date(2025, 12, 31)
        assert month.total_days == 31


class TestYearInfo:
    def test_twelve_months(self, friday):
        year = get_year_info(friday, friday)
        assert year.year == 2025
        assert year.total_days == 365
        assert [m.month_number for m in year.months] == list(range(1, 13))
        assert year.months[1].total_days == 28

    def test_leap_year_total(self):
        year = get_year_info(date(2024, 1, 1), date(2024, 1, 1))
        assert year.total_days == 366
        assert year.months[1].total_days == 29


class TestUpcomingDates:
    def test_tomorrow(self, friday):
        dates = generate_upcoming_dates(friday)
        assert dates["tomorrow"] == date(2025, 1, 11)

    def test_weekday_is_next_occurrence_never_today(self, friday):
        dates = generate_upcoming_dates(friday)
        assert dates["friday"] == date(2025, 1, 17)
        assert dates["saturday"] == date(2025, 1, 11)
        assert dates["thursday"] == date(2025, 1, 16)

    def test_next_weekday_is_second_occurrence(self, friday):
        dates = generate_upcoming_dates(friday)
        assert dates["next saturday"] == date(2025, 1, 18)
        assert dates["next friday"] == date(2025, 1, 24)

    @pytest.mark.parametrize("offset", range(7))
    def test_all_next_weekday_keys_exist(self, friday, offset):
        dates = generate_upcoming_dates(friday + timedelta(days=offset))
        for name in ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"):
            first = dates[name]
            second = dates[f"next {name}"]
            assert second - first == timedelta(days=7)

    def test_relative_weeks_and_months(self, friday):
        dates = generate_upcoming_dates(friday)
        assert dates["next week"] == date(2025, 1, 17)
        assert dates["week after next"] == date(2025, 1, 24)
        assert dates["next month"] == date(2025, 2, 10)
        assert dates["in 12 months"] == date(2026, 1, 10)

    def test_in_n_units(self, friday):
        dates = generate_upcoming_dates(friday)
        assert dates["in 1 day"] == date(2025, 1, 11)
        assert dates["in 30 days"] == date(2025, 2, 9)
        assert dates["in 1 week"] == date(2025, 1, 17)
        assert dates["in 12 weeks"] == date(2025, 4, 4)
        assert dates["in 3 months"] == date(2025, 4, 10)
        assert "in 31 days" not in dates
        assert "in 1 days" not in dates

    def test_month_end_clamps(self):
        dates = generate_upcoming_dates(date(2025, 1, 31))
        assert dates["next month"] == date(2025, 2, 28)

    def test_insertion_order(self, friday):
        keys = list(generate_upcoming_dates(friday))
        assert keys[0] == "tomorrow"
        assert keys.index("next week") < keys.index("in 1 day")
        assert keys[-1] == "in 12 months"

    def test_read_only(self, friday):
        dates = generate_upcoming_dates(friday)
        with pytest.raises(TypeError):
            dates["tomorrow"] = friday


class TestCalendarReference:
    def test_snapshot_is_consistent(self, friday_morning):
        ref = get_calendar_reference(friday_morning)
        assert isinstance(ref, CalendarSnapshot)
        assert ref.today == date(2025, 1, 10)
        assert ref.today_info.is_today is True
        assert ref.today_info.date == ref.today
        assert ref.week_info.start_date == date(2025, 1, 5)
        assert ref.month_info.month_name == "January"
        assert ref.year_info.year == 2025
        assert ref.upcoming_dates["tomorrow"] == ref.today + timedelta(days=1)

    def test_only_today_is_flagged(self, friday):
        ref = get_calendar_reference(friday)
        flagged = [d.date for d in ref.week_info.days if d.is_today]
        assert flagged == [friday]

    def test_wall_clock_default(self):
        ref = get_calendar_reference()
        assert ref.today_info.is_today is True


class TestRelativeDescription:
    @pytest.mark.parametrize(
        "offset,expected",
        [
            (0, "today"),
            (1, "tomorrow"),
            (-1, "yesterday"),
            (3, "in 3 days"),
            (7, "in 7 days"),
            (8, "next week"),
            (14, "next week"),
            (15, "in 3 weeks"),
            (30, "in 5 weeks"),
            (31, "in 2 months"),
            (95, "in 4 months"),
        ],
    )
    def test_offsets(self, friday, offset, expected):
        assert get_relative_description(friday + timedelta(days=offset), friday) == expected

    def test_past_falls_back_to_date_string(self, friday):
        assert get_relative_description(date(2025, 1, 1), friday) == "Wed Jan 01 2025"

    def test_datetime_later_today_rounds_up(self, friday):
        assert get_relative_description(datetime(2025, 1, 10, 14, 0), friday) == "tomorrow"

    def test_aware_datetime_is_converted_to_local_zone(self, friday):
        # 23:00 at UTC-5 is 04:00 UTC on the 12th
        aware = datetime(2025, 1, 11, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert get_relative_description(aware, friday) == "in 3 days"
