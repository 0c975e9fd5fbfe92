"""
Tests for date scopes and time-column dates.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from famboard.kanban.dates import (
    COLUMN_DAY_OFFSETS,
    date_for_column,
    end_of_week,
    fetch_windows,
    local_day,
    start_of_week,
    time_column_id,
    time_column_range,
    time_scope_range,
)
from famboard.kanban.schema import DateRange, TimeScope


TODAY = date(2024, 6, 12)  # Wednesday


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Scope Ranges
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_week_starts_on_sunday(now):
    assert time_scope_range(TimeScope.WEEK, now) == DateRange(date(2024, 6, 9), date(2024, 6, 15))


def test_week_start_is_configurable(now):
    monday = time_scope_range(TimeScope.WEEK, now, week_starts_on=0)
    assert monday == DateRange(date(2024, 6, 10), date(2024, 6, 16))


def test_week_on_its_first_day():
    sunday = date(2024, 6, 9)
    assert start_of_week(sunday) == sunday
    assert end_of_week(sunday) == date(2024, 6, 15)


def test_month_quarter_year(now):
    assert time_scope_range(TimeScope.MONTH, now) == DateRange(date(2024, 6, 1), date(2024, 6, 30))
    assert time_scope_range(TimeScope.QUARTER, now) == DateRange(date(2024, 4, 1), date(2024, 6, 30))
    assert time_scope_range(TimeScope.YEAR, now) == DateRange(date(2024, 1, 1), date(2024, 12, 31))


def test_month_range_in_leap_february():
    feb = datetime(2024, 2, 10, tzinfo=timezone.utc)
    assert time_scope_range(TimeScope.MONTH, feb).end == date(2024, 2, 29)


def test_fourth_quarter():
    nov = datetime(2024, 11, 3, tzinfo=timezone.utc)
    assert time_scope_range(TimeScope.QUARTER, nov) == DateRange(date(2024, 10, 1), date(2024, 12, 31))


def test_fetch_windows(now):
    scope, task_since, event_since = fetch_windows(TimeScope.WEEK, now)
    assert scope.start == date(2024, 6, 9)
    assert task_since == date(2024, 5, 10)
    # Scope start is earlier than yesterday.
    assert event_since == date(2024, 6, 9)


def test_fetch_windows_event_lookback_on_first_day():
    """On the first day of the scope, yesterday's events are still fetched"""
    sunday = datetime(2024, 6, 9, 8, 0, tzinfo=timezone.utc)
    _, _, event_since = fetch_windows(TimeScope.WEEK, sunday)
    assert event_since == date(2024, 6, 8)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Time Columns
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.parametrize("day, is_task, expected", [
    (None, True, "later"),
    (date(2024, 6, 11), True, "overdue"),
    (date(2024, 6, 11), False, "past"),
    (date(2024, 6, 12), True, "today"),
    (date(2024, 6, 13), False, "tomorrow"),
    (date(2024, 6, 14), True, "this-week"),
    (date(2024, 6, 15), True, "this-week"),
    (date(2024, 6, 16), True, "later"),
])
def test_time_column_id(day, is_task, expected):
    assert time_column_id(day, False, is_task, TODAY) == expected


def test_completed_items_are_done_whatever_the_date():
    assert time_column_id(date(2024, 6, 1), True, True, TODAY) == "done"
    assert time_column_id(None, True, True, TODAY) == "done"


def test_tomorrow_wins_over_next_week():
    """Saturday's tomorrow is Sunday, outside the week, but still 'tomorrow'"""
    saturday = date(2024, 6, 15)
    assert time_column_id(date(2024, 6, 16), False, True, saturday) == "tomorrow"


def test_date_for_column():
    assert date_for_column("today", TODAY) == TODAY
    assert date_for_column("overdue", TODAY) == TODAY - timedelta(days=1)
    assert date_for_column("tomorrow", TODAY) == date(2024, 6, 13)
    assert date_for_column("this-week", TODAY) == date(2024, 6, 15)
    assert date_for_column("later", TODAY) == date(2024, 6, 26)
    assert date_for_column("done", TODAY) is None
    assert date_for_column("past", TODAY) is None
    assert set(COLUMN_DAY_OFFSETS) == {"overdue", "today", "tomorrow", "this-week", "later"}


def test_time_column_range():
    assert time_column_range("today", TODAY) == DateRange(TODAY, TODAY)
    assert time_column_range("this-week", TODAY) == DateRange(date(2024, 6, 14), date(2024, 6, 15))
    assert time_column_range("later", TODAY) is None
    # Friday: nothing is left of the week after tomorrow.
    assert time_column_range("this-week", date(2024, 6, 14)) is None


def test_local_day_uses_now_timezone():
    late = datetime(2024, 6, 12, 23, 30, tzinfo=timezone.utc)
    eastern = timezone(timedelta(hours=-4))
    now = datetime(2024, 6, 12, 12, 0, tzinfo=eastern)
    assert local_day(late, now) == date(2024, 6, 12)
    plus_two = timezone(timedelta(hours=2))
    now_east = datetime(2024, 6, 12, 12, 0, tzinfo=plus_two)
    assert local_day(late, now_east) == date(2024, 6, 13)
