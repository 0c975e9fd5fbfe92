"""
Date scope calculator.

Every function takes "now"/"today" explicitly; nothing here reads the clock.

Weeks start on `week_starts_on` (Python weekday numbers, Monday=0 ... Sunday=6).
The household default is Sunday.
"""
import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from .schema import DateRange, TimeScope

SUNDAY = 6

# Representative day offsets for dropping into a time column.
# `done` and `past` are absent on purpose: they never assign a date.
COLUMN_DAY_OFFSETS = {
    "overdue": -1,
    "today": 0,
    "tomorrow": 1,
    "this-week": 3,
    "later": 14,
}


def today_for(now: datetime) -> date:
    """Calendar day of `now` in its own timezone."""
    return now.date()


def local_day(moment: datetime, now: datetime) -> date:
    """Calendar day of `moment`, seen from `now`'s timezone when both are aware."""
    if moment.tzinfo is not None and now.tzinfo is not None:
        return moment.astimezone(now.tzinfo).date()
    return moment.date()


def start_of_week(day: date, week_starts_on: int = SUNDAY) -> date:
    return day - timedelta(days=(day.weekday() - week_starts_on) % 7)


def end_of_week(day: date, week_starts_on: int = SUNDAY) -> date:
    return start_of_week(day, week_starts_on) + timedelta(days=6)


def _end_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def time_scope_range(scope: TimeScope, now: datetime, week_starts_on: int = SUNDAY) -> DateRange:
    """Concrete [start, end] days for a time scope anchored on `now`."""
    today = today_for(now)

    if scope is TimeScope.MONTH:
        return DateRange(today.replace(day=1), _end_of_month(today.year, today.month))

    if scope is TimeScope.QUARTER:
        first_month = 3 * ((today.month - 1) // 3) + 1
        return DateRange(
            date(today.year, first_month, 1),
            _end_of_month(today.year, first_month + 2),
        )

    if scope is TimeScope.YEAR:
        return DateRange(date(today.year, 1, 1), date(today.year, 12, 31))

    return DateRange(start_of_week(today, week_starts_on), end_of_week(today, week_starts_on))


def time_column_id(
    day: Optional[date],
    is_completed: bool,
    is_task: bool,
    today: date,
    week_starts_on: int = SUNDAY,
) -> str:
    """
    Time-mode column for an item.

    Tasks in the past are `overdue` (still owed); events and birthdays in the
    past are `past` (already happened). Completed items are `done` whatever
    their date.
    """
    if is_completed:
        return "done"
    if day is None:
        return "later"
    if day < today:
        return "overdue" if is_task else "past"
    if day == today:
        return "today"
    if day == today + timedelta(days=1):
        return "tomorrow"
    if day <= end_of_week(today, week_starts_on):
        return "this-week"
    return "later"


def date_for_column(column_id: str, today: date) -> Optional[date]:
    """Date assigned to an item dropped into a time column, or None for no change."""
    offset = COLUMN_DAY_OFFSETS.get(column_id)
    if offset is None:
        return None
    return today + timedelta(days=offset)


def time_column_range(column_id: str, today: date, week_starts_on: int = SUNDAY) -> Optional[DateRange]:
    """Day interval covered by a bounded time column (today, tomorrow, this-week)."""
    if column_id == "today":
        return DateRange(today, today)
    if column_id == "tomorrow":
        tomorrow = today + timedelta(days=1)
        return DateRange(tomorrow, tomorrow)
    if column_id == "this-week":
        start = today + timedelta(days=2)
        end = end_of_week(today, week_starts_on)
        return DateRange(start, end) if start <= end else None
    return None


def fetch_windows(
    scope: TimeScope,
    now: datetime,
    task_lookback_days: int = 30,
    event_lookback_days: int = 1,
    week_starts_on: int = SUNDAY,
) -> Tuple[DateRange, date, date]:
    """
    Query bounds for one render.

    Returns (scope range, earliest task due date, earliest event start day).
    Tasks look back `task_lookback_days` before the scope so overdue work
    shows up. Events start at whichever is earlier: the scope start or
    `event_lookback_days` before today.
    """
    scope_range = time_scope_range(scope, now, week_starts_on)
    task_since = scope_range.start - timedelta(days=task_lookback_days)
    event_since = min(scope_range.start, today_for(now) - timedelta(days=event_lookback_days))
    return scope_range, task_since, event_since
