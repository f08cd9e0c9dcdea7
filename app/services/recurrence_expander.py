# app/services/recurrence_expander.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type, datetime, time, timedelta
from typing import Any, Union

from app.schemas.recurring_meeting_template import RecurrencePattern


class TemplateConfigurationError(ValueError):
    """
    Raised when a template cannot be expanded because its definition is
    malformed (unknown pattern, missing weekday/day of month, bad clock
    strings, no participants).
    """


@dataclass(frozen=True)
class DailyRecurrence:
    def matches(self, candidate: date_type) -> bool:
        return True


@dataclass(frozen=True)
class WeeklyRecurrence:
    # Sunday=0 ... Saturday=6
    day_of_week: int

    def matches(self, candidate: date_type) -> bool:
        return sunday_based_weekday(candidate) == self.day_of_week


@dataclass(frozen=True)
class MonthlyRecurrence:
    day_of_month: int

    def matches(self, candidate: date_type) -> bool:
        # Months without this day (e.g. the 31st in February) never match.
        return candidate.day == self.day_of_month


RecurrenceRule = Union[DailyRecurrence, WeeklyRecurrence, MonthlyRecurrence]


def sunday_based_weekday(day: date_type) -> int:
    """
    Weekday number with Sunday=0 ... Saturday=6.
    """
    return (day.weekday() + 1) % 7


def build_recurrence_rule(template: Any) -> RecurrenceRule:
    """
    Build the recurrence variant for a template.

    Raises
    ------
    TemplateConfigurationError
        If the pattern is unknown or its pattern-specific field is missing
        or out of range.
    """
    try:
        pattern = RecurrencePattern(template.recurrence_pattern)
    except ValueError:
        raise TemplateConfigurationError(
            f"Unknown recurrence pattern {template.recurrence_pattern!r}"
        ) from None

    if pattern is RecurrencePattern.DAILY:
        return DailyRecurrence()

    if pattern is RecurrencePattern.WEEKLY:
        day_of_week = template.day_of_week
        if day_of_week is None or not 0 <= day_of_week <= 6:
            raise TemplateConfigurationError(
                f"Weekly template requires day_of_week in 0-6, got {day_of_week!r}"
            )
        return WeeklyRecurrence(day_of_week=day_of_week)

    day_of_month = template.day_of_month
    if day_of_month is None or not 1 <= day_of_month <= 31:
        raise TemplateConfigurationError(
            f"Monthly template requires day_of_month in 1-31, got {day_of_month!r}"
        )
    return MonthlyRecurrence(day_of_month=day_of_month)


def parse_clock_time(value: str | None) -> time:
    """
    Parse a wall-clock "HH:MM" string into a naive `time`.
    """
    if not value:
        raise TemplateConfigurationError("Clock time is missing")
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise TemplateConfigurationError(
            f"Invalid clock time {value!r}, expected HH:MM"
        ) from None


def to_calendar_date(reference: date_type | datetime) -> date_type:
    """
    Normalize a date or datetime to its calendar date (i.e. midnight).
    """
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def expand_dates(
    template: Any,
    reference_date: date_type | datetime,
    lookahead_days: int,
) -> list[date_type]:
    """
    Compute the calendar dates on which the template should have a meeting.

    Parameters
    ----------
    template:
        Any object exposing `recurrence_pattern`, `day_of_week`,
        `day_of_month` and `window_end_date` (ORM row or read schema).
    reference_date:
        First day of the window. Datetimes are truncated to their date.
    lookahead_days:
        Days after `reference_date` to consider; the window is inclusive on
        both ends, so `lookahead_days=14` covers 15 calendar days.

    Returns
    -------
    list[date]
        Matching dates in increasing order. Expansion stops at the first
        candidate past `window_end_date`.
    """
    if lookahead_days < 0:
        raise TemplateConfigurationError(
            f"lookahead_days must be >= 0, got {lookahead_days}"
        )

    rule = build_recurrence_rule(template)
    start = to_calendar_date(reference_date)
    window_end = template.window_end_date
    if isinstance(window_end, datetime):
        window_end = window_end.date()

    dates: list[date_type] = []
    for offset in range(lookahead_days + 1):
        candidate = start + timedelta(days=offset)
        if window_end is not None and candidate > window_end:
            break
        if rule.matches(candidate):
            dates.append(candidate)

    return dates


def compose_slot(
    day: date_type,
    start_clock: time,
    end_clock: time,
) -> tuple[datetime, datetime]:
    """
    Combine a calendar date with the template's clock times.

    If the end clock is not after the start clock the meeting spans midnight
    and ends on the following day.
    """
    start_time = datetime.combine(day, start_clock)
    end_time = datetime.combine(day, end_clock)
    if end_time <= start_time:
        end_time += timedelta(days=1)
    return start_time, end_time
