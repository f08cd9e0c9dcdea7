from datetime import date, datetime, time, timedelta

import pytest

from app.schemas.recurring_meeting_template import RecurringMeetingTemplateRead
from app.services.recurrence_expander import (
    DailyRecurrence,
    MonthlyRecurrence,
    TemplateConfigurationError,
    WeeklyRecurrence,
    build_recurrence_rule,
    compose_slot,
    expand_dates,
    parse_clock_time,
    sunday_based_weekday,
)

MONDAY = date(2025, 11, 17)


def _template(**overrides) -> RecurringMeetingTemplateRead:
    data = {
        "id": "tpl-1",
        "title": "Sync",
        "creator": "user-owner",
        "participants": ["user-a"],
        "recurrence_pattern": "daily",
        "start_clock_time": "10:00",
        "end_clock_time": "10:30",
    }
    data.update(overrides)
    return RecurringMeetingTemplateRead(**data)


def test_sunday_is_day_zero():
    assert sunday_based_weekday(date(2025, 11, 16)) == 0
    assert sunday_based_weekday(MONDAY) == 1
    assert sunday_based_weekday(date(2025, 11, 22)) == 6


def test_weekly_template_yields_two_wednesdays_in_fourteen_days():
    template = _template(recurrence_pattern="weekly", day_of_week=3)

    dates = expand_dates(template, MONDAY, 14)

    assert dates == [date(2025, 11, 19), date(2025, 11, 26)]
    assert all(sunday_based_weekday(d) == 3 for d in dates)


def test_daily_window_is_inclusive_on_both_ends():
    dates = expand_dates(_template(), MONDAY, 14)

    assert len(dates) == 15
    assert dates[0] == MONDAY
    assert dates[-1] == MONDAY + timedelta(days=14)


def test_window_end_date_cuts_expansion_short():
    template = _template(window_end_date=MONDAY + timedelta(days=5))

    dates = expand_dates(template, MONDAY, 14)

    assert len(dates) == 6
    assert dates[-1] == MONDAY + timedelta(days=5)


def test_window_end_date_in_the_past_yields_nothing():
    template = _template(window_end_date=MONDAY - timedelta(days=1))

    assert expand_dates(template, MONDAY, 14) == []


def test_monthly_day_31_skips_february():
    template = _template(recurrence_pattern="monthly", day_of_month=31)

    dates = expand_dates(template, date(2026, 1, 25), 70)

    assert dates == [date(2026, 1, 31), date(2026, 3, 31)]
    assert not any(d.month == 2 for d in dates)


def test_datetime_reference_is_normalized_to_midnight():
    template = _template(recurrence_pattern="weekly", day_of_week=1)

    dates = expand_dates(template, datetime(2025, 11, 17, 23, 59), 0)

    assert dates == [MONDAY]


def test_expansion_is_restartable():
    template = _template(recurrence_pattern="weekly", day_of_week=5)

    assert expand_dates(template, MONDAY, 30) == expand_dates(template, MONDAY, 30)


def test_build_rule_returns_tagged_variants():
    assert build_recurrence_rule(_template()) == DailyRecurrence()
    assert build_recurrence_rule(
        _template(recurrence_pattern="weekly", day_of_week=2)
    ) == WeeklyRecurrence(day_of_week=2)
    assert build_recurrence_rule(
        _template(recurrence_pattern="monthly", day_of_month=15)
    ) == MonthlyRecurrence(day_of_month=15)


@pytest.mark.parametrize(
    "overrides",
    [
        {"recurrence_pattern": "weekly", "day_of_week": None},
        {"recurrence_pattern": "weekly", "day_of_week": 7},
        {"recurrence_pattern": "monthly", "day_of_month": None},
        {"recurrence_pattern": "monthly", "day_of_month": 0},
        {"recurrence_pattern": "yearly"},
    ],
)
def test_malformed_templates_raise_configuration_error(overrides):
    with pytest.raises(TemplateConfigurationError):
        expand_dates(_template(**overrides), MONDAY, 14)


def test_negative_lookahead_is_rejected():
    with pytest.raises(TemplateConfigurationError):
        expand_dates(_template(), MONDAY, -1)


def test_parse_clock_time():
    assert parse_clock_time("09:05") == time(9, 5)
    assert parse_clock_time("23:30") == time(23, 30)


@pytest.mark.parametrize("value", ["", None, "25:00", "10:61", "ten"])
def test_parse_clock_time_rejects_garbage(value):
    with pytest.raises(TemplateConfigurationError):
        parse_clock_time(value)


def test_overnight_slot_ends_next_day():
    start, end = compose_slot(MONDAY, time(23, 30), time(0, 30))

    assert start == datetime(2025, 11, 17, 23, 30)
    assert end == datetime(2025, 11, 18, 0, 30)
    assert end.date() == start.date() + timedelta(days=1)


def test_same_day_slot():
    start, end = compose_slot(MONDAY, time(10, 0), time(10, 30))

    assert start == datetime(2025, 11, 17, 10, 0)
    assert end == datetime(2025, 11, 17, 10, 30)
