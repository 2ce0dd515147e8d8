"""Tests for recurrence expansion."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from roombooking.domain.models import RecurrenceRule, RecurrenceType
from roombooking.domain.recurrence import expand_occurrences, occurrence_dates


def _rule(recurrence_type: RecurrenceType, first: date, end: date) -> RecurrenceRule:
    return RecurrenceRule(
        recurrence_type=recurrence_type,
        first_occurrence=first,
        series_end_date=end,
        start_time_of_day=time(9, 0),
        end_time_of_day=time(10, 0),
    )


def test_weekly_series_includes_end_date() -> None:
    dates = occurrence_dates(RecurrenceType.WEEKLY, date(2025, 11, 17), date(2025, 12, 1))
    assert dates == [date(2025, 11, 17), date(2025, 11, 24), date(2025, 12, 1)]


def test_daily_series_counts_every_day() -> None:
    dates = occurrence_dates(RecurrenceType.DAILY, date(2025, 11, 17), date(2025, 11, 21))
    assert len(dates) == 5
    assert dates[0] == date(2025, 11, 17)
    assert dates[-1] == date(2025, 11, 21)


def test_monthly_series_clamps_to_last_day_and_returns_to_anchor() -> None:
    dates = occurrence_dates(RecurrenceType.MONTHLY, date(2025, 1, 31), date(2025, 5, 31))
    assert dates == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
        date(2025, 4, 30),
        date(2025, 5, 31),
    ]


def test_monthly_series_handles_leap_february() -> None:
    dates = occurrence_dates(RecurrenceType.MONTHLY, date(2024, 1, 30), date(2024, 3, 30))
    assert dates == [date(2024, 1, 30), date(2024, 2, 29), date(2024, 3, 30)]


def test_monthly_series_crosses_year_boundary() -> None:
    dates = occurrence_dates(RecurrenceType.MONTHLY, date(2025, 11, 15), date(2026, 2, 15))
    assert dates == [
        date(2025, 11, 15),
        date(2025, 12, 15),
        date(2026, 1, 15),
        date(2026, 2, 15),
    ]


def test_end_before_first_yields_nothing() -> None:
    assert occurrence_dates(RecurrenceType.DAILY, date(2025, 11, 17), date(2025, 11, 16)) == []


def test_single_day_series_yields_one_occurrence() -> None:
    occurrences = expand_occurrences(
        _rule(RecurrenceType.WEEKLY, date(2025, 11, 17), date(2025, 11, 17))
    )
    assert len(occurrences) == 1


def test_expand_combines_dates_with_time_of_day() -> None:
    occurrences = expand_occurrences(
        _rule(RecurrenceType.WEEKLY, date(2025, 11, 17), date(2025, 12, 1))
    )
    assert [item.start for item in occurrences] == [
        datetime(2025, 11, 17, 9, 0),
        datetime(2025, 11, 24, 9, 0),
        datetime(2025, 12, 1, 9, 0),
    ]
    assert all(item.end - item.start == timedelta(hours=1) for item in occurrences)
    assert [item.occurrence_date for item in occurrences] == [
        date(2025, 11, 17),
        date(2025, 11, 24),
        date(2025, 12, 1),
    ]


def test_expansion_is_deterministic() -> None:
    rule = _rule(RecurrenceType.MONTHLY, date(2025, 1, 31), date(2025, 12, 31))
    assert expand_occurrences(rule) == expand_occurrences(rule)


def test_string_recurrence_type_is_accepted() -> None:
    dates = occurrence_dates("Daily", date(2025, 11, 17), date(2025, 11, 18))
    assert dates == [date(2025, 11, 17), date(2025, 11, 18)]
