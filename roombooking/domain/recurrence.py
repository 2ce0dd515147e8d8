"""Expansion of recurrence rules into concrete occurrences."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from roombooking.domain.models import Occurrence, RecurrenceRule, RecurrenceType


def _add_months(anchor: date, months: int) -> date:
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor.day, last_day))


def occurrence_dates(
    recurrence_type: RecurrenceType,
    first_occurrence: date,
    series_end_date: date,
) -> list[date]:
    """Return every occurrence date from first_occurrence to series_end_date inclusive.

    Monthly steps are computed from the first occurrence, so a series anchored
    on the 31st lands on the last day of shorter months and returns to the 31st
    afterwards.
    """
    recurrence_type = RecurrenceType(recurrence_type)
    if series_end_date < first_occurrence:
        return []

    dates: list[date] = []
    step = 0
    while True:
        if recurrence_type is RecurrenceType.DAILY:
            current = first_occurrence + timedelta(days=step)
        elif recurrence_type is RecurrenceType.WEEKLY:
            current = first_occurrence + timedelta(weeks=step)
        else:
            current = _add_months(first_occurrence, step)
        if current > series_end_date:
            return dates
        dates.append(current)
        step += 1


def expand_occurrences(rule: RecurrenceRule) -> list[Occurrence]:
    """Pure expansion of a rule into ordered (date, start, end) occurrences."""
    return [
        Occurrence(
            occurrence_date=day,
            start=datetime.combine(day, rule.start_time_of_day),
            end=datetime.combine(day, rule.end_time_of_day),
        )
        for day in occurrence_dates(
            rule.recurrence_type,
            rule.first_occurrence,
            rule.series_end_date,
        )
    ]
