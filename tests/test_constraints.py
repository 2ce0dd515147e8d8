"""Tests for domain-level scheduling rules."""

from __future__ import annotations

from datetime import date, datetime, time

import pytest

from roombooking.domain.constraints import (
    SchedulingPolicy,
    is_actionable,
    require_text,
    validate_scheduling_policy,
    windows_overlap,
)
from roombooking.domain.errors import BookingValidationError
from roombooking.domain.models import (
    Booking,
    BookingStatus,
    RecurrenceRule,
    RecurrenceType,
    RecurringSeries,
    TimeWindow,
)


NOW = datetime(2025, 11, 10, 8, 0)


def valid_policy(**overrides) -> SchedulingPolicy:
    """Return a valid baseline SchedulingPolicy, optionally overriding fields."""
    defaults = {
        "bookings_require_approval": True,
        "admin_bookings_auto_confirm": True,
        "dashboard_window_days": 14,
        "series_max_occurrences": 366,
    }
    defaults.update(overrides)
    return SchedulingPolicy(**defaults)


def _window(start_hour: int, end_hour: int) -> TimeWindow:
    return TimeWindow(
        start=datetime(2025, 11, 17, start_hour, 0),
        end=datetime(2025, 11, 17, end_hour, 0),
    )


def _booking(start: datetime, status: BookingStatus) -> Booking:
    return Booking(
        booking_id=1,
        title="Sync",
        room_id=1,
        organizer_id=1,
        start_time=start,
        end_time=start.replace(hour=start.hour + 1),
        status=status,
    )


# --- Policy ---

def test_valid_policy_passes() -> None:
    validate_scheduling_policy(valid_policy())


def test_non_positive_dashboard_window_raises() -> None:
    with pytest.raises(ValueError):
        validate_scheduling_policy(valid_policy(dashboard_window_days=0))


def test_non_positive_series_bound_raises() -> None:
    with pytest.raises(ValueError):
        validate_scheduling_policy(valid_policy(series_max_occurrences=0))


# --- Overlap ---

def test_overlapping_windows_detected() -> None:
    assert windows_overlap(_window(9, 10), TimeWindow(
        start=datetime(2025, 11, 17, 9, 30),
        end=datetime(2025, 11, 17, 10, 30),
    ))


def test_touching_windows_do_not_overlap() -> None:
    assert not windows_overlap(_window(9, 10), _window(10, 11))
    assert not windows_overlap(_window(10, 11), _window(9, 10))


def test_contained_window_overlaps() -> None:
    assert windows_overlap(_window(8, 12), _window(9, 10))


# --- Actionability ---

def test_future_pending_booking_is_actionable() -> None:
    assert is_actionable(_booking(datetime(2025, 11, 17, 9), BookingStatus.PENDING_APPROVAL), NOW)


def test_started_booking_is_not_actionable() -> None:
    assert not is_actionable(_booking(NOW, BookingStatus.CONFIRMED), NOW)


def test_terminal_booking_is_not_actionable() -> None:
    assert not is_actionable(_booking(datetime(2025, 11, 17, 9), BookingStatus.DENIED), NOW)


def test_series_actionability_uses_first_occurrence() -> None:
    series = RecurringSeries(
        series_id=1,
        title="Standup",
        room_id=1,
        organizer_id=1,
        rule=RecurrenceRule(
            recurrence_type=RecurrenceType.DAILY,
            first_occurrence=date(2025, 11, 10),
            series_end_date=date(2025, 11, 20),
            start_time_of_day=time(7, 30),
            end_time_of_day=time(8, 0),
        ),
        status=BookingStatus.PENDING_APPROVAL,
    )
    assert not is_actionable(series, NOW)


# --- Text fields ---

def test_require_text_strips_value() -> None:
    assert require_text("  Planning  ", "title") == "Planning"


@pytest.mark.parametrize("value", ["", "   ", None])
def test_require_text_rejects_blank(value) -> None:
    with pytest.raises(BookingValidationError):
        require_text(value, "reason")
