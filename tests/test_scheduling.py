"""Tests for the scheduling validator and the per-room lock registry."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, time

import pytest

from roombooking.domain.errors import BookingConflictError, InvalidWindowError, PastWindowError
from roombooking.domain.models import (
    BookingStatus,
    RecurrenceRule,
    RecurrenceType,
    Role,
    TimeWindow,
    ValidationOutcome,
)
from roombooking.repository.data_repository import DataRepository
from roombooking.services.scheduling_service import KeyedLockRegistry, SchedulingValidator
from roombooking.utils.config import get_settings


NOW = datetime(2025, 11, 10, 8, 0)


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        seed_default_rooms=False,
        bootstrap_admin_email=None,
    )


def _build_validator(tmp_path) -> tuple[SchedulingValidator, DataRepository, int, int]:
    repository = DataRepository(_build_test_settings(tmp_path, "scheduling.db"))
    repository.initialize_database()
    room_id = repository.insert_room(name="Orion", location="Floor 1", capacity=8, equipment=())
    user_id = repository.insert_user(
        full_name="Ada Employee",
        email="ada@example.com",
        role=Role.EMPLOYEE,
        phone_number=None,
        password_hash=None,
    )
    repository.insert_booking(
        title="Existing",
        room_id=room_id,
        organizer_id=user_id,
        start_time=datetime(2025, 11, 17, 9, 0),
        end_time=datetime(2025, 11, 17, 10, 0),
        status=BookingStatus.CONFIRMED,
        attendees="",
    )
    return SchedulingValidator(repository, clock=lambda: NOW), repository, room_id, user_id


def _window(start: datetime, end: datetime) -> TimeWindow:
    return TimeWindow(start=start, end=end)


def test_overlapping_window_conflicts(tmp_path) -> None:
    validator, _, room_id, _ = _build_validator(tmp_path)
    outcome = validator.validate(
        _window(datetime(2025, 11, 17, 9, 30), datetime(2025, 11, 17, 10, 30)),
        room_id,
    )
    assert outcome is ValidationOutcome.CONFLICT


def test_touching_window_is_ok(tmp_path) -> None:
    validator, _, room_id, _ = _build_validator(tmp_path)
    outcome = validator.validate(
        _window(datetime(2025, 11, 17, 10, 0), datetime(2025, 11, 17, 11, 0)),
        room_id,
    )
    assert outcome is ValidationOutcome.OK


def test_sub_second_overlap_is_detected(tmp_path) -> None:
    validator, repository, room_id, user_id = _build_validator(tmp_path)
    repository.insert_booking(
        title="Spill-over",
        room_id=room_id,
        organizer_id=user_id,
        start_time=datetime(2025, 11, 17, 10, 0),
        end_time=datetime(2025, 11, 17, 10, 0, 0, 500_000),
        status=BookingStatus.CONFIRMED,
        attendees="",
    )
    clash = _window(datetime(2025, 11, 17, 10, 0, 0, 250_000), datetime(2025, 11, 17, 11, 0))
    after = _window(datetime(2025, 11, 17, 10, 0, 0, 500_000), datetime(2025, 11, 17, 11, 0))

    assert validator.validate(clash, room_id) is ValidationOutcome.CONFLICT
    assert validator.validate(after, room_id) is ValidationOutcome.OK


def test_other_room_is_unaffected(tmp_path) -> None:
    validator, repository, _, _ = _build_validator(tmp_path)
    other_room = repository.insert_room(name="Lyra", location="", capacity=4, equipment=())
    outcome = validator.validate(
        _window(datetime(2025, 11, 17, 9, 0), datetime(2025, 11, 17, 10, 0)),
        other_room,
    )
    assert outcome is ValidationOutcome.OK


def test_window_in_the_past_is_rejected(tmp_path) -> None:
    validator, _, room_id, _ = _build_validator(tmp_path)
    outcome = validator.validate(
        _window(datetime(2025, 11, 9, 9, 0), datetime(2025, 11, 9, 10, 0)),
        room_id,
    )
    assert outcome is ValidationOutcome.PAST_WINDOW


def test_window_starting_now_is_past(tmp_path) -> None:
    validator, _, room_id, _ = _build_validator(tmp_path)
    outcome = validator.validate(_window(NOW, datetime(2025, 11, 10, 9, 0)), room_id)
    assert outcome is ValidationOutcome.PAST_WINDOW


def test_inverted_window_is_invalid_before_past_check(tmp_path) -> None:
    validator, _, room_id, _ = _build_validator(tmp_path)
    outcome = validator.validate(
        _window(datetime(2025, 11, 9, 10, 0), datetime(2025, 11, 9, 9, 0)),
        room_id,
    )
    assert outcome is ValidationOutcome.INVALID_WINDOW


def test_zero_length_window_is_invalid(tmp_path) -> None:
    validator, _, room_id, _ = _build_validator(tmp_path)
    instant = datetime(2025, 11, 17, 12, 0)
    assert validator.validate(_window(instant, instant), room_id) is ValidationOutcome.INVALID_WINDOW


def test_pending_booking_holds_the_room(tmp_path) -> None:
    validator, repository, room_id, user_id = _build_validator(tmp_path)
    repository.insert_booking(
        title="Pending",
        room_id=room_id,
        organizer_id=user_id,
        start_time=datetime(2025, 11, 18, 9, 0),
        end_time=datetime(2025, 11, 18, 10, 0),
        status=BookingStatus.PENDING_APPROVAL,
        attendees="",
    )
    outcome = validator.validate(
        _window(datetime(2025, 11, 18, 9, 0), datetime(2025, 11, 18, 9, 15)),
        room_id,
    )
    assert outcome is ValidationOutcome.CONFLICT


@pytest.mark.parametrize("status", [BookingStatus.DENIED, BookingStatus.CANCELED])
def test_terminal_bookings_release_the_room(tmp_path, status) -> None:
    validator, repository, room_id, user_id = _build_validator(tmp_path)
    repository.insert_booking(
        title="Released",
        room_id=room_id,
        organizer_id=user_id,
        start_time=datetime(2025, 11, 18, 9, 0),
        end_time=datetime(2025, 11, 18, 10, 0),
        status=status,
        attendees="",
    )
    outcome = validator.validate(
        _window(datetime(2025, 11, 18, 9, 0), datetime(2025, 11, 18, 10, 0)),
        room_id,
    )
    assert outcome is ValidationOutcome.OK


def test_edited_booking_does_not_conflict_with_itself(tmp_path) -> None:
    validator, repository, room_id, _ = _build_validator(tmp_path)
    existing = repository.list_bookings(room_id=room_id)[0]
    outcome = validator.validate(
        _window(datetime(2025, 11, 17, 9, 30), datetime(2025, 11, 17, 10, 30)),
        room_id,
        excluding_booking_id=existing.booking_id,
    )
    assert outcome is ValidationOutcome.OK


def test_ensure_valid_raises_matching_errors(tmp_path) -> None:
    validator, _, room_id, _ = _build_validator(tmp_path)
    with pytest.raises(InvalidWindowError):
        validator.ensure_valid(
            _window(datetime(2025, 11, 17, 11, 0), datetime(2025, 11, 17, 10, 0)),
            room_id,
        )
    with pytest.raises(PastWindowError):
        validator.ensure_valid(
            _window(datetime(2025, 11, 1, 9, 0), datetime(2025, 11, 1, 10, 0)),
            room_id,
        )
    with pytest.raises(BookingConflictError):
        validator.ensure_valid(
            _window(datetime(2025, 11, 17, 8, 0), datetime(2025, 11, 17, 9, 1)),
            room_id,
        )


def test_preview_reports_each_occurrence_without_writing(tmp_path) -> None:
    validator, repository, room_id, _ = _build_validator(tmp_path)
    rule = RecurrenceRule(
        recurrence_type=RecurrenceType.DAILY,
        first_occurrence=date(2025, 11, 16),
        series_end_date=date(2025, 11, 18),
        start_time_of_day=time(9, 0),
        end_time_of_day=time(10, 0),
    )
    previews = validator.preview_occurrences(rule, room_id)
    assert [item.outcome for item in previews] == [
        ValidationOutcome.OK,
        ValidationOutcome.CONFLICT,
        ValidationOutcome.OK,
    ]
    assert len(repository.list_bookings()) == 1


def test_room_lock_is_reentrant_and_exclusive() -> None:
    registry = KeyedLockRegistry()
    entered = threading.Event()
    observed: list[str] = []

    def contender() -> None:
        entered.wait()
        with registry.hold(1):
            observed.append("contender")

    worker = threading.Thread(target=contender)
    worker.start()
    with registry.hold(2, 1):
        with registry.hold(1):
            entered.set()
            # the contender must still be blocked while both holds are active
            worker.join(timeout=0.2)
            observed.append("owner")
    worker.join(timeout=5)

    assert observed == ["owner", "contender"]
