"""Temporal and conflict validation applied before every booking mutation."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import datetime
from threading import Lock, RLock
from typing import Optional

from roombooking.domain.constraints import windows_overlap
from roombooking.domain.errors import (
    BookingConflictError,
    InvalidWindowError,
    PastWindowError,
)
from roombooking.domain.models import (
    Occurrence,
    OccurrencePreview,
    RecurrenceRule,
    TimeWindow,
    ValidationOutcome,
)
from roombooking.domain.recurrence import expand_occurrences
from roombooking.repository.data_repository import DataRepository
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current naive local instant; bookings carry no timezone."""
    return datetime.now()


class KeyedLockRegistry:
    """Hands out one re-entrant lock per id to serialize check-then-write.

    One registry guards rooms and another guards recurring series. A caller
    needing both takes the series lock first.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[int, RLock] = {}

    def _lock_for(self, key: int) -> RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: int) -> Iterator[None]:
        """Acquire the locks of every given id in ascending order."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._lock_for(key))
            yield


class SchedulingValidator:
    """Checks a candidate window against time rules and existing bookings.

    Rules run in order: the window must end after it starts, must start after
    the current instant, and must not overlap a PendingApproval or Confirmed
    booking in the same room other than the one being edited.
    """

    def __init__(
        self,
        repository: DataRepository,
        clock: Optional[Clock] = None,
        room_locks: Optional[KeyedLockRegistry] = None,
        series_locks: Optional[KeyedLockRegistry] = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or local_now
        self.room_locks = room_locks or KeyedLockRegistry()
        self.series_locks = series_locks or KeyedLockRegistry()

    def now(self) -> datetime:
        return self._clock()

    def validate(
        self,
        window: TimeWindow,
        room_id: int,
        excluding_booking_id: Optional[int] = None,
    ) -> ValidationOutcome:
        if window.end <= window.start:
            return ValidationOutcome.INVALID_WINDOW
        if window.start <= self.now():
            return ValidationOutcome.PAST_WINDOW
        candidates = self._repository.find_overlapping_bookings(
            room_id=room_id,
            start_time=window.start,
            end_time=window.end,
            excluding_booking_id=excluding_booking_id,
        )
        if any(windows_overlap(existing.window, window) for existing in candidates):
            return ValidationOutcome.CONFLICT
        return ValidationOutcome.OK

    def ensure_valid(
        self,
        window: TimeWindow,
        room_id: int,
        excluding_booking_id: Optional[int] = None,
    ) -> None:
        """Raise the error matching a failed validation outcome."""
        outcome = self.validate(window, room_id, excluding_booking_id)
        if outcome is ValidationOutcome.INVALID_WINDOW:
            raise InvalidWindowError("Booking end time must be after its start time")
        if outcome is ValidationOutcome.PAST_WINDOW:
            raise PastWindowError("Bookings cannot start in the past")
        if outcome is ValidationOutcome.CONFLICT:
            raise BookingConflictError(
                f"Room {room_id} is already booked between "
                f"{window.start.isoformat()} and {window.end.isoformat()}"
            )

    def preview_occurrences(self, rule: RecurrenceRule, room_id: int) -> list[OccurrencePreview]:
        """Validate every expanded occurrence without writing anything."""
        return [
            OccurrencePreview(
                occurrence=occurrence,
                outcome=self.validate(_occurrence_window(occurrence), room_id),
            )
            for occurrence in expand_occurrences(rule)
        ]


def _occurrence_window(occurrence: Occurrence) -> TimeWindow:
    return TimeWindow(start=occurrence.start, end=occurrence.end)
