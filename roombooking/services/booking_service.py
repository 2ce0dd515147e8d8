"""Submission of single bookings and recurring series."""

from __future__ import annotations

from typing import Optional

from roombooking.domain.constraints import (
    SchedulingPolicy,
    require_text,
    validate_scheduling_policy,
)
from roombooking.domain.errors import (
    BookingValidationError,
    EntityNotFoundError,
    InvalidWindowError,
    PastWindowError,
)
from roombooking.domain.models import (
    Booking,
    BookingStatus,
    CallerContext,
    OccurrencePreview,
    RecurrenceRule,
    RecurringSeries,
    TimeWindow,
)
from roombooking.domain.recurrence import expand_occurrences
from roombooking.repository.data_repository import DataRepository
from roombooking.services.scheduling_service import SchedulingValidator
from roombooking.utils.config import Settings, get_settings
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)


def build_scheduling_policy(settings: Settings) -> SchedulingPolicy:
    policy = SchedulingPolicy(
        bookings_require_approval=settings.bookings_require_approval,
        admin_bookings_auto_confirm=settings.admin_bookings_auto_confirm,
        dashboard_window_days=settings.dashboard_window_days,
        series_max_occurrences=settings.series_max_occurrences,
    )
    validate_scheduling_policy(policy)
    return policy


class BookingService:
    """Validates and stores new submissions in their initial status."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        validator: Optional[SchedulingValidator] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._validator = validator or SchedulingValidator(self._repository)
        self._policy = build_scheduling_policy(self._settings)

    def _ensure_room(self, room_id: int) -> None:
        if self._repository.get_room(room_id) is None:
            raise EntityNotFoundError(f"Room {room_id} not found")

    def _initial_status(self, caller: CallerContext) -> BookingStatus:
        if not self._policy.bookings_require_approval:
            return BookingStatus.CONFIRMED
        if caller.is_admin and self._policy.admin_bookings_auto_confirm:
            return BookingStatus.CONFIRMED
        return BookingStatus.PENDING_APPROVAL

    def create_booking(
        self,
        caller: CallerContext,
        *,
        title: str,
        room_id: int,
        window: TimeWindow,
        attendees: str = "",
    ) -> Booking:
        cleaned_title = require_text(title, "title")
        self._ensure_room(room_id)

        with self._validator.room_locks.hold(room_id):
            self._validator.ensure_valid(window, room_id)
            status = self._initial_status(caller)
            booking_id = self._repository.insert_booking(
                title=cleaned_title,
                room_id=room_id,
                organizer_id=caller.user_id,
                start_time=window.start,
                end_time=window.end,
                status=status,
                attendees=(attendees or "").strip(),
            )

        logger.info(
            "Booking %s created in room %s by user %s with status %s",
            booking_id,
            room_id,
            caller.user_id,
            status.value,
        )
        return Booking(
            booking_id=booking_id,
            title=cleaned_title,
            room_id=room_id,
            organizer_id=caller.user_id,
            start_time=window.start,
            end_time=window.end,
            status=status,
            attendees=(attendees or "").strip(),
        )

    def _validate_rule(self, rule: RecurrenceRule) -> None:
        if rule.end_time_of_day <= rule.start_time_of_day:
            raise InvalidWindowError("Series end time must be after its start time")
        occurrences = expand_occurrences(rule)
        if not occurrences:
            raise InvalidWindowError("Series end date is before the first occurrence")
        if occurrences[0].start <= self._validator.now():
            raise PastWindowError("A series cannot start in the past")
        if len(occurrences) > self._policy.series_max_occurrences:
            raise BookingValidationError(
                f"Series expands to {len(occurrences)} occurrences; "
                f"the maximum is {self._policy.series_max_occurrences}"
            )

    def create_recurring_series(
        self,
        caller: CallerContext,
        *,
        title: str,
        room_id: int,
        rule: RecurrenceRule,
        attendees: str = "",
    ) -> RecurringSeries:
        """Store a series awaiting approval; bookings are materialized on approval."""
        cleaned_title = require_text(title, "title")
        self._ensure_room(room_id)
        self._validate_rule(rule)

        series_id = self._repository.insert_series(
            title=cleaned_title,
            room_id=room_id,
            organizer_id=caller.user_id,
            rule=rule,
            status=BookingStatus.PENDING_APPROVAL,
            attendees=(attendees or "").strip(),
        )
        logger.info(
            "Recurring series %s (%s) created in room %s by user %s",
            series_id,
            rule.recurrence_type.value,
            room_id,
            caller.user_id,
        )
        return RecurringSeries(
            series_id=series_id,
            title=cleaned_title,
            room_id=room_id,
            organizer_id=caller.user_id,
            rule=rule,
            status=BookingStatus.PENDING_APPROVAL,
            attendees=(attendees or "").strip(),
        )

    def preview_series(self, room_id: int, rule: RecurrenceRule) -> list[OccurrencePreview]:
        self._ensure_room(room_id)
        return self._validator.preview_occurrences(rule, room_id)
