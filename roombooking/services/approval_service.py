"""Role-gated state transitions for bookings and recurring series.

State machine shared by bookings and series:

    PendingApproval -> Confirmed | Denied | Canceled
    Confirmed       -> Canceled
    Denied, Canceled are terminal

Every transition re-checks the caller's role and ownership and performs no
mutation when a check fails. Status writes are compare-and-set, so a
concurrent transition that got there first surfaces as InvalidTransitionError.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from roombooking.domain.constraints import is_actionable, require_text
from roombooking.domain.errors import (
    EntityNotFoundError,
    ExpiredBookingError,
    ForbiddenActionError,
    InvalidTransitionError,
)
from roombooking.domain.models import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    CallerContext,
    RecurringSeries,
    SeriesApprovalResult,
    SkippedOccurrence,
    TimeWindow,
    ValidationOutcome,
)
from roombooking.domain.recurrence import expand_occurrences
from roombooking.repository.data_repository import DataRepository
from roombooking.services.scheduling_service import SchedulingValidator
from roombooking.utils.config import Settings, get_settings
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class SeriesCancellationResult:
    series: RecurringSeries
    canceled_bookings: int


def _require_admin(caller: CallerContext, action: str) -> None:
    if not caller.is_admin:
        raise ForbiddenActionError(f"Only admins may {action}")


def _require_owner_or_admin(caller: CallerContext, organizer_id: int, action: str) -> None:
    if not caller.is_admin and caller.user_id != organizer_id:
        raise ForbiddenActionError(f"Only the organizer or an admin may {action}")


class ApprovalWorkflowService:
    """Applies approve, deny, cancel, edit and delete transitions."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        validator: Optional[SchedulingValidator] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._validator = validator or SchedulingValidator(self._repository)

    def _load_booking(self, booking_id: int) -> Booking:
        booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise EntityNotFoundError(f"Booking {booking_id} not found")
        return booking

    def _load_series(self, series_id: int) -> RecurringSeries:
        series = self._repository.get_series(series_id)
        if series is None:
            raise EntityNotFoundError(f"Recurring series {series_id} not found")
        return series

    @staticmethod
    def _require_pending(status: BookingStatus, label: str) -> None:
        if status is not BookingStatus.PENDING_APPROVAL:
            raise InvalidTransitionError(f"{label} is {status.value}, not PendingApproval")

    # --- Single bookings -------------------------------------------------

    def approve_booking(self, caller: CallerContext, booking_id: int) -> Booking:
        _require_admin(caller, "approve bookings")
        booking = self._load_booking(booking_id)
        self._require_pending(booking.status, f"Booking {booking_id}")
        if not is_actionable(booking, self._validator.now()):
            raise ExpiredBookingError(f"Booking {booking_id} has already started")

        with self._validator.room_locks.hold(booking.room_id):
            self._validator.ensure_valid(booking.window, booking.room_id, booking_id)
            if not self._repository.transition_booking_status(
                booking_id,
                expected_statuses=(BookingStatus.PENDING_APPROVAL,),
                new_status=BookingStatus.CONFIRMED,
            ):
                logger.warning("Booking %s changed status during approval", booking_id)
                raise InvalidTransitionError(f"Booking {booking_id} is no longer pending")

        logger.info("Booking %s approved by user %s", booking_id, caller.user_id)
        return replace(booking, status=BookingStatus.CONFIRMED)

    def deny_booking(self, caller: CallerContext, booking_id: int, reason: str) -> Booking:
        _require_admin(caller, "deny bookings")
        cleaned_reason = require_text(reason, "reason")
        booking = self._load_booking(booking_id)
        self._require_pending(booking.status, f"Booking {booking_id}")
        if not is_actionable(booking, self._validator.now()):
            raise ExpiredBookingError(f"Booking {booking_id} has already started")

        if not self._repository.transition_booking_status(
            booking_id,
            expected_statuses=(BookingStatus.PENDING_APPROVAL,),
            new_status=BookingStatus.DENIED,
            admin_denial_reason=cleaned_reason,
        ):
            logger.warning("Booking %s changed status during denial", booking_id)
            raise InvalidTransitionError(f"Booking {booking_id} is no longer pending")

        logger.info("Booking %s denied by user %s", booking_id, caller.user_id)
        return replace(
            booking,
            status=BookingStatus.DENIED,
            admin_denial_reason=cleaned_reason,
        )

    def cancel_booking(self, caller: CallerContext, booking_id: int) -> Booking:
        booking = self._load_booking(booking_id)
        _require_owner_or_admin(caller, booking.organizer_id, "cancel this booking")
        if booking.status.is_terminal:
            raise InvalidTransitionError(
                f"Booking {booking_id} is already {booking.status.value}"
            )
        if not caller.is_admin and not is_actionable(booking, self._validator.now()):
            raise ExpiredBookingError(f"Booking {booking_id} has already started")

        if not self._repository.transition_booking_status(
            booking_id,
            expected_statuses=ACTIVE_STATUSES,
            new_status=BookingStatus.CANCELED,
        ):
            logger.warning("Booking %s changed status during cancellation", booking_id)
            raise InvalidTransitionError(f"Booking {booking_id} can no longer be canceled")

        logger.info("Booking %s canceled by user %s", booking_id, caller.user_id)
        return replace(booking, status=BookingStatus.CANCELED)

    def edit_booking(
        self,
        caller: CallerContext,
        booking_id: int,
        *,
        title: Optional[str] = None,
        room_id: Optional[int] = None,
        window: Optional[TimeWindow] = None,
        attendees: Optional[str] = None,
    ) -> Booking:
        """Replace booking fields in place; the status is left untouched."""
        booking = self._load_booking(booking_id)
        _require_owner_or_admin(caller, booking.organizer_id, "edit this booking")
        if booking.status.is_terminal:
            raise InvalidTransitionError(
                f"Booking {booking_id} is {booking.status.value} and cannot be edited"
            )
        if not caller.is_admin and not is_actionable(booking, self._validator.now()):
            raise ExpiredBookingError(f"Booking {booking_id} has already started")

        target_room_id = room_id if room_id is not None else booking.room_id
        if target_room_id != booking.room_id and self._repository.get_room(target_room_id) is None:
            raise EntityNotFoundError(f"Room {target_room_id} not found")
        target_window = window or booking.window
        updated = replace(
            booking,
            title=require_text(title, "title") if title is not None else booking.title,
            room_id=target_room_id,
            start_time=target_window.start,
            end_time=target_window.end,
            attendees=attendees.strip() if attendees is not None else booking.attendees,
        )

        with self._validator.room_locks.hold(booking.room_id, target_room_id):
            self._validator.ensure_valid(target_window, target_room_id, booking_id)
            if not self._repository.update_booking_details(updated, expected_status=booking.status):
                logger.warning("Booking %s changed status during edit", booking_id)
                raise InvalidTransitionError(f"Booking {booking_id} changed while editing")

        logger.info("Booking %s edited by user %s", booking_id, caller.user_id)
        return updated

    def delete_booking(self, caller: CallerContext, booking_id: int) -> None:
        _require_admin(caller, "delete bookings")
        if not self._repository.delete_booking(booking_id):
            raise EntityNotFoundError(f"Booking {booking_id} not found")
        logger.info("Booking %s deleted by user %s", booking_id, caller.user_id)

    # --- Recurring series ------------------------------------------------

    def approve_series(self, caller: CallerContext, series_id: int) -> SeriesApprovalResult:
        """Confirm the series and materialize one booking per valid occurrence.

        Occurrences failing validation are skipped and reported; a skip never
        aborts the remaining occurrences. The series lock is held throughout,
        and materialization stops early if the series leaves Confirmed.
        """
        _require_admin(caller, "approve recurring series")
        with self._validator.series_locks.hold(series_id):
            series = self._load_series(series_id)
            self._require_pending(series.status, f"Recurring series {series_id}")
            if not is_actionable(series, self._validator.now()):
                raise ExpiredBookingError(f"Recurring series {series_id} has already started")

            if not self._repository.transition_series_status(
                series_id,
                expected_statuses=(BookingStatus.PENDING_APPROVAL,),
                new_status=BookingStatus.CONFIRMED,
            ):
                logger.warning("Series %s changed status during approval", series_id)
                raise InvalidTransitionError(f"Recurring series {series_id} is no longer pending")

            accepted: list[Booking] = []
            skipped: list[SkippedOccurrence] = []
            for occurrence in expand_occurrences(series.rule):
                window = TimeWindow(start=occurrence.start, end=occurrence.end)
                with self._validator.room_locks.hold(series.room_id):
                    if not self._series_still_confirmed(series_id):
                        logger.warning(
                            "Series %s left Confirmed after %s bookings; stopping",
                            series_id,
                            len(accepted),
                        )
                        break
                    outcome = self._validator.validate(window, series.room_id)
                    if outcome is not ValidationOutcome.OK:
                        skipped.append(SkippedOccurrence(occurrence=occurrence, reason=outcome))
                        continue
                    booking_id = self._repository.insert_booking(
                        title=series.title,
                        room_id=series.room_id,
                        organizer_id=series.organizer_id,
                        start_time=window.start,
                        end_time=window.end,
                        status=BookingStatus.CONFIRMED,
                        attendees=series.attendees,
                        series_id=series_id,
                    )
                accepted.append(
                    Booking(
                        booking_id=booking_id,
                        title=series.title,
                        room_id=series.room_id,
                        organizer_id=series.organizer_id,
                        start_time=window.start,
                        end_time=window.end,
                        status=BookingStatus.CONFIRMED,
                        attendees=series.attendees,
                        series_id=series_id,
                    )
                )
            current = self._repository.get_series(series_id)

        logger.info(
            "Series %s approved by user %s: %s bookings created, %s occurrences skipped",
            series_id,
            caller.user_id,
            len(accepted),
            len(skipped),
        )
        return SeriesApprovalResult(
            series=current or replace(series, status=BookingStatus.CONFIRMED),
            accepted=accepted,
            skipped=skipped,
        )

    def _series_still_confirmed(self, series_id: int) -> bool:
        series = self._repository.get_series(series_id)
        return series is not None and series.status is BookingStatus.CONFIRMED

    def deny_series(self, caller: CallerContext, series_id: int, reason: str) -> RecurringSeries:
        _require_admin(caller, "deny recurring series")
        cleaned_reason = require_text(reason, "reason")
        with self._validator.series_locks.hold(series_id):
            series = self._load_series(series_id)
            self._require_pending(series.status, f"Recurring series {series_id}")
            if not is_actionable(series, self._validator.now()):
                raise ExpiredBookingError(f"Recurring series {series_id} has already started")

            if not self._repository.transition_series_status(
                series_id,
                expected_statuses=(BookingStatus.PENDING_APPROVAL,),
                new_status=BookingStatus.DENIED,
                admin_denial_reason=cleaned_reason,
            ):
                logger.warning("Series %s changed status during denial", series_id)
                raise InvalidTransitionError(f"Recurring series {series_id} is no longer pending")

        logger.info("Series %s denied by user %s", series_id, caller.user_id)
        return replace(
            series,
            status=BookingStatus.DENIED,
            admin_denial_reason=cleaned_reason,
        )

    def cancel_series(self, caller: CallerContext, series_id: int) -> SeriesCancellationResult:
        """Cancel the series and its not-yet-started bookings; past ones are kept."""
        with self._validator.series_locks.hold(series_id):
            series = self._load_series(series_id)
            _require_owner_or_admin(caller, series.organizer_id, "cancel this series")
            if series.status.is_terminal:
                raise InvalidTransitionError(
                    f"Recurring series {series_id} is already {series.status.value}"
                )

            if not self._repository.transition_series_status(
                series_id,
                expected_statuses=ACTIVE_STATUSES,
                new_status=BookingStatus.CANCELED,
            ):
                logger.warning("Series %s changed status during cancellation", series_id)
                raise InvalidTransitionError(
                    f"Recurring series {series_id} can no longer be canceled"
                )
            canceled = self._repository.cancel_future_series_bookings(
                series_id, self._validator.now()
            )

        logger.info(
            "Series %s canceled by user %s; %s future bookings canceled",
            series_id,
            caller.user_id,
            canceled,
        )
        return SeriesCancellationResult(
            series=replace(series, status=BookingStatus.CANCELED),
            canceled_bookings=canceled,
        )

    def delete_series(self, caller: CallerContext, series_id: int) -> int:
        _require_admin(caller, "delete recurring series")
        with self._validator.series_locks.hold(series_id):
            removed = self._repository.delete_series(series_id, self._validator.now())
        if removed is None:
            raise EntityNotFoundError(f"Recurring series {series_id} not found")
        logger.info(
            "Series %s deleted by user %s with %s future bookings",
            series_id,
            caller.user_id,
            removed,
        )
        return removed
