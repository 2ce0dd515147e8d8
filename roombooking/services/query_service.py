"""Read-only projections over bookings for calendars, queues and reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from roombooking.domain.constraints import is_actionable
from roombooking.domain.errors import ForbiddenActionError, InvalidWindowError
from roombooking.domain.models import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    CallerContext,
    QueueItemType,
    RecurringSeries,
    Room,
    User,
)
from roombooking.repository.data_repository import DataRepository
from roombooking.services.booking_service import build_scheduling_policy
from roombooking.services.scheduling_service import SchedulingValidator
from roombooking.utils.config import Settings, get_settings


UNKNOWN_ROOM = "Unknown room"
UNKNOWN_USER = "Unknown user"


@dataclass(frozen=True)
class BookingView:
    booking: Booking
    room_name: str
    organizer_name: str
    organizer_email: Optional[str]
    organizer_phone: Optional[str]
    is_past: bool


@dataclass(frozen=True)
class SeriesView:
    series: RecurringSeries
    room_name: str
    organizer_name: str
    details: str


@dataclass(frozen=True)
class ApprovalQueueItem:
    item_type: QueueItemType
    item_id: int
    title: str
    room_name: str
    organizer_name: str
    start_time: datetime
    details: str
    is_past: bool


@dataclass(frozen=True)
class StatusReport:
    total: int
    by_status: dict[BookingStatus, int]
    bookings: list[BookingView]


def describe_booking(booking: Booking) -> str:
    return (
        f"{booking.start_time:%a, %b %d %Y}, "
        f"{booking.start_time:%H:%M} - {booking.end_time:%H:%M}"
    )


def describe_series(series: RecurringSeries) -> str:
    rule = series.rule
    return (
        f"{rule.recurrence_type.value} from {rule.first_occurrence.isoformat()} "
        f"to {rule.series_end_date.isoformat()}, "
        f"{rule.start_time_of_day:%H:%M} - {rule.end_time_of_day:%H:%M}"
    )


class BookingQueryService:
    """Serves caller-time snapshots; never mutates what it reads."""

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

    def _lookups(self) -> tuple[dict[int, Room], dict[int, User]]:
        rooms = {room.room_id: room for room in self._repository.list_rooms()}
        users = {user.user_id: user for user in self._repository.list_users()}
        return rooms, users

    def _to_views(self, bookings: list[Booking]) -> list[BookingView]:
        rooms, users = self._lookups()
        now = self._validator.now()
        views: list[BookingView] = []
        for booking in bookings:
            room = rooms.get(booking.room_id)
            organizer = users.get(booking.organizer_id)
            views.append(
                BookingView(
                    booking=booking,
                    room_name=room.name if room else UNKNOWN_ROOM,
                    organizer_name=organizer.full_name if organizer else UNKNOWN_USER,
                    organizer_email=organizer.email if organizer else None,
                    organizer_phone=organizer.phone_number if organizer else None,
                    is_past=booking.start_time <= now,
                )
            )
        return views

    def list_dashboard(
        self,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
        room_id: Optional[int] = None,
    ) -> list[BookingView]:
        """Room-holding bookings intersecting the range (default now +/- window days)."""
        now = self._validator.now()
        span = timedelta(days=self._policy.dashboard_window_days)
        start = range_start or now - span
        end = range_end or now + span
        if end <= start:
            raise InvalidWindowError("Dashboard range end must be after its start")
        bookings = self._repository.list_bookings(
            room_id=room_id,
            statuses=ACTIVE_STATUSES,
            overlapping_start=start,
            overlapping_end=end,
        )
        return self._to_views(bookings)

    def list_mine(self, caller: CallerContext) -> list[BookingView]:
        bookings = self._repository.list_bookings(
            organizer_id=caller.user_id,
            newest_first=True,
        )
        return self._to_views(bookings)

    def list_my_series(self, caller: CallerContext) -> list[SeriesView]:
        rooms, users = self._lookups()
        organizer = users.get(caller.user_id)
        return [
            SeriesView(
                series=series,
                room_name=rooms[series.room_id].name if series.room_id in rooms else UNKNOWN_ROOM,
                organizer_name=organizer.full_name if organizer else UNKNOWN_USER,
                details=describe_series(series),
            )
            for series in self._repository.list_series(organizer_id=caller.user_id)
        ]

    def list_approval_queue(self, caller: CallerContext) -> list[ApprovalQueueItem]:
        """Pending bookings and series; started items are flagged, not hidden."""
        if not caller.is_admin:
            raise ForbiddenActionError("Only admins may view the approval queue")
        rooms, users = self._lookups()
        now = self._validator.now()

        def room_name(room_id: int) -> str:
            room = rooms.get(room_id)
            return room.name if room else UNKNOWN_ROOM

        def organizer_name(user_id: int) -> str:
            user = users.get(user_id)
            return user.full_name if user else UNKNOWN_USER

        items = [
            ApprovalQueueItem(
                item_type=QueueItemType.SINGLE,
                item_id=booking.booking_id,
                title=booking.title,
                room_name=room_name(booking.room_id),
                organizer_name=organizer_name(booking.organizer_id),
                start_time=booking.start_time,
                details=describe_booking(booking),
                is_past=not is_actionable(booking, now),
            )
            for booking in self._repository.list_bookings(
                statuses=(BookingStatus.PENDING_APPROVAL,)
            )
        ]
        items.extend(
            ApprovalQueueItem(
                item_type=QueueItemType.RECURRING,
                item_id=series.series_id,
                title=series.title,
                room_name=room_name(series.room_id),
                organizer_name=organizer_name(series.organizer_id),
                start_time=series.first_start,
                details=describe_series(series),
                is_past=not is_actionable(series, now),
            )
            for series in self._repository.list_series(
                statuses=(BookingStatus.PENDING_APPROVAL,)
            )
        )
        items.sort(key=lambda item: (item.start_time, item.item_type.value, item.item_id))
        return items

    def list_all(
        self,
        caller: CallerContext,
        search_term: Optional[str] = None,
    ) -> list[BookingView]:
        """Every booking, newest first, optionally matched on title/room/organizer."""
        if not caller.is_admin:
            raise ForbiddenActionError("Only admins may list all bookings")
        views = self._to_views(self._repository.list_bookings(newest_first=True))
        needle = (search_term or "").strip().lower()
        if not needle:
            return views
        return [
            view
            for view in views
            if needle in view.booking.title.lower()
            or needle in view.room_name.lower()
            or needle in view.organizer_name.lower()
        ]

    def report_aggregate(
        self,
        caller: CallerContext,
        status: Optional[BookingStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> StatusReport:
        """Count and list bookings per status; the date range filters on start day, inclusive."""
        if not caller.is_admin:
            raise ForbiddenActionError("Only admins may view reports")
        if start_date is not None and end_date is not None and end_date < start_date:
            raise InvalidWindowError("Report end date must not precede its start date")
        starting_from = datetime.combine(start_date, datetime.min.time()) if start_date else None
        starting_before = (
            datetime.combine(end_date + timedelta(days=1), datetime.min.time())
            if end_date
            else None
        )
        counts = self._repository.count_bookings_by_status(
            status=status,
            starting_from=starting_from,
            starting_before=starting_before,
        )
        bookings = self._repository.list_bookings(
            statuses=(status,) if status is not None else None,
            starting_from=starting_from,
            starting_before=starting_before,
            newest_first=True,
        )
        by_status = {item: counts.get(item, 0) for item in BookingStatus}
        return StatusReport(
            total=sum(by_status.values()),
            by_status=by_status,
            bookings=self._to_views(bookings),
        )
