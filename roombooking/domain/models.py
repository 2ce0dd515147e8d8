"""Domain models for rooms, users, bookings and recurring series."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional


class Role(str, Enum):
    EMPLOYEE = "Employee"
    ADMIN = "Admin"


class BookingStatus(str, Enum):
    PENDING_APPROVAL = "PendingApproval"
    CONFIRMED = "Confirmed"
    DENIED = "Denied"
    CANCELED = "Canceled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def blocks_room(self) -> bool:
        return self in ACTIVE_STATUSES


TERMINAL_STATUSES = frozenset({BookingStatus.DENIED, BookingStatus.CANCELED})
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING_APPROVAL, BookingStatus.CONFIRMED})


class RecurrenceType(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class ValidationOutcome(str, Enum):
    OK = "Ok"
    CONFLICT = "Conflict"
    PAST_WINDOW = "PastWindow"
    INVALID_WINDOW = "InvalidWindow"


class QueueItemType(str, Enum):
    SINGLE = "Single"
    RECURRING = "Recurring"


@dataclass(frozen=True)
class CallerContext:
    """Identity and role of the user performing an engine call."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Room:
    room_id: int
    name: str
    location: str
    capacity: int
    equipment: tuple[str, ...] = ()


@dataclass(frozen=True)
class User:
    user_id: int
    full_name: str
    email: str
    role: Role
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class Booking:
    booking_id: int
    title: str
    room_id: int
    organizer_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    attendees: str = ""
    admin_denial_reason: Optional[str] = None
    series_id: Optional[int] = None

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_time, end=self.end_time)

    @property
    def attendee_emails(self) -> list[str]:
        return [item.strip() for item in self.attendees.split(",") if item.strip()]


@dataclass(frozen=True)
class RecurrenceRule:
    recurrence_type: RecurrenceType
    first_occurrence: date
    series_end_date: date
    start_time_of_day: time
    end_time_of_day: time


@dataclass(frozen=True)
class RecurringSeries:
    series_id: int
    title: str
    room_id: int
    organizer_id: int
    rule: RecurrenceRule
    status: BookingStatus
    attendees: str = ""
    admin_denial_reason: Optional[str] = None

    @property
    def first_start(self) -> datetime:
        return datetime.combine(self.rule.first_occurrence, self.rule.start_time_of_day)


@dataclass(frozen=True)
class Occurrence:
    occurrence_date: date
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SkippedOccurrence:
    occurrence: Occurrence
    reason: ValidationOutcome


@dataclass(frozen=True)
class SeriesApprovalResult:
    series: RecurringSeries
    accepted: list[Booking] = field(default_factory=list)
    skipped: list[SkippedOccurrence] = field(default_factory=list)


@dataclass(frozen=True)
class OccurrencePreview:
    occurrence: Occurrence
    outcome: ValidationOutcome
