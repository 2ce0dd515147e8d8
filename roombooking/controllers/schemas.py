"""Request/response DTOs shared by the HTTP controllers."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from roombooking.domain.models import (
    Booking,
    BookingStatus,
    OccurrencePreview,
    QueueItemType,
    RecurrenceRule,
    RecurrenceType,
    RecurringSeries,
    Role,
    Room,
    SeriesApprovalResult,
    SkippedOccurrence,
    TimeWindow,
    User,
    ValidationOutcome,
)
from roombooking.services.query_service import (
    ApprovalQueueItem,
    BookingView,
    SeriesView,
    StatusReport,
)


def as_local_naive(value: datetime) -> datetime:
    """Bookings use naive local instants; aware inputs are converted."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# --- Requests ------------------------------------------------------------


class BookingCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    room_id: int = Field(gt=0)
    start_time: datetime
    end_time: datetime
    attendees: str = ""

    @field_validator("start_time", "end_time")
    @classmethod
    def to_local_naive(cls, value: datetime) -> datetime:
        return as_local_naive(value)

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_time, end=self.end_time)


class BookingUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    room_id: Optional[int] = Field(default=None, gt=0)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    attendees: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_local_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_local_naive(value) if value is not None else None

    @model_validator(mode="after")
    def validate_window_pair(self) -> "BookingUpdateRequest":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be provided together")
        return self

    @property
    def window(self) -> Optional[TimeWindow]:
        if self.start_time is None or self.end_time is None:
            return None
        return TimeWindow(start=self.start_time, end=self.end_time)


class RecurrenceRequest(BaseModel):
    recurrence_type: RecurrenceType
    series_end_date: date


class RecurringBookingCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    room_id: int = Field(gt=0)
    first_occurrence_date: date
    start_time: time
    end_time: time
    recurrence: RecurrenceRequest
    attendees: str = ""

    @property
    def rule(self) -> RecurrenceRule:
        return RecurrenceRule(
            recurrence_type=self.recurrence.recurrence_type,
            first_occurrence=self.first_occurrence_date,
            series_end_date=self.recurrence.series_end_date,
            start_time_of_day=self.start_time.replace(tzinfo=None),
            end_time_of_day=self.end_time.replace(tzinfo=None),
        )


class SeriesPreviewRequest(BaseModel):
    room_id: int = Field(gt=0)
    first_occurrence_date: date
    start_time: time
    end_time: time
    recurrence: RecurrenceRequest

    @property
    def rule(self) -> RecurrenceRule:
        return RecurrenceRule(
            recurrence_type=self.recurrence.recurrence_type,
            first_occurrence=self.first_occurrence_date,
            series_end_date=self.recurrence.series_end_date,
            start_time_of_day=self.start_time.replace(tzinfo=None),
            end_time_of_day=self.end_time.replace(tzinfo=None),
        )


class DenyRequest(BaseModel):
    reason: str = ""


class LoginRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class RoomRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    location: str = ""
    capacity: int = Field(ge=0)
    equipment: list[str] = Field(default_factory=list)


class UserCreateRequest(BaseModel):
    full_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    role: Role = Role.EMPLOYEE
    phone_number: Optional[str] = None


class UserUpdateRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    phone_number: Optional[str] = None
    role: Optional[Role] = None
    password: Optional[str] = Field(default=None, min_length=1)


# --- Responses -----------------------------------------------------------


class BookingResponse(BaseModel):
    booking_id: int
    title: str
    room_id: int
    organizer_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    attendees: str
    attendee_emails: list[str]
    admin_denial_reason: Optional[str] = None
    series_id: Optional[int] = None

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            booking_id=booking.booking_id,
            title=booking.title,
            room_id=booking.room_id,
            organizer_id=booking.organizer_id,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
            attendees=booking.attendees,
            attendee_emails=booking.attendee_emails,
            admin_denial_reason=booking.admin_denial_reason,
            series_id=booking.series_id,
        )


class BookingViewResponse(BookingResponse):
    room_name: str
    organizer_name: str
    organizer_email: Optional[str] = None
    organizer_phone: Optional[str] = None
    is_past: bool

    @classmethod
    def from_view(cls, view: BookingView) -> "BookingViewResponse":
        return cls(
            **BookingResponse.from_domain(view.booking).model_dump(),
            room_name=view.room_name,
            organizer_name=view.organizer_name,
            organizer_email=view.organizer_email,
            organizer_phone=view.organizer_phone,
            is_past=view.is_past,
        )


class SeriesResponse(BaseModel):
    series_id: int
    title: str
    room_id: int
    organizer_id: int
    recurrence_type: RecurrenceType
    first_occurrence_date: date
    series_end_date: date
    start_time: time
    end_time: time
    status: BookingStatus
    attendees: str
    admin_denial_reason: Optional[str] = None

    @classmethod
    def from_domain(cls, series: RecurringSeries) -> "SeriesResponse":
        return cls(
            series_id=series.series_id,
            title=series.title,
            room_id=series.room_id,
            organizer_id=series.organizer_id,
            recurrence_type=series.rule.recurrence_type,
            first_occurrence_date=series.rule.first_occurrence,
            series_end_date=series.rule.series_end_date,
            start_time=series.rule.start_time_of_day,
            end_time=series.rule.end_time_of_day,
            status=series.status,
            attendees=series.attendees,
            admin_denial_reason=series.admin_denial_reason,
        )


class SeriesViewResponse(SeriesResponse):
    room_name: str
    organizer_name: str
    details: str

    @classmethod
    def from_view(cls, view: SeriesView) -> "SeriesViewResponse":
        return cls(
            **SeriesResponse.from_domain(view.series).model_dump(),
            room_name=view.room_name,
            organizer_name=view.organizer_name,
            details=view.details,
        )


class OccurrenceResponse(BaseModel):
    occurrence_date: date
    start_time: datetime
    end_time: datetime
    outcome: ValidationOutcome

    @classmethod
    def from_preview(cls, preview: OccurrencePreview) -> "OccurrenceResponse":
        return cls(
            occurrence_date=preview.occurrence.occurrence_date,
            start_time=preview.occurrence.start,
            end_time=preview.occurrence.end,
            outcome=preview.outcome,
        )

    @classmethod
    def from_skip(cls, skipped: SkippedOccurrence) -> "OccurrenceResponse":
        return cls(
            occurrence_date=skipped.occurrence.occurrence_date,
            start_time=skipped.occurrence.start,
            end_time=skipped.occurrence.end,
            outcome=skipped.reason,
        )


class SeriesApprovalResponse(BaseModel):
    series: SeriesResponse
    accepted: list[BookingResponse]
    skipped: list[OccurrenceResponse]

    @classmethod
    def from_domain(cls, result: SeriesApprovalResult) -> "SeriesApprovalResponse":
        return cls(
            series=SeriesResponse.from_domain(result.series),
            accepted=[BookingResponse.from_domain(item) for item in result.accepted],
            skipped=[OccurrenceResponse.from_skip(item) for item in result.skipped],
        )


class SeriesCancelResponse(BaseModel):
    series: SeriesResponse
    canceled_bookings: int = Field(ge=0)


class SeriesDeleteResponse(BaseModel):
    series_id: int
    removed_bookings: int = Field(ge=0)


class ApprovalQueueItemResponse(BaseModel):
    type: QueueItemType
    id: int
    title: str
    room_name: str
    organizer_name: str
    start_time: datetime
    details: str
    is_past: bool

    @classmethod
    def from_item(cls, item: ApprovalQueueItem) -> "ApprovalQueueItemResponse":
        return cls(
            type=item.item_type,
            id=item.item_id,
            title=item.title,
            room_name=item.room_name,
            organizer_name=item.organizer_name,
            start_time=item.start_time,
            details=item.details,
            is_past=item.is_past,
        )


class ReportResponse(BaseModel):
    total: int = Field(ge=0)
    by_status: dict[str, int]
    bookings: list[BookingViewResponse]

    @classmethod
    def from_report(cls, report: StatusReport) -> "ReportResponse":
        return cls(
            total=report.total,
            by_status={status.value: count for status, count in report.by_status.items()},
            bookings=[BookingViewResponse.from_view(view) for view in report.bookings],
        )


class RoomResponse(BaseModel):
    room_id: int
    name: str
    location: str
    capacity: int = Field(ge=0)
    equipment: list[str]

    @classmethod
    def from_domain(cls, room: Room) -> "RoomResponse":
        return cls(
            room_id=room.room_id,
            name=room.name,
            location=room.location,
            capacity=room.capacity,
            equipment=list(room.equipment),
        )


class UserResponse(BaseModel):
    user_id: int
    full_name: str
    email: str
    role: Role
    phone_number: Optional[str] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            user_id=user.user_id,
            full_name=user.full_name,
            email=user.email,
            role=user.role,
            phone_number=user.phone_number,
        )


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
