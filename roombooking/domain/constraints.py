"""Domain-level rules shared by the scheduling and approval services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from roombooking.domain.errors import BookingValidationError
from roombooking.domain.models import Booking, RecurringSeries, TimeWindow


@dataclass(frozen=True)
class SchedulingPolicy:
    bookings_require_approval: bool
    admin_bookings_auto_confirm: bool
    dashboard_window_days: int
    series_max_occurrences: int


def validate_scheduling_policy(policy: SchedulingPolicy) -> None:
    if policy.dashboard_window_days <= 0:
        raise ValueError("dashboard_window_days must be > 0")
    if policy.series_max_occurrences <= 0:
        raise ValueError("series_max_occurrences must be > 0")


def windows_overlap(first: TimeWindow, second: TimeWindow) -> bool:
    """Half-open overlap: touching endpoints do not overlap."""
    return first.start < second.end and second.start < first.end


def is_actionable(item: Booking | RecurringSeries, now: datetime) -> bool:
    """Return True while the item has not started and is not terminal."""
    if item.status.is_terminal:
        return False
    if isinstance(item, RecurringSeries):
        return item.first_start > now
    return item.start_time > now


def require_text(value: str | None, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise BookingValidationError(f"{field_name} must not be empty")
    return cleaned
