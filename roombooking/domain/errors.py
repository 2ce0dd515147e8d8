"""Error taxonomy raised by the booking engine.

All errors are recoverable: callers surface the message and let the user
retry with corrected input. None of them leaves partial state behind.
"""

from __future__ import annotations


class BookingEngineError(Exception):
    """Base class for every engine failure."""


class BookingValidationError(BookingEngineError):
    """Raised when submitted fields are malformed or incomplete."""


class InvalidWindowError(BookingValidationError):
    """Raised when a window does not end strictly after it starts."""


class PastWindowError(BookingValidationError):
    """Raised when a window starts at or before the current instant."""


class BookingConflictError(BookingEngineError):
    """Raised when a room is already held or an entity is still referenced."""


class ForbiddenActionError(BookingEngineError):
    """Raised when the caller's role or ownership does not permit the action."""


class InvalidTransitionError(BookingEngineError):
    """Raised when the current status does not allow the requested transition."""


class EntityNotFoundError(BookingEngineError):
    """Raised when an id does not resolve to a stored entity."""


class ExpiredBookingError(BookingEngineError):
    """Raised when acting on an item that has already started."""
