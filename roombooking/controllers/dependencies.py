"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roombooking.domain.errors import (
    BookingConflictError,
    BookingEngineError,
    BookingValidationError,
    EntityNotFoundError,
    ExpiredBookingError,
    ForbiddenActionError,
    InvalidTransitionError,
)
from roombooking.domain.models import CallerContext
from roombooking.services.approval_service import ApprovalWorkflowService
from roombooking.services.auth_service import AuthService, InvalidSessionTokenError
from roombooking.services.booking_service import BookingService
from roombooking.services.directory_service import RoomRegistryService, UserDirectoryService
from roombooking.services.query_service import BookingQueryService


bearer_scheme = HTTPBearer(auto_error=False)

_STATUS_BY_ERROR: tuple[tuple[type[BookingEngineError], int], ...] = (
    (BookingValidationError, status.HTTP_400_BAD_REQUEST),
    (ForbiddenActionError, status.HTTP_403_FORBIDDEN),
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (BookingConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (ExpiredBookingError, status.HTTP_409_CONFLICT),
)


def to_http_exception(exc: BookingEngineError) -> HTTPException:
    """Translate an engine error into the matching HTTP status."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name.replace('_', ' ').capitalize()} is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    return _service(request, "auth_service")


def get_booking_service(request: Request) -> BookingService:
    return _service(request, "booking_service")


def get_approval_service(request: Request) -> ApprovalWorkflowService:
    return _service(request, "approval_service")


def get_query_service(request: Request) -> BookingQueryService:
    return _service(request, "query_service")


def get_room_service(request: Request) -> RoomRegistryService:
    return _service(request, "room_service")


def get_user_service(request: Request) -> UserDirectoryService:
    return _service(request, "user_service")


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> CallerContext:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        return auth_service.resolve_caller(credentials.credentials)
    except InvalidSessionTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
