"""HTTP controller for employee-facing booking and series endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from roombooking.controllers.dependencies import (
    get_approval_service,
    get_booking_service,
    get_current_caller,
    get_query_service,
    to_http_exception,
)
from roombooking.controllers.schemas import (
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
    BookingViewResponse,
    OccurrenceResponse,
    RecurringBookingCreateRequest,
    SeriesCancelResponse,
    SeriesPreviewRequest,
    SeriesResponse,
    SeriesViewResponse,
    as_local_naive,
)
from roombooking.domain.errors import BookingEngineError
from roombooking.domain.models import CallerContext
from roombooking.services.approval_service import ApprovalWorkflowService
from roombooking.services.booking_service import BookingService
from roombooking.services.query_service import BookingQueryService
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


@router.get(
    "/bookings/dashboard",
    response_model=list[BookingViewResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(get_current_caller)],
)
async def list_dashboard(
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    room_id: Optional[int] = Query(default=None, gt=0),
    query_service: BookingQueryService = Depends(get_query_service),
) -> list[BookingViewResponse]:
    try:
        views = query_service.list_dashboard(
            range_start=as_local_naive(start) if start else None,
            range_end=as_local_naive(end) if end else None,
            room_id=room_id,
        )
        return [BookingViewResponse.from_view(view) for view in views]
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected dashboard listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load dashboard bookings",
        ) from exc


@router.get(
    "/bookings/my",
    response_model=list[BookingViewResponse],
    status_code=status.HTTP_200_OK,
)
async def list_my_bookings(
    caller: CallerContext = Depends(get_current_caller),
    query_service: BookingQueryService = Depends(get_query_service),
) -> list[BookingViewResponse]:
    try:
        return [BookingViewResponse.from_view(view) for view in query_service.list_mine(caller)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected my-bookings listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load bookings",
        ) from exc


@router.post(
    "/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: BookingCreateRequest,
    caller: CallerContext = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = booking_service.create_booking(
            caller,
            title=payload.title,
            room_id=payload.room_id,
            window=payload.window,
            attendees=payload.attendees,
        )
        return BookingResponse.from_domain(booking)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking",
        ) from exc


@router.put(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def edit_booking(
    booking_id: int,
    payload: BookingUpdateRequest,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> BookingResponse:
    try:
        booking = approval_service.edit_booking(
            caller,
            booking_id,
            title=payload.title,
            room_id=payload.room_id,
            window=payload.window,
            attendees=payload.attendees,
        )
        return BookingResponse.from_domain(booking)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking edit failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to edit booking",
        ) from exc


@router.post(
    "/bookings/{booking_id}/cancel",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def cancel_booking(
    booking_id: int,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> BookingResponse:
    try:
        return BookingResponse.from_domain(approval_service.cancel_booking(caller, booking_id))
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking cancellation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel booking",
        ) from exc


@router.post(
    "/bookings/recurring",
    response_model=SeriesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_recurring_booking(
    payload: RecurringBookingCreateRequest,
    caller: CallerContext = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> SeriesResponse:
    try:
        series = booking_service.create_recurring_series(
            caller,
            title=payload.title,
            room_id=payload.room_id,
            rule=payload.rule,
            attendees=payload.attendees,
        )
        return SeriesResponse.from_domain(series)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected recurring booking creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create recurring booking",
        ) from exc


@router.post(
    "/bookings/recurring/preview",
    response_model=list[OccurrenceResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(get_current_caller)],
)
async def preview_recurring_booking(
    payload: SeriesPreviewRequest,
    booking_service: BookingService = Depends(get_booking_service),
) -> list[OccurrenceResponse]:
    """Expand and validate every occurrence without storing anything."""
    try:
        previews = booking_service.preview_series(payload.room_id, payload.rule)
        return [OccurrenceResponse.from_preview(preview) for preview in previews]
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected recurring preview failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to preview recurring booking",
        ) from exc


@router.get(
    "/recurring-bookings/my",
    response_model=list[SeriesViewResponse],
    status_code=status.HTTP_200_OK,
)
async def list_my_series(
    caller: CallerContext = Depends(get_current_caller),
    query_service: BookingQueryService = Depends(get_query_service),
) -> list[SeriesViewResponse]:
    try:
        return [SeriesViewResponse.from_view(view) for view in query_service.list_my_series(caller)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected series listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load recurring bookings",
        ) from exc


@router.post(
    "/recurring-bookings/{series_id}/cancel",
    response_model=SeriesCancelResponse,
    status_code=status.HTTP_200_OK,
)
async def cancel_recurring_booking(
    series_id: int,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> SeriesCancelResponse:
    try:
        result = approval_service.cancel_series(caller, series_id)
        return SeriesCancelResponse(
            series=SeriesResponse.from_domain(result.series),
            canceled_bookings=result.canceled_bookings,
        )
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected series cancellation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel recurring booking",
        ) from exc
