"""Controller layer for admin approval, oversight and reporting endpoints."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from roombooking.controllers.dependencies import (
    get_approval_service,
    get_current_caller,
    get_query_service,
    to_http_exception,
)
from roombooking.controllers.schemas import (
    ApprovalQueueItemResponse,
    BookingResponse,
    BookingViewResponse,
    DenyRequest,
    ReportResponse,
    SeriesApprovalResponse,
    SeriesDeleteResponse,
    SeriesResponse,
)
from roombooking.domain.errors import BookingEngineError
from roombooking.domain.models import BookingStatus, CallerContext
from roombooking.services.approval_service import ApprovalWorkflowService
from roombooking.services.query_service import BookingQueryService
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _internal_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )


@router.get(
    "/approval-queue",
    response_model=list[ApprovalQueueItemResponse],
    status_code=status.HTTP_200_OK,
)
async def approval_queue(
    caller: CallerContext = Depends(get_current_caller),
    query_service: BookingQueryService = Depends(get_query_service),
) -> list[ApprovalQueueItemResponse]:
    try:
        items = query_service.list_approval_queue(caller)
        return [ApprovalQueueItemResponse.from_item(item) for item in items]
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected approval queue failure")
        raise _internal_error("Failed to load approval queue") from exc


@router.post(
    "/bookings/{booking_id}/approve",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def approve_booking(
    booking_id: int,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> BookingResponse:
    try:
        return BookingResponse.from_domain(approval_service.approve_booking(caller, booking_id))
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking approval failure")
        raise _internal_error("Failed to approve booking") from exc


@router.post(
    "/bookings/{booking_id}/deny",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def deny_booking(
    booking_id: int,
    payload: DenyRequest,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> BookingResponse:
    try:
        booking = approval_service.deny_booking(caller, booking_id, payload.reason)
        return BookingResponse.from_domain(booking)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking denial failure")
        raise _internal_error("Failed to deny booking") from exc


@router.delete(
    "/bookings/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_booking(
    booking_id: int,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> Response:
    try:
        approval_service.delete_booking(caller, booking_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking deletion failure")
        raise _internal_error("Failed to delete booking") from exc


@router.post(
    "/recurring-bookings/{series_id}/approve",
    response_model=SeriesApprovalResponse,
    status_code=status.HTTP_200_OK,
)
async def approve_series(
    series_id: int,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> SeriesApprovalResponse:
    try:
        result = approval_service.approve_series(caller, series_id)
        return SeriesApprovalResponse.from_domain(result)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected series approval failure")
        raise _internal_error("Failed to approve recurring booking") from exc


@router.post(
    "/recurring-bookings/{series_id}/deny",
    response_model=SeriesResponse,
    status_code=status.HTTP_200_OK,
)
async def deny_series(
    series_id: int,
    payload: DenyRequest,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> SeriesResponse:
    try:
        series = approval_service.deny_series(caller, series_id, payload.reason)
        return SeriesResponse.from_domain(series)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected series denial failure")
        raise _internal_error("Failed to deny recurring booking") from exc


@router.delete(
    "/recurring-bookings/{series_id}",
    response_model=SeriesDeleteResponse,
    status_code=status.HTTP_200_OK,
)
async def delete_series(
    series_id: int,
    caller: CallerContext = Depends(get_current_caller),
    approval_service: ApprovalWorkflowService = Depends(get_approval_service),
) -> SeriesDeleteResponse:
    try:
        removed = approval_service.delete_series(caller, series_id)
        return SeriesDeleteResponse(series_id=series_id, removed_bookings=removed)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected series deletion failure")
        raise _internal_error("Failed to delete recurring booking") from exc


@router.get(
    "/bookings",
    response_model=list[BookingViewResponse],
    status_code=status.HTTP_200_OK,
)
async def list_all_bookings(
    search: Optional[str] = Query(default=None, max_length=200),
    caller: CallerContext = Depends(get_current_caller),
    query_service: BookingQueryService = Depends(get_query_service),
) -> list[BookingViewResponse]:
    try:
        views = query_service.list_all(caller, search_term=search)
        return [BookingViewResponse.from_view(view) for view in views]
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected all-bookings listing failure")
        raise _internal_error("Failed to load bookings") from exc


@router.get(
    "/reports/summary",
    response_model=ReportResponse,
    status_code=status.HTTP_200_OK,
)
async def report_summary(
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    caller: CallerContext = Depends(get_current_caller),
    query_service: BookingQueryService = Depends(get_query_service),
) -> ReportResponse:
    try:
        report = query_service.report_aggregate(
            caller,
            status=booking_status,
            start_date=start_date,
            end_date=end_date,
        )
        return ReportResponse.from_report(report)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected report failure")
        raise _internal_error("Failed to build report") from exc
