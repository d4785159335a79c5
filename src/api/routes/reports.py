"""Content report endpoints: member reports and the manager review queue."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_current_actor, get_report_service
from src.api.models import (
    ErrorResponse,
    ReportListResponse,
    ReportRequest,
    ReportResponse,
    ReportStatsResponse,
    ReportStatusRequest,
)
from src.lifecycle.reports import ReportService
from src.models.schemas import Actor, ReportStatus

router = APIRouter(prefix="/reports", tags=["Reports"])

_REVIEW_ERRORS = {
    403: {"model": ErrorResponse, "description": "Manager role required"},
}


@router.post(
    "",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report an item",
    responses={
        404: {"model": ErrorResponse, "description": "Item not found"},
        409: {"model": ErrorResponse, "description": "Already reported and still pending"},
    },
)
async def report_item(
    request: ReportRequest,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    report = await service.report(actor, request.item_id, request.reason, request.description)
    return ReportResponse.from_report(report)


@router.get(
    "",
    response_model=ReportListResponse,
    summary="List reports",
    responses=_REVIEW_ERRORS,
)
async def list_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
) -> ReportListResponse:
    reports = await service.list_reports(actor, status_filter)
    return ReportListResponse(
        reports=[ReportResponse.from_report(r) for r in reports],
        total=len(reports),
    )


@router.get(
    "/stats",
    response_model=ReportStatsResponse,
    summary="Report counts by status and reason",
    responses=_REVIEW_ERRORS,
)
async def report_stats(
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
) -> ReportStatsResponse:
    return ReportStatsResponse.from_stats(await service.stats(actor))


@router.put(
    "/{report_id}/status",
    response_model=ReportResponse,
    summary="Mark a report reviewed, resolved or dismissed",
    responses={
        **_REVIEW_ERRORS,
        400: {"model": ErrorResponse, "description": "Status cannot be pending"},
        404: {"model": ErrorResponse, "description": "Report not found"},
    },
)
async def set_report_status(
    report_id: str,
    request: ReportStatusRequest,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
) -> ReportResponse:
    report = await service.set_status(actor, report_id, request.status, request.admin_notes)
    return ReportResponse.from_report(report)
