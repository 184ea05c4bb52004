"""Reports API router: generation, listing, statistics, status changes."""

import math
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.auth.dependencies import ensure_allowed, require_permission
from esg_api.auth.rbac import Action, Resource
from esg_api.core.config import settings
from esg_api.core.database import get_db
from esg_api.core.errors import (
    InvalidPeriodSpec,
    InvalidTransition,
    NoEligibleRecords,
    PersistenceFailure,
    ResourceNotFound,
)
from esg_api.models.enums import ReportStatus, ReportType
from esg_api.models.reporting import Report
from esg_api.modules.audit.trail import AuditTrail, get_audit_trail
from esg_api.modules.reporting import service
from esg_api.modules.reporting.engine import ESGAggregationEngine
from esg_api.modules.reporting.schemas import (
    ReportGenerateRequest,
    ReportListResponse,
    ReportResponse,
    ReportStatistics,
    ReportStatusUpdate,
)
from esg_api.modules.reporting.service import ReportBuilder
from esg_api.schemas.auth import CurrentUser

router = APIRouter(prefix="/reports", tags=["reports"])


def get_report_builder(
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
) -> ReportBuilder:
    return ReportBuilder(db, ESGAggregationEngine(), audit)


async def _load_authorized(
    db: AsyncSession,
    report_id: uuid.UUID,
    current_user: CurrentUser,
    action: str,
    audit: AuditTrail,
    request: Request,
) -> Report:
    try:
        report = await service.get_report(db, report_id)
    except ResourceNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    ensure_allowed(
        current_user,
        action,
        Resource.REPORT,
        audit=audit,
        request=request,
        organization=report.organization,
        resource_id=report.id,
    )
    return report


@router.post("/generate", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_report(
    body: ReportGenerateRequest,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.GENERATE, Resource.REPORT)),
    builder: ReportBuilder = Depends(get_report_builder),
):
    """Aggregate the approved records of a period into a new draft report."""
    ensure_allowed(
        current_user, Action.GENERATE, Resource.REPORT,
        audit=builder.audit, request=request, organization=body.organization,
    )
    try:
        report = await builder.generate(body, current_user.user_id, request=request)
    except (InvalidPeriodSpec, NoEligibleRecords) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except PersistenceFailure as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return ReportResponse.model_validate(report)


@router.get("", response_model=ReportListResponse)
async def list_reports(
    organization: str | None = Query(None),
    report_type: ReportType | None = Query(None),
    year: int | None = Query(None, ge=2000, le=2100),
    status_filter: ReportStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(require_permission(Action.VIEW, Resource.REPORT)),
    db: AsyncSession = Depends(get_db),
):
    if not current_user.is_administrator:
        organization = current_user.organization

    reports, total = await service.list_reports(
        db, organization=organization, report_type=report_type, year=year,
        status=status_filter, page=page, page_size=page_size,
    )
    return ReportListResponse(
        items=[ReportResponse.model_validate(r) for r in reports],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total > 0 else 0,
    )


@router.get("/statistics", response_model=ReportStatistics)
async def report_statistics(
    organization: str | None = Query(None),
    current_user: CurrentUser = Depends(require_permission(Action.VIEW, Resource.REPORT)),
    db: AsyncSession = Depends(get_db),
):
    """Counts of reports overall, by status and by type."""
    if not current_user.is_administrator:
        organization = current_user.organization
    return await service.get_statistics(db, organization)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: uuid.UUID,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.VIEW, Resource.REPORT)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    report = await _load_authorized(db, report_id, current_user, Action.VIEW, audit, request)
    return ReportResponse.model_validate(report)


@router.put("/{report_id}/status", response_model=ReportResponse)
async def update_report_status(
    report_id: uuid.UUID,
    body: ReportStatusUpdate,
    request: Request,
    current_user: CurrentUser = Depends(
        require_permission(Action.UPDATE_STATUS, Resource.REPORT)
    ),
    builder: ReportBuilder = Depends(get_report_builder),
):
    report = await _load_authorized(
        builder.db, report_id, current_user, Action.UPDATE_STATUS, builder.audit, request
    )
    try:
        report = await builder.update_status(
            report, body.status, current_user.user_id, notes=body.notes, request=request
        )
    except InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except PersistenceFailure as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return ReportResponse.model_validate(report)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: uuid.UUID,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.DELETE, Resource.REPORT)),
    builder: ReportBuilder = Depends(get_report_builder),
):
    report = await _load_authorized(
        builder.db, report_id, current_user, Action.DELETE, builder.audit, request
    )
    try:
        await builder.delete(report, current_user.user_id, request=request)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
