"""ESG records API router: CRUD and the submit/review/approve/reject workflow."""

import math
import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.auth.dependencies import ensure_allowed, require_permission
from esg_api.auth.rbac import Action, Resource
from esg_api.core.config import settings
from esg_api.core.database import get_db
from esg_api.core.errors import InvalidTransition, ResourceNotFound
from esg_api.models.enums import AuditAction, AuditResourceType, RecordStatus
from esg_api.models.esg import ESGRecord
from esg_api.modules.audit.trail import AuditTrail, get_audit_trail
from esg_api.modules.esg import service
from esg_api.modules.esg.schemas import (
    ESGRecordCreate,
    ESGRecordListResponse,
    ESGRecordResponse,
    ESGRecordUpdate,
    ReviewRequest,
)
from esg_api.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/esg", tags=["esg"])

_WORKFLOW_AUDIT_ACTIONS = {
    service.SUBMIT: AuditAction.ESG_RECORD_SUBMITTED,
    service.REVIEW: AuditAction.ESG_RECORD_REVIEWED,
    service.APPROVE: AuditAction.ESG_RECORD_APPROVED,
    service.REJECT: AuditAction.ESG_RECORD_REJECTED,
}


async def _load_authorized(
    db: AsyncSession,
    record_id: uuid.UUID,
    current_user: CurrentUser,
    action: str,
    audit: AuditTrail,
    request: Request,
    *,
    check_state: bool = False,
) -> ESGRecord:
    try:
        record = await service.get_record(db, record_id)
    except ResourceNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    ensure_allowed(
        current_user,
        action,
        Resource.ESG_RECORD,
        audit=audit,
        request=request,
        state=record.status.value if check_state else None,
        organization=record.organization,
        resource_id=record.id,
    )
    return record


# ── CRUD ──────────────────────────────────────────────────────────────────────


@router.post("", response_model=ESGRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    body: ESGRecordCreate,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.CREATE, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Create a draft record owned by the caller."""
    ensure_allowed(
        current_user, Action.CREATE, Resource.ESG_RECORD,
        audit=audit, request=request, organization=body.organization,
    )
    record = await service.create_record(db, body, submitted_by=current_user.user_id)
    await db.commit()

    audit.record(
        AuditAction.ESG_RECORD_CREATED,
        AuditResourceType.ESG_RECORD,
        performed_by=current_user.user_id,
        resource_id=record.id,
        details={"organization": record.organization, "year": record.reporting_year},
        request=request,
    )
    return service.to_response(record)


@router.get("", response_model=ESGRecordListResponse)
async def list_records(
    organization: str | None = Query(None),
    year: int | None = Query(None, ge=2000, le=2100),
    status_filter: RecordStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(require_permission(Action.VIEW, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
):
    """List records, newest first. Non-administrators only see their own organization."""
    if not current_user.is_administrator:
        organization = current_user.organization

    records, total = await service.list_records(
        db, organization=organization, year=year, status=status_filter,
        page=page, page_size=page_size,
    )
    return ESGRecordListResponse(
        items=[service.to_response(r) for r in records],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total > 0 else 0,
    )


@router.get("/{record_id}", response_model=ESGRecordResponse)
async def get_record(
    record_id: uuid.UUID,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.VIEW, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    record = await _load_authorized(db, record_id, current_user, Action.VIEW, audit, request)
    return service.to_response(record)


@router.put("/{record_id}", response_model=ESGRecordResponse)
async def update_record(
    record_id: uuid.UUID,
    body: ESGRecordUpdate,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.EDIT, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Partially update a record. Approved records are editable by administrators only."""
    record = await _load_authorized(
        db, record_id, current_user, Action.EDIT, audit, request, check_state=True
    )
    touched = await service.update_record(db, record, body)
    await db.commit()

    audit.record(
        AuditAction.ESG_RECORD_UPDATED,
        AuditResourceType.ESG_RECORD,
        performed_by=current_user.user_id,
        resource_id=record.id,
        details={"updated_sections": touched, "status": record.status.value},
        request=request,
    )
    return service.to_response(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: uuid.UUID,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.DELETE, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    record = await _load_authorized(
        db, record_id, current_user, Action.DELETE, audit, request, check_state=True
    )
    details = {"organization": record.organization, "status": record.status.value}
    await service.delete_record(db, record)
    await db.commit()

    audit.record(
        AuditAction.ESG_RECORD_DELETED,
        AuditResourceType.ESG_RECORD,
        performed_by=current_user.user_id,
        resource_id=record_id,
        details=details,
        request=request,
    )


# ── Workflow ──────────────────────────────────────────────────────────────────


async def _run_transition(
    action: str,
    record_id: uuid.UUID,
    review_notes: str | None,
    request: Request,
    current_user: CurrentUser,
    db: AsyncSession,
    audit: AuditTrail,
) -> ESGRecordResponse:
    record = await _load_authorized(db, record_id, current_user, action, audit, request)
    try:
        previous = service.apply_transition(record, action, current_user.user_id, review_notes)
    except InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    await db.commit()

    logger.info(
        "esg_record_transition",
        record_id=str(record.id),
        action=action,
        from_status=previous.value,
        to_status=record.status.value,
    )
    audit.record(
        _WORKFLOW_AUDIT_ACTIONS[action],
        AuditResourceType.ESG_RECORD,
        performed_by=current_user.user_id,
        resource_id=record.id,
        details={
            "from_status": previous.value,
            "to_status": record.status.value,
            "review_notes": review_notes,
        },
        request=request,
    )
    return service.to_response(record)


@router.post("/{record_id}/submit", response_model=ESGRecordResponse)
async def submit_record(
    record_id: uuid.UUID,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Action.SUBMIT, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """draft -> submitted."""
    return await _run_transition(service.SUBMIT, record_id, None, request, current_user, db, audit)


@router.post("/{record_id}/review", response_model=ESGRecordResponse)
async def review_record(
    record_id: uuid.UUID,
    request: Request,
    body: ReviewRequest | None = None,
    current_user: CurrentUser = Depends(require_permission(Action.REVIEW, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """submitted -> under_review."""
    notes = body.review_notes if body else None
    return await _run_transition(service.REVIEW, record_id, notes, request, current_user, db, audit)


@router.post("/{record_id}/approve", response_model=ESGRecordResponse)
async def approve_record(
    record_id: uuid.UUID,
    request: Request,
    body: ReviewRequest | None = None,
    current_user: CurrentUser = Depends(require_permission(Action.APPROVE, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """submitted | under_review -> approved."""
    notes = body.review_notes if body else None
    return await _run_transition(service.APPROVE, record_id, notes, request, current_user, db, audit)


@router.post("/{record_id}/reject", response_model=ESGRecordResponse)
async def reject_record(
    record_id: uuid.UUID,
    request: Request,
    body: ReviewRequest | None = None,
    current_user: CurrentUser = Depends(require_permission(Action.REJECT, Resource.ESG_RECORD)),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """submitted | under_review -> rejected."""
    notes = body.review_notes if body else None
    return await _run_transition(service.REJECT, record_id, notes, request, current_user, db, audit)
