"""Read-only audit log API for administrators and auditors."""

import math
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.auth.dependencies import require_permission
from esg_api.auth.rbac import Action, Resource
from esg_api.core.config import settings
from esg_api.core.database import get_db
from esg_api.models.base import to_naive_utc
from esg_api.models.core import AuditLog
from esg_api.models.enums import AuditAction, AuditResourceType
from esg_api.modules.audit.schemas import AuditLogListResponse, AuditLogResponse
from esg_api.schemas.auth import CurrentUser

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    performed_by: uuid.UUID | None = Query(None),
    action: AuditAction | None = Query(None),
    resource_type: AuditResourceType | None = Query(None),
    start: datetime | None = Query(None, description="Earliest timestamp (inclusive)"),
    end: datetime | None = Query(None, description="Latest timestamp (inclusive)"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(require_permission(Action.VIEW, Resource.AUDIT_LOG)),
    db: AsyncSession = Depends(get_db),
):
    """Audit entries, newest first."""
    stmt = select(AuditLog)
    if performed_by is not None:
        stmt = stmt.where(AuditLog.performed_by == performed_by)
    if action is not None:
        stmt = stmt.where(AuditLog.action == action.value)
    if resource_type is not None:
        stmt = stmt.where(AuditLog.resource_type == resource_type.value)
    if start is not None:
        stmt = stmt.where(AuditLog.timestamp >= to_naive_utc(start))
    if end is not None:
        stmt = stmt.where(AuditLog.timestamp <= to_naive_utc(end))

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(
        stmt.order_by(AuditLog.timestamp.desc()).offset((page - 1) * page_size).limit(page_size)
    )
    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(a) for a in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total > 0 else 0,
    )
