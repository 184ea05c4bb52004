"""Administrator user management API router."""

import math
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.auth.dependencies import require_permission
from esg_api.auth.rbac import Action, Resource
from esg_api.core.config import settings
from esg_api.core.database import get_db
from esg_api.core.errors import ResourceNotFound
from esg_api.models.enums import AuditAction, AuditResourceType, UserRole
from esg_api.modules.audit.trail import AuditTrail, get_audit_trail
from esg_api.modules.users import service
from esg_api.modules.users.schemas import UserCreateRequest, UserListResponse, UserUpdateRequest
from esg_api.schemas.auth import CurrentUser, UserResponse

router = APIRouter(prefix="/users", tags=["users"])

_manage_users = require_permission(Action.MANAGE, Resource.USER)


@router.get("", response_model=UserListResponse)
async def list_users(
    role: UserRole | None = Query(None),
    organization: str | None = Query(None),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(_manage_users),
    db: AsyncSession = Depends(get_db),
):
    users, total = await service.list_users(
        db, role=role, organization=organization, is_active=is_active,
        page=page, page_size=page_size,
    )
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total > 0 else 0,
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest,
    request: Request,
    current_user: CurrentUser = Depends(_manage_users),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        user = await service.create_user(db, body, created_by=current_user.user_id)
    except service.DuplicateEmail as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    await db.commit()

    audit.record(
        AuditAction.USER_CREATED,
        AuditResourceType.USER,
        performed_by=current_user.user_id,
        resource_id=user.id,
        details={"email": user.email, "role": user.role.value},
        request=request,
    )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    current_user: CurrentUser = Depends(_manage_users),
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await service.get_user(db, user_id)
    except ResourceNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdateRequest,
    request: Request,
    current_user: CurrentUser = Depends(_manage_users),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    try:
        user = await service.get_user(db, user_id)
    except ResourceNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    changed = await service.update_user(db, user, body)
    await db.commit()

    audit.record(
        AuditAction.USER_UPDATED,
        AuditResourceType.USER,
        performed_by=current_user.user_id,
        resource_id=user.id,
        details={"changed_fields": changed},
        request=request,
    )
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    request: Request,
    current_user: CurrentUser = Depends(_manage_users),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    if user_id == current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    try:
        user = await service.get_user(db, user_id)
    except ResourceNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    email = user.email
    await service.delete_user(db, user)
    await db.commit()

    audit.record(
        AuditAction.USER_DELETED,
        AuditResourceType.USER,
        performed_by=current_user.user_id,
        resource_id=user_id,
        details={"email": email},
        request=request,
    )
