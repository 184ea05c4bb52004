"""Auth API router: register, login, logout, profile, permissions."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.auth.dependencies import get_current_user, get_db_user
from esg_api.auth.rbac import get_permissions_for_role
from esg_api.core.database import get_db
from esg_api.core.security import create_access_token, verify_password
from esg_api.models.base import utcnow
from esg_api.models.core import User
from esg_api.models.enums import AuditAction, AuditResourceType
from esg_api.modules.audit.trail import AuditTrail, get_audit_trail
from esg_api.modules.users import service as user_service
from esg_api.modules.users.schemas import UserCreateRequest
from esg_api.schemas.auth import (
    CurrentUser,
    LoginRequest,
    PermissionMatrixResponse,
    RegisterRequest,
    TokenResponse,
    UpdateProfileRequest,
    UserResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Create an account and return a bearer token for it."""
    try:
        user = await user_service.create_user(db, UserCreateRequest(**body.model_dump()))
    except user_service.DuplicateEmail as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    await db.commit()

    audit.record(
        AuditAction.USER_CREATED,
        AuditResourceType.USER,
        performed_by=user.id,
        resource_id=user.id,
        details={"email": user.email, "role": user.role.value, "self_registered": True},
        request=request,
    )
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Exchange email + password for a bearer token. Every attempt is audited."""
    user = await user_service.get_user_by_email(db, body.email)

    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("login_failed", reason="invalid_credentials")
        audit.record(
            AuditAction.USER_LOGIN,
            AuditResourceType.USER,
            performed_by=user.id if user else None,
            resource_id=user.id if user else None,
            details={"email": body.email},
            success=False,
            error_message="Invalid credentials",
            request=request,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        audit.record(
            AuditAction.USER_LOGIN,
            AuditResourceType.USER,
            performed_by=user.id,
            resource_id=user.id,
            details={"email": body.email},
            success=False,
            error_message="Account is inactive",
            request=request,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive. Please contact an administrator.",
        )

    user.last_login_at = utcnow()
    await db.commit()

    audit.record(
        AuditAction.USER_LOGIN,
        AuditResourceType.USER,
        performed_by=user.id,
        resource_id=user.id,
        details={"email": user.email},
        request=request,
    )
    logger.info("login_succeeded", user_id=str(user.id))
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/logout")
async def logout(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Tokens are stateless; logout only leaves an audit entry."""
    audit.record(
        AuditAction.USER_LOGOUT,
        AuditResourceType.USER,
        performed_by=current_user.user_id,
        resource_id=current_user.user_id,
        request=request,
    )
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_db_user)):
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    body: UpdateProfileRequest,
    request: Request,
    user: User = Depends(get_db_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditTrail = Depends(get_audit_trail),
):
    """Update the caller's name and/or organization."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()

    audit.record(
        AuditAction.USER_UPDATED,
        AuditResourceType.USER,
        performed_by=user.id,
        resource_id=user.id,
        details={"changed_fields": sorted(changes)},
        request=request,
    )
    return UserResponse.model_validate(user)


@router.get("/permissions", response_model=PermissionMatrixResponse)
async def get_permissions(
    current_user: CurrentUser = Depends(get_current_user),
):
    """Return the current user's permission matrix."""
    return PermissionMatrixResponse(
        role=current_user.role,
        permissions=get_permissions_for_role(current_user.role),
    )
