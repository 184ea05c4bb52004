"""FastAPI auth dependencies: get_current_user, require_permission, ensure_allowed."""

import uuid

import sentry_sdk
import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.auth.rbac import Resource, check_permission
from esg_api.core.database import get_db
from esg_api.core.security import decode_access_token
from esg_api.models.core import User
from esg_api.models.enums import AuditAction, AuditResourceType
from esg_api.modules.audit.trail import AuditTrail, get_audit_trail
from esg_api.schemas.auth import CurrentUser

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)

_AUDIT_RESOURCE_TYPES = {
    Resource.ESG_RECORD: AuditResourceType.ESG_RECORD,
    Resource.REPORT: AuditResourceType.REPORT,
    Resource.USER: AuditResourceType.USER,
}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    Verify the HS256 bearer token and resolve the active user it names.

    The token's `sub` claim is the internal user id.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = uuid.UUID(str(payload.get("sub")))
    except (JWTError, ValueError) as e:
        logger.warning("jwt_verification_failed", error=str(e))
        raise _unauthorized("Invalid or expired token") from e

    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("user_not_found_for_token", user_id=str(user_id))
        raise _unauthorized("User not found or inactive")

    sentry_sdk.set_user({"id": str(user.id)})
    sentry_sdk.set_tag("user_role", user.role.value)

    return CurrentUser(
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        organization=user.organization,
    )


def ensure_allowed(
    current_user: CurrentUser,
    action: str,
    resource_type: str,
    *,
    audit: AuditTrail,
    request: Request | None = None,
    state: str | None = None,
    organization: str | None = None,
    resource_id: uuid.UUID | None = None,
) -> None:
    """Evaluate the policy table (and organization scope) or raise 403.

    Non-administrators may only act on resources of their own organization.
    Every denial is audited as UNAUTHORIZED_ACCESS_ATTEMPT.
    """
    allowed = check_permission(current_user.role, action, resource_type, state)
    if allowed and organization is not None and not current_user.is_administrator:
        allowed = organization == current_user.organization
    if allowed:
        return

    logger.warning(
        "permission_denied",
        user_id=str(current_user.user_id),
        role=current_user.role.value,
        action=action,
        resource_type=resource_type,
        state=str(state) if state is not None else None,
    )
    audit.record(
        AuditAction.UNAUTHORIZED_ACCESS_ATTEMPT,
        _AUDIT_RESOURCE_TYPES.get(resource_type, AuditResourceType.SYSTEM),
        performed_by=current_user.user_id,
        resource_id=resource_id,
        details={
            "action": action,
            "resource": resource_type,
            "state": state,
            "role": current_user.role.value,
        },
        success=False,
        error_message="Permission denied",
        request=request,
    )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Permission denied: {action} on {resource_type}",
    )


def require_permission(action: str, resource_type: str):
    """
    Dependency factory: checks that the role may perform ``action`` on
    ``resource_type`` in at least one state.

    Usage:
        @router.post("/esg", dependencies=[Depends(require_permission("create", "esg_record"))])
    """

    async def _check_perm(
        request: Request,
        current_user: CurrentUser = Depends(get_current_user),
        audit: AuditTrail = Depends(get_audit_trail),
    ) -> CurrentUser:
        ensure_allowed(current_user, action, resource_type, audit=audit, request=request)
        return current_user

    return _check_perm


async def get_db_user(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the full SQLAlchemy User model. Use when you need the complete record."""
    result = await db.execute(select(User).where(User.id == current_user.user_id))
    return result.scalar_one()
