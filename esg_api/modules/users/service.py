"""User management service: lookups, creation, updates, deletion."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.core.errors import ResourceNotFound
from esg_api.core.security import hash_password
from esg_api.models.core import User
from esg_api.models.enums import UserRole
from esg_api.modules.users.schemas import UserCreateRequest, UserUpdateRequest

logger = structlog.get_logger()


class DuplicateEmail(ValueError):
    pass


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise ResourceNotFound("User not found")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def list_users(
    db: AsyncSession,
    *,
    role: UserRole | None = None,
    organization: str | None = None,
    is_active: bool | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[User], int]:
    stmt = select(User)
    if role is not None:
        stmt = stmt.where(User.role == role)
    if organization:
        stmt = stmt.where(User.organization == organization)
    if is_active is not None:
        stmt = stmt.where(User.is_active.is_(is_active))

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(
        stmt.order_by(User.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    )
    return list(result.scalars().all()), total


async def create_user(
    db: AsyncSession,
    body: UserCreateRequest,
    created_by: uuid.UUID | None = None,
) -> User:
    if await get_user_by_email(db, body.email) is not None:
        raise DuplicateEmail("User with this email already exists")

    user = User(
        name=body.name,
        email=body.email.lower(),
        password_hash=hash_password(body.password),
        role=body.role,
        organization=body.organization,
        created_by=created_by,
    )
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=str(user.id), role=user.role.value)
    return user


async def update_user(db: AsyncSession, user: User, body: UserUpdateRequest) -> list[str]:
    """Apply the set fields of ``body``; returns the names of changed fields."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    password = changes.pop("password", None)
    for field, value in changes.items():
        setattr(user, field, value)
    if password is not None:
        user.password_hash = hash_password(password)
        changes["password"] = "***"
    await db.flush()
    return sorted(changes)


async def delete_user(db: AsyncSession, user: User) -> None:
    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=str(user.id))
