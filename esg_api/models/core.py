"""Core models: User, AuditLog."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Delete, ForeignKey, Index, String, Text, Update, Uuid, event, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, mapped_column

from esg_api.core.database import Base
from esg_api.core.errors import AuditLogImmutableError
from esg_api.models.base import BaseModel, ModelMixin, utcnow
from esg_api.models.enums import UserRole


class User(BaseModel):
    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_email", "email", unique=True),
        Index("ix_users_organization_role", "organization", "role"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(nullable=False, default=UserRole.ESG_ANALYST)
    organization: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, server_default="true", nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column()
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role.value})>"


class AuditLog(Base, ModelMixin):
    """Append-only audit log. No updated_at; updates and deletes are refused."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_performed_by", "performed_by"),
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
        Index("ix_audit_logs_action", "action"),
        Index("ix_audit_logs_timestamp", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    # No FK: audit rows must outlive the users they mention
    performed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    resource_type: Mapped[str] = mapped_column(String(32), nullable=False)
    resource_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    details: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)
    success: Mapped[bool] = mapped_column(default=True, server_default="true", nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action!r}, resource_type={self.resource_type!r})>"


@event.listens_for(AuditLog, "before_update")
def _refuse_audit_update(mapper, connection, target: AuditLog) -> None:
    raise AuditLogImmutableError("Audit logs cannot be modified")


@event.listens_for(AuditLog, "before_delete")
def _refuse_audit_delete(mapper, connection, target: AuditLog) -> None:
    raise AuditLogImmutableError("Audit logs cannot be deleted")


@event.listens_for(Engine, "before_execute")
def _refuse_audit_bulk_dml(conn, clauseelement, multiparams, params, execution_options) -> None:
    # Bulk and Core statements skip the mapper hooks above
    if isinstance(clauseelement, (Update, Delete)) and clauseelement.table.name == AuditLog.__tablename__:
        raise AuditLogImmutableError("Audit logs are append-only")
