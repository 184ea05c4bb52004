"""Audit trail: append-only record of state-changing actions.

Writes happen in fire-and-forget tasks with their own DB session, decoupled
from the request lifecycle. A failed write is logged and never propagated to
the operation that triggered it.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import structlog
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import Request

from esg_api.models.core import AuditLog
from esg_api.models.enums import AuditAction, AuditResourceType

logger = structlog.get_logger()


def client_info(request: Request | None) -> tuple[str | None, str | None]:
    """Client IP (first X-Forwarded-For hop when proxied) and user agent."""
    if request is None:
        return None, None
    ip_address = request.headers.get("x-forwarded-for")
    if ip_address:
        ip_address = ip_address.split(",")[0].strip()
    elif request.client:
        ip_address = request.client.host
    user_agent = request.headers.get("user-agent", "")[:500] or None
    return ip_address, user_agent


class AuditTrail:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._pending: set[asyncio.Task[None]] = set()

    def record(
        self,
        action: AuditAction,
        resource_type: AuditResourceType,
        *,
        performed_by: uuid.UUID | None = None,
        resource_id: uuid.UUID | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
        error_message: str | None = None,
        request: Request | None = None,
    ) -> asyncio.Task[None]:
        """Schedule an audit write and return immediately."""
        ip_address, user_agent = client_info(request)
        task = asyncio.create_task(
            self.write(
                action,
                resource_type,
                performed_by=performed_by,
                resource_id=resource_id,
                details=details,
                success=success,
                error_message=error_message,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def write(
        self,
        action: AuditAction,
        resource_type: AuditResourceType,
        *,
        performed_by: uuid.UUID | None = None,
        resource_id: uuid.UUID | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
        error_message: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        try:
            async with self._session_factory() as session:
                session.add(
                    AuditLog(
                        action=AuditAction(action).value,
                        performed_by=performed_by,
                        resource_type=AuditResourceType(resource_type).value,
                        resource_id=resource_id,
                        details=jsonable_encoder(details or {}),
                        success=success,
                        error_message=error_message,
                        ip_address=ip_address,
                        user_agent=user_agent,
                    )
                )
                await session.commit()
        except Exception:
            logger.exception(
                "audit_log_write_failed",
                action=str(action),
                resource_id=str(resource_id) if resource_id else None,
            )

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


def get_audit_trail(request: Request) -> AuditTrail:
    """FastAPI dependency: the trail the application was built with."""
    return request.app.state.audit_trail
