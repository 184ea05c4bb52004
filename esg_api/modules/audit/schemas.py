"""Audit log read schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: str
    performed_by: uuid.UUID | None
    resource_type: str
    resource_id: uuid.UUID | None
    details: dict[str, Any]
    success: bool
    error_message: str | None
    ip_address: str | None
    user_agent: str | None
    timestamp: datetime


class AuditLogListResponse(BaseModel):
    items: list[AuditLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
