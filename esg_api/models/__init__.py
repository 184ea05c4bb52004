"""SQLAlchemy models package: import all models so Base.metadata is populated."""

from esg_api.models.base import BaseModel, ModelMixin, utcnow
from esg_api.models.core import AuditLog, User
from esg_api.models.enums import (
    AuditAction,
    AuditFrequency,
    AuditResourceType,
    ComplianceStatus,
    RecordStatus,
    ReportStatus,
    ReportType,
    UserRole,
)
from esg_api.models.esg import ESGRecord
from esg_api.models.reporting import Report

__all__ = [
    "AuditAction",
    "AuditFrequency",
    "AuditLog",
    "AuditResourceType",
    "BaseModel",
    "ComplianceStatus",
    "ESGRecord",
    "ModelMixin",
    "RecordStatus",
    "Report",
    "ReportStatus",
    "ReportType",
    "User",
    "UserRole",
    "utcnow",
]
