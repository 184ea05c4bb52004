"""String enums shared by models, schemas and the policy table."""

import enum


# ── Users ────────────────────────────────────────────────────────────────────


class UserRole(str, enum.Enum):
    ADMINISTRATOR = "administrator"
    ESG_ANALYST = "esg_analyst"
    AUDITOR = "auditor"


# ── ESG records ──────────────────────────────────────────────────────────────


class RecordStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class ComplianceStatus(str, enum.Enum):
    COMPLIANT = "compliant"
    PARTIALLY_COMPLIANT = "partially_compliant"
    NON_COMPLIANT = "non_compliant"
    UNDER_REVIEW = "under_review"


class AuditFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ANNUAL = "annual"


# ── Reports ──────────────────────────────────────────────────────────────────


class ReportType(str, enum.Enum):
    ANNUAL = "annual"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class ReportStatus(str, enum.Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# ── Audit ────────────────────────────────────────────────────────────────────


class AuditAction(str, enum.Enum):
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    ESG_RECORD_CREATED = "ESG_RECORD_CREATED"
    ESG_RECORD_UPDATED = "ESG_RECORD_UPDATED"
    ESG_RECORD_DELETED = "ESG_RECORD_DELETED"
    ESG_RECORD_SUBMITTED = "ESG_RECORD_SUBMITTED"
    ESG_RECORD_REVIEWED = "ESG_RECORD_REVIEWED"
    ESG_RECORD_APPROVED = "ESG_RECORD_APPROVED"
    ESG_RECORD_REJECTED = "ESG_RECORD_REJECTED"
    REPORT_GENERATED = "REPORT_GENERATED"
    REPORT_STATUS_CHANGED = "REPORT_STATUS_CHANGED"
    REPORT_PUBLISHED = "REPORT_PUBLISHED"
    REPORT_DELETED = "REPORT_DELETED"
    UNAUTHORIZED_ACCESS_ATTEMPT = "UNAUTHORIZED_ACCESS_ATTEMPT"


class AuditResourceType(str, enum.Enum):
    USER = "User"
    ESG_RECORD = "ESGRecord"
    REPORT = "Report"
    SYSTEM = "System"
