"""ESG record schemas: per-domain payloads, patches and responses."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from esg_api.models.enums import AuditFrequency, ComplianceStatus, RecordStatus

Percentage = Annotated[float, Field(ge=0, le=100)]
NonNegative = Annotated[float, Field(ge=0)]
Count = Annotated[int, Field(ge=0)]


# ── Reporting period ─────────────────────────────────────────────────────────


class ReportingPeriod(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    quarter: int | None = Field(None, ge=1, le=4)
    month: int | None = Field(None, ge=1, le=12)


class ReportingPeriodPatch(BaseModel):
    year: int | None = Field(None, ge=2000, le=2100)
    quarter: int | None = Field(None, ge=1, le=4)
    month: int | None = Field(None, ge=1, le=12)


# ── Domain payloads (create) ─────────────────────────────────────────────────


class EnvironmentalData(BaseModel):
    scope1_emissions: NonNegative = 0.0
    scope2_emissions: NonNegative = 0.0
    scope3_emissions: NonNegative = 0.0
    energy_consumption: NonNegative = 0.0
    renewable_energy_percentage: Percentage = 0.0
    water_usage: NonNegative = 0.0
    waste_generated: NonNegative = 0.0
    waste_recycled: NonNegative = 0.0


class SocialData(BaseModel):
    total_employees: Count = 0
    diversity_ratio: Percentage = 0.0
    female_employees_percentage: Percentage = 0.0
    health_and_safety_incidents: Count = 0
    training_hours_per_employee: NonNegative = 0.0
    employee_turnover_rate: Percentage = 0.0
    community_investment: NonNegative = 0.0


class GovernanceData(BaseModel):
    board_independence: Percentage = 0.0
    female_directors_percentage: Percentage = 0.0
    compliance_status: ComplianceStatus = ComplianceStatus.UNDER_REVIEW
    ethics_policy_confirmed: bool = False
    whistleblower_cases: Count = 0
    data_breaches: Count = 0
    audit_frequency: AuditFrequency = AuditFrequency.ANNUAL


# ── Domain patches (partial update) ──────────────────────────────────────────


class EnvironmentalPatch(BaseModel):
    scope1_emissions: float | None = Field(None, ge=0)
    scope2_emissions: float | None = Field(None, ge=0)
    scope3_emissions: float | None = Field(None, ge=0)
    energy_consumption: float | None = Field(None, ge=0)
    renewable_energy_percentage: float | None = Field(None, ge=0, le=100)
    water_usage: float | None = Field(None, ge=0)
    waste_generated: float | None = Field(None, ge=0)
    waste_recycled: float | None = Field(None, ge=0)


class SocialPatch(BaseModel):
    total_employees: int | None = Field(None, ge=0)
    diversity_ratio: float | None = Field(None, ge=0, le=100)
    female_employees_percentage: float | None = Field(None, ge=0, le=100)
    health_and_safety_incidents: int | None = Field(None, ge=0)
    training_hours_per_employee: float | None = Field(None, ge=0)
    employee_turnover_rate: float | None = Field(None, ge=0, le=100)
    community_investment: float | None = Field(None, ge=0)


class GovernancePatch(BaseModel):
    board_independence: float | None = Field(None, ge=0, le=100)
    female_directors_percentage: float | None = Field(None, ge=0, le=100)
    compliance_status: ComplianceStatus | None = None
    ethics_policy_confirmed: bool | None = None
    whistleblower_cases: int | None = Field(None, ge=0)
    data_breaches: int | None = Field(None, ge=0)
    audit_frequency: AuditFrequency | None = None


# ── Requests ─────────────────────────────────────────────────────────────────


class ESGRecordCreate(BaseModel):
    organization: str = Field(..., min_length=1, max_length=200)
    reporting_period: ReportingPeriod
    environmental: EnvironmentalData = Field(default_factory=EnvironmentalData)
    social: SocialData = Field(default_factory=SocialData)
    governance: GovernanceData = Field(default_factory=GovernanceData)


class ESGRecordUpdate(BaseModel):
    """Partial update. Status is not patchable; use the workflow endpoints."""

    model_config = ConfigDict(extra="forbid")

    reporting_period: ReportingPeriodPatch | None = None
    environmental: EnvironmentalPatch | None = None
    social: SocialPatch | None = None
    governance: GovernancePatch | None = None
    review_notes: str | None = Field(None, max_length=1000)


class ReviewRequest(BaseModel):
    review_notes: str | None = Field(None, max_length=1000)


# ── Responses ────────────────────────────────────────────────────────────────


class EnvironmentalResponse(EnvironmentalData):
    total_carbon_emissions: float


class ESGRecordResponse(BaseModel):
    id: uuid.UUID
    organization: str
    reporting_period: ReportingPeriod
    environmental: EnvironmentalResponse
    social: SocialData
    governance: GovernanceData
    status: RecordStatus
    submitted_by: uuid.UUID | None
    reviewed_by: uuid.UUID | None
    review_notes: str | None
    submitted_at: datetime | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ESGRecordListResponse(BaseModel):
    items: list[ESGRecordResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
