"""Report Builder schemas: aggregation summaries, scores, request/response models."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from esg_api.models.enums import ReportStatus, ReportType


# ── Aggregation results ──────────────────────────────────────────────────────


class EnvironmentalSummary(BaseModel):
    total_scope1_emissions: float = 0.0
    total_scope2_emissions: float = 0.0
    total_scope3_emissions: float = 0.0
    total_carbon_emissions: float = 0.0
    average_renewable_energy_percentage: float = 0.0
    total_energy_consumption: float = 0.0
    total_water_usage: float = 0.0
    waste_recycling_rate: float = 0.0


class SocialSummary(BaseModel):
    average_diversity_ratio: float = 0.0
    total_health_and_safety_incidents: int = 0
    average_training_hours: float = 0.0
    average_turnover_rate: float = 0.0
    total_community_investment: float = 0.0
    average_female_employees_percentage: float = 0.0


class GovernanceSummary(BaseModel):
    average_board_independence: float = 0.0
    compliance_rate: float = 0.0
    total_whistleblower_cases: int = 0
    total_data_breaches: int = 0
    average_female_directors_percentage: float = 0.0


class OverallScore(BaseModel):
    environmental_score: float = Field(0.0, ge=0, le=100)
    social_score: float = Field(0.0, ge=0, le=100)
    governance_score: float = Field(0.0, ge=0, le=100)
    total_score: float = Field(0.0, ge=0, le=100)


# ── Requests ─────────────────────────────────────────────────────────────────


class ReportGenerateRequest(BaseModel):
    report_title: str = Field(..., min_length=1, max_length=200)
    organization: str = Field(..., min_length=1, max_length=200)
    report_type: ReportType
    year: int = Field(..., ge=2000, le=2100)
    quarter: int | None = Field(None, ge=1, le=4)
    month: int | None = Field(None, ge=1, le=12)
    start_date: datetime | None = None
    end_date: datetime | None = None


class ReportStatusUpdate(BaseModel):
    status: ReportStatus
    notes: str | None = Field(None, max_length=2000)


# ── Responses ────────────────────────────────────────────────────────────────


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    report_title: str
    organization: str
    report_type: ReportType
    period_start: datetime
    period_end: datetime
    period_year: int
    period_quarter: int | None
    period_month: int | None
    period_duration_days: int
    environmental_summary: EnvironmentalSummary
    social_summary: SocialSummary
    governance_summary: GovernanceSummary
    overall_score: OverallScore
    included_records: list[uuid.UUID]
    generated_by: uuid.UUID | None
    status: ReportStatus
    notes: str | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ReportListResponse(BaseModel):
    items: list[ReportResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ReportStatistics(BaseModel):
    total_reports: int
    published_reports: int
    draft_reports: int
    reports_by_type: dict[str, int]
