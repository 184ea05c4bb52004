"""Generated ESG reports."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from esg_api.models.base import BaseModel
from esg_api.models.enums import ReportStatus, ReportType


class Report(BaseModel):
    """Point-in-time aggregation of approved records; values never recomputed."""

    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_organization_type", "organization", "report_type"),
        Index("ix_reports_period_year", "period_year"),
        Index("ix_reports_status", "status"),
    )

    report_title: Mapped[str] = mapped_column(String(200), nullable=False)
    organization: Mapped[str] = mapped_column(String(200), nullable=False)
    report_type: Mapped[ReportType] = mapped_column(nullable=False)
    period_start: Mapped[datetime] = mapped_column(nullable=False)
    period_end: Mapped[datetime] = mapped_column(nullable=False)
    period_year: Mapped[int] = mapped_column(nullable=False)
    period_quarter: Mapped[int | None] = mapped_column()
    period_month: Mapped[int | None] = mapped_column()

    environmental_summary: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    social_summary: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    governance_summary: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    overall_score: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    # Record ids (as strings) in the order they were aggregated
    included_records: Mapped[list[str]] = mapped_column(nullable=False, default=list)

    generated_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    status: Mapped[ReportStatus] = mapped_column(default=ReportStatus.DRAFT, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    published_at: Mapped[datetime | None] = mapped_column()

    @property
    def period_duration_days(self) -> int:
        seconds = (self.period_end - self.period_start).total_seconds()
        return int(-(-seconds // 86400))

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, title={self.report_title!r}, status={self.status.value})>"
