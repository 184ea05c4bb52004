"""ESG disclosure records."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text, Uuid, event
from sqlalchemy.orm import Mapped, mapped_column

from esg_api.models.base import BaseModel
from esg_api.models.enums import AuditFrequency, ComplianceStatus, RecordStatus


class ESGRecord(BaseModel):
    """One organization's disclosed metrics for one reporting period."""

    __tablename__ = "esg_records"
    __table_args__ = (
        Index("ix_esg_records_organization", "organization"),
        Index("ix_esg_records_org_period", "organization", "reporting_year", "reporting_quarter"),
        Index("ix_esg_records_status_created", "status", "created_at"),
    )

    organization: Mapped[str] = mapped_column(String(200), nullable=False)
    reporting_year: Mapped[int] = mapped_column(nullable=False)
    reporting_quarter: Mapped[int | None] = mapped_column()
    reporting_month: Mapped[int | None] = mapped_column()

    # Environmental
    scope1_emissions: Mapped[float] = mapped_column(default=0.0, nullable=False)
    scope2_emissions: Mapped[float] = mapped_column(default=0.0, nullable=False)
    scope3_emissions: Mapped[float] = mapped_column(default=0.0, nullable=False)
    total_carbon_emissions: Mapped[float] = mapped_column(default=0.0, nullable=False)
    energy_consumption: Mapped[float] = mapped_column(default=0.0, nullable=False)
    renewable_energy_percentage: Mapped[float] = mapped_column(default=0.0, nullable=False)
    water_usage: Mapped[float] = mapped_column(default=0.0, nullable=False)
    waste_generated: Mapped[float] = mapped_column(default=0.0, nullable=False)
    waste_recycled: Mapped[float] = mapped_column(default=0.0, nullable=False)

    # Social
    total_employees: Mapped[int] = mapped_column(default=0, nullable=False)
    diversity_ratio: Mapped[float] = mapped_column(default=0.0, nullable=False)
    female_employees_percentage: Mapped[float] = mapped_column(default=0.0, nullable=False)
    health_and_safety_incidents: Mapped[int] = mapped_column(default=0, nullable=False)
    training_hours_per_employee: Mapped[float] = mapped_column(default=0.0, nullable=False)
    employee_turnover_rate: Mapped[float] = mapped_column(default=0.0, nullable=False)
    community_investment: Mapped[float] = mapped_column(default=0.0, nullable=False)

    # Governance
    board_independence: Mapped[float] = mapped_column(default=0.0, nullable=False)
    female_directors_percentage: Mapped[float] = mapped_column(default=0.0, nullable=False)
    compliance_status: Mapped[ComplianceStatus] = mapped_column(
        default=ComplianceStatus.UNDER_REVIEW, nullable=False
    )
    ethics_policy_confirmed: Mapped[bool] = mapped_column(default=False, nullable=False)
    whistleblower_cases: Mapped[int] = mapped_column(default=0, nullable=False)
    data_breaches: Mapped[int] = mapped_column(default=0, nullable=False)
    audit_frequency: Mapped[AuditFrequency] = mapped_column(
        default=AuditFrequency.ANNUAL, nullable=False
    )

    # Workflow
    status: Mapped[RecordStatus] = mapped_column(default=RecordStatus.DRAFT, nullable=False)
    submitted_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL")
    )
    review_notes: Mapped[str | None] = mapped_column(Text)
    submitted_at: Mapped[datetime | None] = mapped_column()
    approved_at: Mapped[datetime | None] = mapped_column()

    def recompute_total_emissions(self) -> None:
        self.total_carbon_emissions = (
            (self.scope1_emissions or 0.0)
            + (self.scope2_emissions or 0.0)
            + (self.scope3_emissions or 0.0)
        )

    def __repr__(self) -> str:
        return (
            f"<ESGRecord(id={self.id}, organization={self.organization!r}, "
            f"year={self.reporting_year}, status={self.status.value})>"
        )


@event.listens_for(ESGRecord, "before_insert")
@event.listens_for(ESGRecord, "before_update")
def _sync_total_emissions(mapper, connection, target: ESGRecord) -> None:
    target.recompute_total_emissions()
