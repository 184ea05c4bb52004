"""Record Store: ESG record persistence, partial-update merging and the approval workflow."""

from __future__ import annotations

import uuid
from datetime import datetime

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.core.errors import InvalidTransition, ResourceNotFound
from esg_api.models.base import utcnow
from esg_api.models.enums import RecordStatus
from esg_api.models.esg import ESGRecord
from esg_api.modules.esg.schemas import (
    ESGRecordCreate,
    ESGRecordResponse,
    ESGRecordUpdate,
    EnvironmentalPatch,
    EnvironmentalResponse,
    GovernanceData,
    GovernancePatch,
    ReportingPeriod,
    ReportingPeriodPatch,
    SocialData,
    SocialPatch,
)

logger = structlog.get_logger()


# ── Workflow ──────────────────────────────────────────────────────────────────

SUBMIT = "submit"
REVIEW = "review"
APPROVE = "approve"
REJECT = "reject"

# action -> (allowed source states, target state)
TRANSITIONS: dict[str, tuple[frozenset[RecordStatus], RecordStatus]] = {
    SUBMIT: (frozenset({RecordStatus.DRAFT}), RecordStatus.SUBMITTED),
    REVIEW: (frozenset({RecordStatus.SUBMITTED}), RecordStatus.UNDER_REVIEW),
    APPROVE: (
        frozenset({RecordStatus.SUBMITTED, RecordStatus.UNDER_REVIEW}),
        RecordStatus.APPROVED,
    ),
    REJECT: (
        frozenset({RecordStatus.SUBMITTED, RecordStatus.UNDER_REVIEW}),
        RecordStatus.REJECTED,
    ),
}


def apply_transition(
    record: ESGRecord,
    action: str,
    actor_id: uuid.UUID,
    review_notes: str | None = None,
) -> RecordStatus:
    """Move ``record`` along the workflow; returns the previous status.

    Raises InvalidTransition when ``action`` is not allowed from the record's
    current status.
    """
    sources, target = TRANSITIONS[action]
    previous = record.status
    if previous not in sources:
        allowed = ", ".join(sorted(s.value for s in sources))
        raise InvalidTransition(
            f"Cannot {action} a record in status '{previous.value}' (allowed from: {allowed})"
        )

    now = utcnow()
    record.status = target
    if action == SUBMIT:
        record.submitted_at = now
    else:
        record.reviewed_by = actor_id
        if review_notes is not None:
            record.review_notes = review_notes
        if action == APPROVE:
            record.approved_at = now
    return previous


# ── Partial-update merges ────────────────────────────────────────────────────


def merge_period(record: ESGRecord, patch: ReportingPeriodPatch) -> None:
    if patch.year is not None:
        record.reporting_year = patch.year
    if "quarter" in patch.model_fields_set:
        record.reporting_quarter = patch.quarter
    if "month" in patch.model_fields_set:
        record.reporting_month = patch.month


def merge_environmental(record: ESGRecord, patch: EnvironmentalPatch) -> None:
    if patch.scope1_emissions is not None:
        record.scope1_emissions = patch.scope1_emissions
    if patch.scope2_emissions is not None:
        record.scope2_emissions = patch.scope2_emissions
    if patch.scope3_emissions is not None:
        record.scope3_emissions = patch.scope3_emissions
    if patch.energy_consumption is not None:
        record.energy_consumption = patch.energy_consumption
    if patch.renewable_energy_percentage is not None:
        record.renewable_energy_percentage = patch.renewable_energy_percentage
    if patch.water_usage is not None:
        record.water_usage = patch.water_usage
    if patch.waste_generated is not None:
        record.waste_generated = patch.waste_generated
    if patch.waste_recycled is not None:
        record.waste_recycled = patch.waste_recycled


def merge_social(record: ESGRecord, patch: SocialPatch) -> None:
    if patch.total_employees is not None:
        record.total_employees = patch.total_employees
    if patch.diversity_ratio is not None:
        record.diversity_ratio = patch.diversity_ratio
    if patch.female_employees_percentage is not None:
        record.female_employees_percentage = patch.female_employees_percentage
    if patch.health_and_safety_incidents is not None:
        record.health_and_safety_incidents = patch.health_and_safety_incidents
    if patch.training_hours_per_employee is not None:
        record.training_hours_per_employee = patch.training_hours_per_employee
    if patch.employee_turnover_rate is not None:
        record.employee_turnover_rate = patch.employee_turnover_rate
    if patch.community_investment is not None:
        record.community_investment = patch.community_investment


def merge_governance(record: ESGRecord, patch: GovernancePatch) -> None:
    if patch.board_independence is not None:
        record.board_independence = patch.board_independence
    if patch.female_directors_percentage is not None:
        record.female_directors_percentage = patch.female_directors_percentage
    if patch.compliance_status is not None:
        record.compliance_status = patch.compliance_status
    if patch.ethics_policy_confirmed is not None:
        record.ethics_policy_confirmed = patch.ethics_policy_confirmed
    if patch.whistleblower_cases is not None:
        record.whistleblower_cases = patch.whistleblower_cases
    if patch.data_breaches is not None:
        record.data_breaches = patch.data_breaches
    if patch.audit_frequency is not None:
        record.audit_frequency = patch.audit_frequency


# ── Helpers ───────────────────────────────────────────────────────────────────


def to_response(r: ESGRecord) -> ESGRecordResponse:
    return ESGRecordResponse(
        id=r.id,
        organization=r.organization,
        reporting_period=ReportingPeriod(
            year=r.reporting_year, quarter=r.reporting_quarter, month=r.reporting_month
        ),
        environmental=EnvironmentalResponse(
            scope1_emissions=r.scope1_emissions,
            scope2_emissions=r.scope2_emissions,
            scope3_emissions=r.scope3_emissions,
            total_carbon_emissions=r.total_carbon_emissions,
            energy_consumption=r.energy_consumption,
            renewable_energy_percentage=r.renewable_energy_percentage,
            water_usage=r.water_usage,
            waste_generated=r.waste_generated,
            waste_recycled=r.waste_recycled,
        ),
        social=SocialData(
            total_employees=r.total_employees,
            diversity_ratio=r.diversity_ratio,
            female_employees_percentage=r.female_employees_percentage,
            health_and_safety_incidents=r.health_and_safety_incidents,
            training_hours_per_employee=r.training_hours_per_employee,
            employee_turnover_rate=r.employee_turnover_rate,
            community_investment=r.community_investment,
        ),
        governance=GovernanceData(
            board_independence=r.board_independence,
            female_directors_percentage=r.female_directors_percentage,
            compliance_status=r.compliance_status,
            ethics_policy_confirmed=r.ethics_policy_confirmed,
            whistleblower_cases=r.whistleblower_cases,
            data_breaches=r.data_breaches,
            audit_frequency=r.audit_frequency,
        ),
        status=r.status,
        submitted_by=r.submitted_by,
        reviewed_by=r.reviewed_by,
        review_notes=r.review_notes,
        submitted_at=r.submitted_at,
        approved_at=r.approved_at,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


# ── CRUD ──────────────────────────────────────────────────────────────────────


async def create_record(
    db: AsyncSession,
    body: ESGRecordCreate,
    submitted_by: uuid.UUID,
) -> ESGRecord:
    record = ESGRecord(
        organization=body.organization,
        reporting_year=body.reporting_period.year,
        reporting_quarter=body.reporting_period.quarter,
        reporting_month=body.reporting_period.month,
        **body.environmental.model_dump(),
        **body.social.model_dump(),
        **body.governance.model_dump(),
        status=RecordStatus.DRAFT,
        submitted_by=submitted_by,
    )
    db.add(record)
    await db.flush()
    logger.info("esg_record_created", record_id=str(record.id), organization=record.organization)
    return record


async def get_record(db: AsyncSession, record_id: uuid.UUID) -> ESGRecord:
    record = await db.get(ESGRecord, record_id)
    if record is None:
        raise ResourceNotFound("ESG record not found")
    return record


async def list_records(
    db: AsyncSession,
    *,
    organization: str | None = None,
    year: int | None = None,
    status: RecordStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[ESGRecord], int]:
    """Records newest first, with the total count before pagination."""
    stmt = select(ESGRecord)
    if organization:
        stmt = stmt.where(ESGRecord.organization == organization)
    if year is not None:
        stmt = stmt.where(ESGRecord.reporting_year == year)
    if status is not None:
        stmt = stmt.where(ESGRecord.status == status)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(
        stmt.order_by(ESGRecord.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    )
    return list(result.scalars().all()), total


async def update_record(db: AsyncSession, record: ESGRecord, body: ESGRecordUpdate) -> list[str]:
    """Merge the patch into ``record``; returns the sections that were touched."""
    touched: list[str] = []
    if body.reporting_period is not None:
        merge_period(record, body.reporting_period)
        touched.append("reporting_period")
    if body.environmental is not None:
        merge_environmental(record, body.environmental)
        touched.append("environmental")
    if body.social is not None:
        merge_social(record, body.social)
        touched.append("social")
    if body.governance is not None:
        merge_governance(record, body.governance)
        touched.append("governance")
    if body.review_notes is not None:
        record.review_notes = body.review_notes
        touched.append("review_notes")
    await db.flush()
    return touched


async def delete_record(db: AsyncSession, record: ESGRecord) -> None:
    await db.delete(record)
    await db.flush()
    logger.info("esg_record_deleted", record_id=str(record.id))


# ── Record retrieval for reporting ───────────────────────────────────────────


async def find_approved(
    db: AsyncSession,
    organization: str,
    start: datetime,
    end: datetime,
) -> list[ESGRecord]:
    """Approved records of ``organization`` created within [start, end] inclusive."""
    result = await db.execute(
        select(ESGRecord)
        .where(
            ESGRecord.organization == organization,
            ESGRecord.status == RecordStatus.APPROVED,
            ESGRecord.created_at >= start,
            ESGRecord.created_at <= end,
        )
        .order_by(ESGRecord.created_at.asc(), ESGRecord.id.asc())
    )
    return list(result.scalars().all())
