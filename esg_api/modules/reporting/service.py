"""Report Builder: period resolution, record retrieval, aggregation, persistence."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from esg_api.core.errors import (
    InvalidTransition,
    NoEligibleRecords,
    PersistenceFailure,
    ResourceNotFound,
)
from esg_api.models.base import utcnow
from esg_api.models.enums import AuditAction, AuditResourceType, ReportStatus, ReportType
from esg_api.models.reporting import Report
from esg_api.modules.audit.trail import AuditTrail
from esg_api.modules.esg.service import find_approved
from esg_api.modules.reporting.engine import ESGAggregationEngine, snapshot_from_record
from esg_api.modules.reporting.periods import resolve_period
from esg_api.modules.reporting.schemas import ReportGenerateRequest, ReportStatistics

logger = structlog.get_logger()

# Forward-only ordering of report states
_STATUS_ORDER: dict[ReportStatus, int] = {
    ReportStatus.DRAFT: 0,
    ReportStatus.FINALIZED: 1,
    ReportStatus.PUBLISHED: 2,
    ReportStatus.ARCHIVED: 3,
}

_FROZEN_NOTE_STATES = frozenset({ReportStatus.PUBLISHED, ReportStatus.ARCHIVED})


class ReportBuilder:
    """Builds and persists reports. Engine and audit trail are injected."""

    def __init__(
        self,
        db: AsyncSession,
        engine: ESGAggregationEngine,
        audit: AuditTrail,
    ) -> None:
        self.db = db
        self.engine = engine
        self.audit = audit

    # ── Generation ───────────────────────────────────────────────────────────

    async def generate(
        self,
        body: ReportGenerateRequest,
        generated_by: uuid.UUID,
        request: Request | None = None,
    ) -> Report:
        """Create one report atomically; audited only once it is committed.

        Raises InvalidPeriodSpec before touching the store, NoEligibleRecords
        when the window holds no approved records, PersistenceFailure when
        the write is rejected.
        """
        start, end = resolve_period(
            body.report_type,
            body.year,
            quarter=body.quarter,
            month=body.month,
            start=body.start_date,
            end=body.end_date,
        )

        records = await find_approved(self.db, body.organization, start, end)
        if not records:
            raise NoEligibleRecords(
                "No approved ESG records found for the specified period"
            )

        snapshots = [snapshot_from_record(r) for r in records]
        environmental = self.engine.aggregate_environmental(snapshots)
        social = self.engine.aggregate_social(snapshots)
        governance = self.engine.aggregate_governance(snapshots)
        scores = self.engine.compose_scores(environmental, social, governance)

        report = Report(
            report_title=body.report_title,
            organization=body.organization,
            report_type=body.report_type,
            period_start=start,
            period_end=end,
            period_year=body.year,
            period_quarter=body.quarter if body.report_type == ReportType.QUARTERLY else None,
            period_month=body.month if body.report_type == ReportType.MONTHLY else None,
            environmental_summary=environmental.model_dump(),
            social_summary=social.model_dump(),
            governance_summary=governance.model_dump(),
            overall_score=scores.model_dump(),
            included_records=[str(s.id) for s in snapshots],
            generated_by=generated_by,
            status=ReportStatus.DRAFT,
        )
        try:
            self.db.add(report)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("report_persist_failed", organization=body.organization, error=str(exc))
            raise PersistenceFailure("Failed to save report") from exc

        logger.info(
            "report_generated",
            report_id=str(report.id),
            organization=report.organization,
            report_type=report.report_type.value,
            records=len(snapshots),
            total_score=scores.total_score,
        )
        self.audit.record(
            AuditAction.REPORT_GENERATED,
            AuditResourceType.REPORT,
            performed_by=generated_by,
            resource_id=report.id,
            details={
                "report_type": report.report_type.value,
                "organization": report.organization,
                "records_included": len(snapshots),
            },
            request=request,
        )
        return report

    # ── Status ───────────────────────────────────────────────────────────────

    async def update_status(
        self,
        report: Report,
        new_status: ReportStatus,
        actor_id: uuid.UUID,
        notes: str | None = None,
        request: Request | None = None,
    ) -> Report:
        """Move a report forward (steps may be skipped, never reversed).

        Publishing stamps published_at. Notes cannot change once a report
        is published or archived.
        """
        previous = report.status
        if _STATUS_ORDER[new_status] <= _STATUS_ORDER[previous]:
            raise InvalidTransition(
                f"Cannot change report status from '{previous.value}' to '{new_status.value}'"
            )
        if notes is not None and previous in _FROZEN_NOTE_STATES:
            raise InvalidTransition(
                f"Notes cannot be changed on a {previous.value} report"
            )

        report.status = new_status
        if notes is not None:
            report.notes = notes
        if new_status == ReportStatus.PUBLISHED:
            report.published_at = utcnow()

        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceFailure("Failed to update report status") from exc

        action = (
            AuditAction.REPORT_PUBLISHED
            if new_status == ReportStatus.PUBLISHED
            else AuditAction.REPORT_STATUS_CHANGED
        )
        self.audit.record(
            action,
            AuditResourceType.REPORT,
            performed_by=actor_id,
            resource_id=report.id,
            details={"from_status": previous.value, "to_status": new_status.value},
            request=request,
        )
        return report

    async def delete(
        self, report: Report, actor_id: uuid.UUID, request: Request | None = None
    ) -> None:
        details = {"report_title": report.report_title, "organization": report.organization}
        report_id = report.id
        await self.db.delete(report)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceFailure("Failed to delete report") from exc

        self.audit.record(
            AuditAction.REPORT_DELETED,
            AuditResourceType.REPORT,
            performed_by=actor_id,
            resource_id=report_id,
            details=details,
            request=request,
        )


# ── Queries ───────────────────────────────────────────────────────────────────


async def get_report(db: AsyncSession, report_id: uuid.UUID) -> Report:
    report = await db.get(Report, report_id)
    if report is None:
        raise ResourceNotFound("Report not found")
    return report


async def list_reports(
    db: AsyncSession,
    *,
    organization: str | None = None,
    report_type: ReportType | None = None,
    year: int | None = None,
    status: ReportStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[Report], int]:
    stmt = select(Report)
    if organization:
        stmt = stmt.where(Report.organization == organization)
    if report_type is not None:
        stmt = stmt.where(Report.report_type == report_type)
    if year is not None:
        stmt = stmt.where(Report.period_year == year)
    if status is not None:
        stmt = stmt.where(Report.status == status)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(
        stmt.order_by(Report.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    )
    return list(result.scalars().all()), total


async def get_statistics(db: AsyncSession, organization: str | None = None) -> ReportStatistics:
    stmt = select(Report.report_type, Report.status, func.count()).group_by(
        Report.report_type, Report.status
    )
    if organization:
        stmt = stmt.where(Report.organization == organization)
    rows = (await db.execute(stmt)).all()

    by_type: dict[str, int] = {}
    total = published = draft = 0
    for report_type, report_status, count in rows:
        total += count
        by_type[report_type.value] = by_type.get(report_type.value, 0) + count
        if report_status == ReportStatus.PUBLISHED:
            published += count
        elif report_status == ReportStatus.DRAFT:
            draft += count

    return ReportStatistics(
        total_reports=total,
        published_reports=published,
        draft_reports=draft,
        reports_by_type=by_type,
    )
