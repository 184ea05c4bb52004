"""Tests for report generation, status changes and the Report Builder."""

from __future__ import annotations

import uuid
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.core.errors import NoEligibleRecords, PersistenceFailure
from esg_api.models.core import AuditLog
from esg_api.models.enums import AuditAction, ComplianceStatus, RecordStatus, ReportStatus, ReportType
from esg_api.models.reporting import Report
from esg_api.modules.audit.trail import AuditTrail
from esg_api.modules.reporting.engine import ESGAggregationEngine
from esg_api.modules.reporting.schemas import ReportGenerateRequest
from esg_api.modules.reporting.service import ReportBuilder

from conftest import ANALYST_ID, ORG, OTHER_ORG

pytestmark = pytest.mark.anyio


def q1_request(**overrides) -> dict:
    body = {
        "report_title": "Acme Q1 2024 ESG Report",
        "organization": ORG,
        "report_type": "quarterly",
        "year": 2024,
        "quarter": 1,
    }
    body.update(overrides)
    return body


@pytest.fixture
async def q1_records(make_record) -> dict[str, object]:
    """Approved Acme records inside Q1 2024 plus records that must be left out."""
    return {
        "first": await make_record(
            created_at=datetime(2024, 1, 1, 0, 0, 0),
            scope1_emissions=1000, scope2_emissions=500, scope3_emissions=500,
            waste_generated=100, waste_recycled=40,
            diversity_ratio=40, training_hours_per_employee=20, health_and_safety_incidents=2,
            board_independence=60, compliance_status=ComplianceStatus.COMPLIANT,
        ),
        "last": await make_record(
            created_at=datetime(2024, 3, 31, 23, 59, 59),
            scope1_emissions=1000, scope2_emissions=0, scope3_emissions=0,
            waste_generated=100, waste_recycled=60,
            diversity_ratio=60, training_hours_per_employee=30, health_and_safety_incidents=3,
            board_independence=80, compliance_status=ComplianceStatus.NON_COMPLIANT,
            data_breaches=1,
        ),
        "april": await make_record(created_at=datetime(2024, 4, 1, 0, 0, 0), scope1_emissions=9999),
        "draft": await make_record(
            created_at=datetime(2024, 2, 1), status=RecordStatus.SUBMITTED, scope1_emissions=9999
        ),
        "other_org": await make_record(
            created_at=datetime(2024, 2, 1), organization=OTHER_ORG, scope1_emissions=9999
        ),
    }


async def generate(client: AsyncClient, login_as, **overrides) -> dict:
    login_as("analyst")
    resp = await client.post("/v1/reports/generate", json=q1_request(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestGenerateReport:
    async def test_quarterly_report_uses_only_eligible_records(
        self, client: AsyncClient, login_as, q1_records
    ):
        data = await generate(client, login_as)

        assert data["included_records"] == [str(q1_records["first"].id), str(q1_records["last"].id)]
        assert data["status"] == "draft"
        assert data["report_type"] == "quarterly"
        assert data["period_quarter"] == 1
        assert data["period_month"] is None
        assert data["period_start"] == "2024-01-01T00:00:00"
        assert data["period_end"] == "2024-03-31T23:59:59"
        assert data["period_duration_days"] == 91
        assert data["generated_by"] == str(ANALYST_ID)

        env = data["environmental_summary"]
        assert env["total_scope1_emissions"] == 2000
        assert env["total_carbon_emissions"] == 3000
        assert env["waste_recycling_rate"] == 50.0

        assert data["social_summary"]["total_health_and_safety_incidents"] == 5
        assert data["governance_summary"]["compliance_rate"] == 50.0
        assert data["governance_summary"]["total_data_breaches"] == 1

        scores = data["overall_score"]
        assert scores["environmental_score"] == 70.0
        # (50 + 95 + 25) / 3
        assert scores["social_score"] == 56.67
        # (70 + 50 + 90) / 3
        assert scores["governance_score"] == 70.0
        assert scores["total_score"] == 65.56

    async def test_empty_period_refused(
        self, client: AsyncClient, login_as, q1_records, db: AsyncSession
    ):
        login_as("analyst")
        resp = await client.post("/v1/reports/generate", json=q1_request(quarter=3))
        assert resp.status_code == 400
        assert "No approved ESG records" in resp.json()["message"]
        assert (await db.execute(select(Report))).scalars().all() == []

    async def test_quarterly_without_quarter_400(self, client: AsyncClient, login_as):
        login_as("analyst")
        resp = await client.post("/v1/reports/generate", json=q1_request(quarter=None))
        assert resp.status_code == 400

    async def test_custom_end_before_start_400(self, client: AsyncClient, login_as):
        login_as("analyst")
        resp = await client.post(
            "/v1/reports/generate",
            json=q1_request(
                report_type="custom",
                start_date="2024-03-01T00:00:00",
                end_date="2024-02-01T00:00:00",
            ),
        )
        assert resp.status_code == 400

    async def test_custom_period(self, client: AsyncClient, login_as, q1_records):
        data = await generate(
            client,
            login_as,
            report_type="custom",
            quarter=None,
            start_date="2024-03-01T00:00:00",
            end_date="2024-04-01T00:00:00",
        )
        assert data["included_records"] == [
            str(q1_records["last"].id), str(q1_records["april"].id)
        ]
        assert data["period_quarter"] is None
        assert data["period_duration_days"] == 31

    async def test_title_too_long_422(self, client: AsyncClient, login_as):
        login_as("analyst")
        resp = await client.post("/v1/reports/generate", json=q1_request(report_title="x" * 201))
        assert resp.status_code == 422

    async def test_auditor_cannot_generate(self, client: AsyncClient, login_as, q1_records):
        login_as("auditor")
        resp = await client.post("/v1/reports/generate", json=q1_request())
        assert resp.status_code == 403

    async def test_other_org_cannot_generate(self, client: AsyncClient, login_as, q1_records):
        login_as("other_analyst")
        resp = await client.post("/v1/reports/generate", json=q1_request())
        assert resp.status_code == 403

    async def test_generation_audited(
        self,
        client: AsyncClient,
        login_as,
        q1_records,
        db: AsyncSession,
        audit_trail: AuditTrail,
    ):
        data = await generate(client, login_as)
        await audit_trail.drain()
        entry = (
            await db.execute(
                select(AuditLog).where(AuditLog.action == AuditAction.REPORT_GENERATED.value)
            )
        ).scalar_one()
        assert entry.resource_id == uuid.UUID(data["id"])
        assert entry.details["records_included"] == 2
        assert entry.details["report_type"] == "quarterly"


class TestReportBuilder:
    """Builder-level behaviour with collaborators injected directly."""

    async def test_no_records_raises_and_skips_audit(self, db: AsyncSession):
        audit = MagicMock()
        builder = ReportBuilder(db, ESGAggregationEngine(), audit)
        body = ReportGenerateRequest(**q1_request())
        with pytest.raises(NoEligibleRecords):
            await builder.generate(body, ANALYST_ID)
        audit.record.assert_not_called()

    async def test_persistence_failure_rolls_back_without_audit(self, db: AsyncSession, q1_records):
        audit = MagicMock()
        builder = ReportBuilder(db, ESGAggregationEngine(), audit)
        db.commit = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))
        with pytest.raises(PersistenceFailure):
            await builder.generate(ReportGenerateRequest(**q1_request()), ANALYST_ID)
        audit.record.assert_not_called()


# ── Listing / status ─────────────────────────────────────────────────────────


class TestReportLifecycle:
    async def test_forward_status_and_publish(
        self,
        client: AsyncClient,
        login_as,
        q1_records,
        db: AsyncSession,
        audit_trail: AuditTrail,
    ):
        report = await generate(client, login_as)
        url = f"/v1/reports/{report['id']}/status"

        resp = await client.put(url, json={"status": "finalized", "notes": "Board sign-off"})
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == "finalized"
        assert resp.json()["published_at"] is None

        resp = await client.put(url, json={"status": "published"})
        assert resp.status_code == 200
        assert resp.json()["published_at"] is not None
        assert resp.json()["notes"] == "Board sign-off"

        resp = await client.put(url, json={"status": "draft"})
        assert resp.status_code == 409

        resp = await client.put(url, json={"status": "archived", "notes": "rewrite"})
        assert resp.status_code == 409

        resp = await client.put(url, json={"status": "archived"})
        assert resp.status_code == 200

        await audit_trail.drain()
        actions = (await db.execute(select(AuditLog.action))).scalars().all()
        assert AuditAction.REPORT_PUBLISHED.value in actions
        assert AuditAction.REPORT_STATUS_CHANGED.value in actions

    async def test_same_status_rejected(self, client: AsyncClient, login_as, q1_records):
        report = await generate(client, login_as)
        resp = await client.put(f"/v1/reports/{report['id']}/status", json={"status": "draft"})
        assert resp.status_code == 409

    async def test_draft_may_skip_to_published(self, client: AsyncClient, login_as, q1_records):
        report = await generate(client, login_as)
        resp = await client.put(f"/v1/reports/{report['id']}/status", json={"status": "published"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "published"

    async def test_list_and_statistics(self, client: AsyncClient, login_as, q1_records):
        first = await generate(client, login_as)
        await generate(client, login_as, report_type="annual", quarter=None)
        await client.put(f"/v1/reports/{first['id']}/status", json={"status": "published"})

        resp = await client.get("/v1/reports", params={"report_type": "quarterly"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == first["id"]

        resp = await client.get("/v1/reports/statistics")
        assert resp.json() == {
            "total_reports": 2,
            "published_reports": 1,
            "draft_reports": 1,
            "reports_by_type": {"quarterly": 1, "annual": 1},
        }

    async def test_list_scoped_for_other_org(self, client: AsyncClient, login_as, q1_records):
        await generate(client, login_as)
        login_as("other_analyst")
        resp = await client.get("/v1/reports", params={"organization": ORG})
        assert resp.json()["total"] == 0

    async def test_get_report_and_404(self, client: AsyncClient, login_as, q1_records):
        report = await generate(client, login_as)
        login_as("auditor")
        resp = await client.get(f"/v1/reports/{report['id']}")
        assert resp.status_code == 200
        assert resp.json()["overall_score"] == report["overall_score"]

        resp = await client.get(f"/v1/reports/{uuid.uuid4()}")
        assert resp.status_code == 404

    async def test_report_is_a_snapshot(
        self, client: AsyncClient, login_as, q1_records, db: AsyncSession
    ):
        report = await generate(client, login_as)
        login_as("admin")
        await client.put(
            f"/v1/esg/{q1_records['first'].id}", json={"environmental": {"scope1_emissions": 0}}
        )
        resp = await client.get(f"/v1/reports/{report['id']}")
        assert resp.json()["environmental_summary"] == report["environmental_summary"]

    async def test_delete_admin_only(
        self, client: AsyncClient, login_as, q1_records, db: AsyncSession
    ):
        report = await generate(client, login_as)
        resp = await client.delete(f"/v1/reports/{report['id']}")
        assert resp.status_code == 403

        login_as("admin")
        resp = await client.delete(f"/v1/reports/{report['id']}")
        assert resp.status_code == 204
        assert (await db.execute(select(Report))).scalars().all() == []

    async def test_report_type_enum_round_trip(self, db: AsyncSession, q1_records):
        builder = ReportBuilder(db, ESGAggregationEngine(), MagicMock())
        report = await builder.generate(
            ReportGenerateRequest(**q1_request(report_type="annual", quarter=None)), ANALYST_ID
        )
        db.expunge_all()
        stored = await db.get(Report, report.id)
        assert stored.report_type is ReportType.ANNUAL
        assert stored.status is ReportStatus.DRAFT
        assert stored.period_quarter is None
        assert stored.period_duration_days == 366
