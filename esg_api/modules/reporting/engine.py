"""
ESGAggregationEngine: deterministic aggregation and scoring of approved ESG records.

Pure Python, no I/O. Accumulates in full precision and rounds each output
once, to 2 decimals, half away from zero.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext

from esg_api.models.enums import ComplianceStatus
from esg_api.models.esg import ESGRecord
from esg_api.modules.reporting.schemas import (
    EnvironmentalSummary,
    GovernanceSummary,
    OverallScore,
    SocialSummary,
)

# Emissions that drive the environmental score to zero (linear penalty, not calibrated).
EMISSIONS_REFERENCE_CEILING = 10_000.0
DATA_BREACH_PENALTY = 10


def round_half_away(value: float, places: int = 2) -> float:
    if not math.isfinite(value):
        return value
    exact = Decimal(repr(value))
    with localcontext() as ctx:
        # quantize needs every integer digit plus the kept places
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return float(exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def clamp_score(value: float) -> float:
    return min(100.0, max(0.0, value))


@dataclass(frozen=True)
class RecordSnapshot:
    """Metric values of one approved record, frozen at report-generation time."""

    id: uuid.UUID
    organization: str
    created_at: datetime

    scope1_emissions: float | None = 0.0
    scope2_emissions: float | None = 0.0
    scope3_emissions: float | None = 0.0
    energy_consumption: float | None = 0.0
    renewable_energy_percentage: float | None = 0.0
    water_usage: float | None = 0.0
    waste_generated: float | None = 0.0
    waste_recycled: float | None = 0.0

    diversity_ratio: float | None = 0.0
    female_employees_percentage: float | None = 0.0
    health_and_safety_incidents: int | None = 0
    training_hours_per_employee: float | None = 0.0
    employee_turnover_rate: float | None = 0.0
    community_investment: float | None = 0.0

    board_independence: float | None = 0.0
    female_directors_percentage: float | None = 0.0
    compliance_status: ComplianceStatus | None = ComplianceStatus.UNDER_REVIEW
    whistleblower_cases: int | None = 0
    data_breaches: int | None = 0


_SNAPSHOT_FIELDS = tuple(
    name for name in RecordSnapshot.__dataclass_fields__ if name not in ("id", "organization", "created_at")
)


def snapshot_from_record(record: ESGRecord) -> RecordSnapshot:
    return RecordSnapshot(
        id=record.id,
        organization=record.organization,
        created_at=record.created_at,
        **{name: getattr(record, name) for name in _SNAPSHOT_FIELDS},
    )


def _total(records: Sequence[RecordSnapshot], field: str) -> float:
    return sum(float(getattr(r, field) or 0) for r in records)


def _count(records: Sequence[RecordSnapshot], field: str) -> int:
    return sum(int(getattr(r, field) or 0) for r in records)


class ESGAggregationEngine:
    """Domain aggregators and the composite score formula."""

    # ── Environmental ────────────────────────────────────────────────────────

    def aggregate_environmental(self, records: Sequence[RecordSnapshot]) -> EnvironmentalSummary:
        if not records:
            return EnvironmentalSummary()

        count = len(records)
        scope1 = _total(records, "scope1_emissions")
        scope2 = _total(records, "scope2_emissions")
        scope3 = _total(records, "scope3_emissions")
        waste_generated = _total(records, "waste_generated")
        waste_recycled = _total(records, "waste_recycled")

        recycling_rate = 0.0
        if waste_generated:
            recycling_rate = (waste_recycled / waste_generated) * 100

        return EnvironmentalSummary(
            total_scope1_emissions=round_half_away(scope1),
            total_scope2_emissions=round_half_away(scope2),
            total_scope3_emissions=round_half_away(scope3),
            # Sum of the running totals, not of per-record totals
            total_carbon_emissions=round_half_away(scope1 + scope2 + scope3),
            average_renewable_energy_percentage=round_half_away(
                _total(records, "renewable_energy_percentage") / count
            ),
            total_energy_consumption=round_half_away(_total(records, "energy_consumption")),
            total_water_usage=round_half_away(_total(records, "water_usage")),
            waste_recycling_rate=round_half_away(recycling_rate),
        )

    # ── Social ───────────────────────────────────────────────────────────────

    def aggregate_social(self, records: Sequence[RecordSnapshot]) -> SocialSummary:
        if not records:
            return SocialSummary()

        count = len(records)
        return SocialSummary(
            average_diversity_ratio=round_half_away(_total(records, "diversity_ratio") / count),
            total_health_and_safety_incidents=_count(records, "health_and_safety_incidents"),
            average_training_hours=round_half_away(
                _total(records, "training_hours_per_employee") / count
            ),
            average_turnover_rate=round_half_away(_total(records, "employee_turnover_rate") / count),
            total_community_investment=round_half_away(_total(records, "community_investment")),
            average_female_employees_percentage=round_half_away(
                _total(records, "female_employees_percentage") / count
            ),
        )

    # ── Governance ───────────────────────────────────────────────────────────

    def aggregate_governance(self, records: Sequence[RecordSnapshot]) -> GovernanceSummary:
        if not records:
            return GovernanceSummary()

        count = len(records)
        compliant = sum(1 for r in records if r.compliance_status == ComplianceStatus.COMPLIANT)
        return GovernanceSummary(
            average_board_independence=round_half_away(_total(records, "board_independence") / count),
            compliance_rate=round_half_away((compliant / count) * 100),
            total_whistleblower_cases=_count(records, "whistleblower_cases"),
            total_data_breaches=_count(records, "data_breaches"),
            average_female_directors_percentage=round_half_away(
                _total(records, "female_directors_percentage") / count
            ),
        )

    # ── Scores ───────────────────────────────────────────────────────────────

    def compose_scores(
        self,
        environmental: EnvironmentalSummary,
        social: SocialSummary,
        governance: GovernanceSummary,
    ) -> OverallScore:
        """
        Bounded [0, 100] composite scores from the (already rounded) summaries.

        Incident and breach counts are subtracted from 100 without a floor
        before the final clamp, so any sufficiently bad input saturates at 0.
        """
        environmental_score = clamp_score(
            100 - (environmental.total_carbon_emissions / EMISSIONS_REFERENCE_CEILING) * 100
        )
        social_score = clamp_score(
            (
                social.average_diversity_ratio
                + (100 - social.total_health_and_safety_incidents)
                + social.average_training_hours
            )
            / 3
        )
        governance_score = clamp_score(
            (
                governance.average_board_independence
                + governance.compliance_rate
                + (100 - governance.total_data_breaches * DATA_BREACH_PENALTY)
            )
            / 3
        )
        total_score = (environmental_score + social_score + governance_score) / 3

        return OverallScore(
            environmental_score=round_half_away(environmental_score),
            social_score=round_half_away(social_score),
            governance_score=round_half_away(governance_score),
            total_score=round_half_away(total_score),
        )
