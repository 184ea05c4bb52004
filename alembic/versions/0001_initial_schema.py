"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("organization", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_organization_role", "users", ["organization", "role"])

    op.create_table(
        "esg_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization", sa.String(200), nullable=False),
        sa.Column("reporting_year", sa.Integer, nullable=False),
        sa.Column("reporting_quarter", sa.Integer, nullable=True),
        sa.Column("reporting_month", sa.Integer, nullable=True),
        # Environmental
        sa.Column("scope1_emissions", sa.Float, nullable=False),
        sa.Column("scope2_emissions", sa.Float, nullable=False),
        sa.Column("scope3_emissions", sa.Float, nullable=False),
        sa.Column("total_carbon_emissions", sa.Float, nullable=False),
        sa.Column("energy_consumption", sa.Float, nullable=False),
        sa.Column("renewable_energy_percentage", sa.Float, nullable=False),
        sa.Column("water_usage", sa.Float, nullable=False),
        sa.Column("waste_generated", sa.Float, nullable=False),
        sa.Column("waste_recycled", sa.Float, nullable=False),
        # Social
        sa.Column("total_employees", sa.Integer, nullable=False),
        sa.Column("diversity_ratio", sa.Float, nullable=False),
        sa.Column("female_employees_percentage", sa.Float, nullable=False),
        sa.Column("health_and_safety_incidents", sa.Integer, nullable=False),
        sa.Column("training_hours_per_employee", sa.Float, nullable=False),
        sa.Column("employee_turnover_rate", sa.Float, nullable=False),
        sa.Column("community_investment", sa.Float, nullable=False),
        # Governance
        sa.Column("board_independence", sa.Float, nullable=False),
        sa.Column("female_directors_percentage", sa.Float, nullable=False),
        sa.Column("compliance_status", sa.String(32), nullable=False),
        sa.Column("ethics_policy_confirmed", sa.Boolean, nullable=False),
        sa.Column("whistleblower_cases", sa.Integer, nullable=False),
        sa.Column("data_breaches", sa.Integer, nullable=False),
        sa.Column("audit_frequency", sa.String(32), nullable=False),
        # Workflow
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("submitted_by", sa.Uuid(), nullable=True),
        sa.Column("reviewed_by", sa.Uuid(), nullable=True),
        sa.Column("review_notes", sa.Text, nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["submitted_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_esg_records_organization", "esg_records", ["organization"])
    op.create_index(
        "ix_esg_records_org_period", "esg_records",
        ["organization", "reporting_year", "reporting_quarter"],
    )
    op.create_index("ix_esg_records_status_created", "esg_records", ["status", "created_at"])

    op.create_table(
        "reports",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("report_title", sa.String(200), nullable=False),
        sa.Column("organization", sa.String(200), nullable=False),
        sa.Column("report_type", sa.String(32), nullable=False),
        sa.Column("period_start", sa.DateTime(), nullable=False),
        sa.Column("period_end", sa.DateTime(), nullable=False),
        sa.Column("period_year", sa.Integer, nullable=False),
        sa.Column("period_quarter", sa.Integer, nullable=True),
        sa.Column("period_month", sa.Integer, nullable=True),
        sa.Column("environmental_summary", _JSON, nullable=False),
        sa.Column("social_summary", _JSON, nullable=False),
        sa.Column("governance_summary", _JSON, nullable=False),
        sa.Column("overall_score", _JSON, nullable=False),
        sa.Column("included_records", _JSON, nullable=False),
        sa.Column("generated_by", sa.Uuid(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["generated_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reports_organization_type", "reports", ["organization", "report_type"])
    op.create_index("ix_reports_period_year", "reports", ["period_year"])
    op.create_index("ix_reports_status", "reports", ["status"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("performed_by", sa.Uuid(), nullable=True),
        sa.Column("resource_type", sa.String(32), nullable=False),
        sa.Column("resource_id", sa.Uuid(), nullable=True),
        sa.Column("details", _JSON, nullable=False),
        sa.Column("success", sa.Boolean, server_default="true", nullable=False),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("timestamp", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_performed_by", "audit_logs", ["performed_by"])
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("reports")
    op.drop_table("esg_records")
    op.drop_table("users")
