"""create scheduled report job tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scheduled_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "platform",
            sa.String(length=32),
            nullable=False,
            comment="google-analytics, google-ads, facebook-ads",
        ),
        sa.Column("account_id", sa.String(length=255), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("frequency", sa.String(length=16), nullable=False, comment="daily, weekly, monthly"),
        sa.Column(
            "time_of_day",
            sa.String(length=8),
            nullable=False,
            comment="HH:MM wall-clock time in the job timezone",
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=True, comment="0 = Sunday .. 6 = Saturday"),
        sa.Column("day_of_month", sa.Integer(), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_run", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_run", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metrics", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("dimensions", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("notification_email", sa.String(length=320), nullable=True),
        sa.Column("auto_analyze", sa.Boolean(), nullable=False),
        sa.Column(
            "analysis_type",
            sa.String(length=32),
            nullable=False,
            comment="insights, recommendations, summary",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scheduled_jobs_next_run", "scheduled_jobs", ["next_run"], unique=False)
    op.create_index(
        "ix_scheduled_jobs_is_active_next_run",
        "scheduled_jobs",
        ["is_active", "next_run"],
        unique=False,
    )

    op.create_table(
        "job_executions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("file_id", sa.String(length=64), nullable=True),
        sa.Column("analysis_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("rows_fetched", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("execution_time_ms", sa.Integer(), nullable=True),
        sa.Column(
            "result_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Step outcomes recorded by the runner",
        ),
        sa.ForeignKeyConstraint(["job_id"], ["scheduled_jobs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_job_executions_job_id", "job_executions", ["job_id"], unique=False)
    op.create_index("ix_job_executions_status", "job_executions", ["status"], unique=False)

    op.create_table(
        "historical_analyses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("execution_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_id", sa.String(length=64), nullable=False),
        sa.Column(
            "analysis_data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Full analysis result as returned by the analyze endpoint",
        ),
        sa.Column("date_range_start", sa.Date(), nullable=False),
        sa.Column("date_range_end", sa.Date(), nullable=False),
        sa.Column("total_rows", sa.Integer(), nullable=False),
        sa.Column("key_metrics", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("insights_count", sa.Integer(), nullable=False),
        sa.Column("recommendations_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["scheduled_jobs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["execution_id"], ["job_executions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_historical_analyses_job_id", "historical_analyses", ["job_id"], unique=False)
    op.create_index("ix_historical_analyses_created_at", "historical_analyses", ["created_at"], unique=False)

    op.create_table(
        "trend_comparisons",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("current_analysis_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("previous_analysis_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("comparison_data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("significant_changes", sa.Integer(), nullable=False),
        sa.Column("improvement_areas", sa.Integer(), nullable=False),
        sa.Column("decline_areas", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["scheduled_jobs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["current_analysis_id"], ["historical_analyses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["previous_analysis_id"], ["historical_analyses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_trend_comparisons_job_id", "trend_comparisons", ["job_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_trend_comparisons_job_id", table_name="trend_comparisons")
    op.drop_table("trend_comparisons")
    op.drop_index("ix_historical_analyses_created_at", table_name="historical_analyses")
    op.drop_index("ix_historical_analyses_job_id", table_name="historical_analyses")
    op.drop_table("historical_analyses")
    op.drop_index("ix_job_executions_status", table_name="job_executions")
    op.drop_index("ix_job_executions_job_id", table_name="job_executions")
    op.drop_table("job_executions")
    op.drop_index("ix_scheduled_jobs_is_active_next_run", table_name="scheduled_jobs")
    op.drop_index("ix_scheduled_jobs_next_run", table_name="scheduled_jobs")
    op.drop_table("scheduled_jobs")
