"""create unified dashboard source and metric tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "metric_sources",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, comment="file, integration"),
        sa.Column(
            "platform",
            sa.String(length=32),
            nullable=False,
            comment="google-analytics, google-ads, facebook-ads, manual",
        ),
        sa.Column("status", sa.String(length=16), nullable=False, comment="active, processing, error"),
        sa.Column("file_id", sa.String(length=64), nullable=True),
        sa.Column("last_analyzed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("row_count", sa.Integer(), nullable=True),
        sa.Column("date_range_start", sa.Date(), nullable=True),
        sa.Column("date_range_end", sa.Date(), nullable=True),
        sa.Column("error_message", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_metric_sources_created_at", "metric_sources", ["created_at"], unique=False)

    op.create_table(
        "unified_metrics",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("source_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("source_name", sa.String(length=255), nullable=False),
        sa.Column("platform", sa.String(length=32), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("metric_name", sa.String(length=255), nullable=False),
        sa.Column("metric_value", sa.Float(), nullable=False),
        sa.Column(
            "metric_type",
            sa.String(length=16),
            nullable=False,
            comment="count, rate, currency, duration",
        ),
        sa.Column(
            "category",
            sa.String(length=16),
            nullable=False,
            comment="traffic, engagement, conversion, revenue, advertising",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["source_id"], ["metric_sources.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_unified_metrics_source_date", "unified_metrics", ["source_id", "date"], unique=False)
    op.create_index("ix_unified_metrics_metric_name", "unified_metrics", ["metric_name"], unique=False)
    op.create_index("ix_unified_metrics_date", "unified_metrics", ["date"], unique=False)
    op.create_index("ix_unified_metrics_category", "unified_metrics", ["category"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_unified_metrics_category", table_name="unified_metrics")
    op.drop_index("ix_unified_metrics_date", table_name="unified_metrics")
    op.drop_index("ix_unified_metrics_metric_name", table_name="unified_metrics")
    op.drop_index("ix_unified_metrics_source_date", table_name="unified_metrics")
    op.drop_table("unified_metrics")
    op.drop_index("ix_metric_sources_created_at", table_name="metric_sources")
    op.drop_table("metric_sources")
