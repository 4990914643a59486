"""
db/models/historical_analysis.py

Stored analysis results per scheduled run and the trend comparisons
computed between them.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class HistoricalAnalysis(Base):
    __tablename__ = "historical_analyses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scheduled_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    execution_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_executions.id", ondelete="CASCADE"),
        nullable=False,
    )
    file_id: Mapped[str] = mapped_column(String(64), nullable=False)
    analysis_data: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        comment="Full analysis result as returned by the analyze endpoint",
    )
    date_range_start: Mapped[date] = mapped_column(Date, nullable=False)
    date_range_end: Mapped[date] = mapped_column(Date, nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    key_metrics: Mapped[dict[str, float] | None] = mapped_column(JSONB, nullable=True)
    insights_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recommendations_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_historical_analyses_job_id", "job_id"),
        Index("ix_historical_analyses_created_at", "created_at"),
    )


class TrendComparison(Base):
    __tablename__ = "trend_comparisons"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scheduled_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    current_analysis_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("historical_analyses.id", ondelete="CASCADE"),
        nullable=False,
    )
    previous_analysis_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("historical_analyses.id", ondelete="CASCADE"),
        nullable=False,
    )
    comparison_data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    significant_changes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    improvement_areas: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    decline_areas: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (Index("ix_trend_comparisons_job_id", "job_id"),)
