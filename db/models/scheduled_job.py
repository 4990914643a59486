"""
db/models/scheduled_job.py

Scheduled report jobs and their execution history.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Platform:
    GOOGLE_ANALYTICS = "google-analytics"
    GOOGLE_ADS = "google-ads"
    FACEBOOK_ADS = "facebook-ads"

    ALL = frozenset({GOOGLE_ANALYTICS, GOOGLE_ADS, FACEBOOK_ADS})


class JobExecutionStatus:
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ScheduledJob(Base, TimestampMixin):
    __tablename__ = "scheduled_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    platform: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="google-analytics, google-ads, facebook-ads",
    )
    account_id: Mapped[str] = mapped_column(String(255), nullable=False)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    frequency: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="daily, weekly, monthly",
    )
    time_of_day: Mapped[str] = mapped_column(
        String(8),
        nullable=False,
        default="09:00",
        comment="HH:MM wall-clock time in the job timezone",
    )
    day_of_week: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="0 = Sunday .. 6 = Saturday",
    )
    day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_run: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_run: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    metrics: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    dimensions: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    notification_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    auto_analyze: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    analysis_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="insights",
        comment="insights, recommendations, summary",
    )

    __table_args__ = (
        Index("ix_scheduled_jobs_next_run", "next_run"),
        Index("ix_scheduled_jobs_is_active_next_run", "is_active", "next_run"),
    )


class JobExecution(Base):
    __tablename__ = "job_executions"

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
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=JobExecutionStatus.RUNNING,
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    file_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    analysis_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    rows_fetched: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    execution_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    result_payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Step outcomes recorded by the runner",
    )

    __table_args__ = (
        Index("ix_job_executions_job_id", "job_id"),
        Index("ix_job_executions_status", "status"),
    )
