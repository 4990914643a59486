"""
db/models/metric_source.py

Sources feeding the unified dashboard and their normalized metric rows.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import BigInteger, Date, DateTime, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class MetricSource(Base, TimestampMixin):
    __tablename__ = "metric_sources"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="file, integration",
    )
    platform: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="manual",
        comment="google-analytics, google-ads, facebook-ads, manual",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="processing",
        comment="active, processing, error",
    )
    file_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_analyzed: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    row_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    date_range_start: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    date_range_end: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    error_message: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    __table_args__ = (Index("ix_metric_sources_created_at", "created_at"),)


class UnifiedMetric(Base):
    __tablename__ = "unified_metrics"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    source_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("metric_sources.id", ondelete="CASCADE"),
        nullable=False,
    )
    source_name: Mapped[str] = mapped_column(String(255), nullable=False)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    metric_name: Mapped[str] = mapped_column(String(255), nullable=False)
    metric_value: Mapped[float] = mapped_column(Float, nullable=False)
    metric_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="count, rate, currency, duration",
    )
    category: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="traffic, engagement, conversion, revenue, advertising",
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_unified_metrics_source_date", "source_id", "date"),
        Index("ix_unified_metrics_metric_name", "metric_name"),
        Index("ix_unified_metrics_date", "date"),
        Index("ix_unified_metrics_category", "category"),
    )
