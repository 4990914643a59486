"""
Repository for unified-dashboard sources and their metric rows.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Iterable, Sequence

from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from db.models.metric_source import MetricSource, UnifiedMetric


class MetricSourceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_source(
        self,
        *,
        name: str,
        type: str,
        platform: str,
        status: str,
        file_id: str | None = None,
    ) -> MetricSource:
        source = MetricSource(
            name=name,
            type=type,
            platform=platform,
            status=status,
            file_id=file_id,
        )
        self._session.add(source)
        self._session.flush()
        self._session.refresh(source)
        return source

    def get_source(self, source_id: uuid.UUID) -> MetricSource | None:
        return self._session.get(MetricSource, source_id)

    def list_sources(self, source_ids: Sequence[uuid.UUID] | None = None) -> list[MetricSource]:
        stmt: Select[tuple[MetricSource]] = select(MetricSource)
        if source_ids:
            stmt = stmt.where(MetricSource.id.in_(list(source_ids)))
        stmt = stmt.order_by(MetricSource.created_at.desc())
        return list(self._session.scalars(stmt).all())

    def mark_active(
        self,
        *,
        source_id: uuid.UUID,
        analyzed_at: datetime,
        row_count: int,
        date_range_start: date | None,
        date_range_end: date | None,
    ) -> MetricSource | None:
        source = self.get_source(source_id)
        if source is None:
            return None
        source.status = "active"
        source.last_analyzed = analyzed_at
        source.row_count = row_count
        source.date_range_start = date_range_start
        source.date_range_end = date_range_end
        source.error_message = None
        return source

    def mark_error(self, *, source_id: uuid.UUID, error_message: str) -> MetricSource | None:
        source = self.get_source(source_id)
        if source is None:
            return None
        source.status = "error"
        source.error_message = error_message[:1000]
        return source

    def delete_source(self, source_id: uuid.UUID) -> bool:
        self._session.execute(delete(UnifiedMetric).where(UnifiedMetric.source_id == source_id))
        source = self.get_source(source_id)
        if source is None:
            return False
        self._session.delete(source)
        self._session.flush()
        return True

    # ------------------------------------------------------------------
    # Metric rows
    # ------------------------------------------------------------------

    def replace_metrics(self, *, source_id: uuid.UUID, rows: Iterable[UnifiedMetric]) -> int:
        self._session.execute(delete(UnifiedMetric).where(UnifiedMetric.source_id == source_id))
        items = list(rows)
        self._session.add_all(items)
        self._session.flush()
        return len(items)

    def list_metrics(
        self,
        *,
        source_ids: Sequence[uuid.UUID],
        start: date,
        end: date,
        metric_names: Sequence[str] | None = None,
    ) -> list[UnifiedMetric]:
        if not source_ids:
            return []
        stmt: Select[tuple[UnifiedMetric]] = (
            select(UnifiedMetric)
            .where(UnifiedMetric.source_id.in_(list(source_ids)))
            .where(UnifiedMetric.date >= start)
            .where(UnifiedMetric.date <= end)
        )
        if metric_names:
            stmt = stmt.where(UnifiedMetric.metric_name.in_(list(metric_names)))
        stmt = stmt.order_by(UnifiedMetric.date, UnifiedMetric.source_id, UnifiedMetric.metric_name)
        return list(self._session.scalars(stmt).all())
