"""
app/services/unified_metrics_service.py

Unified dashboard: registers metric sources (uploaded files or platform
integrations), normalizes their rows into unified metrics and builds the
cross-source dashboard.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Sequence

from sqlalchemy.orm import Session

from analysis.base import ParsedTable
from analysis.loader import load_table
from app.errors import AnalyticsError, StorageError, internal_error, invalid_argument, not_found
from app.services.integration_service import (
    IntegrationFetchRequest,
    IntegrationService,
    get_integration_service,
)
from app.services.upload_service import get_blob_storage
from db.models.metric_source import MetricSource, UnifiedMetric
from db.repositories.errors import FileStorageError
from db.repositories.metric_source_repository import MetricSourceRepository
from db.repositories.storage import BlobStorage
from unified.aggregator import (
    calculate_summary,
    determine_date_range,
    generate_metric_comparisons,
    generate_time_series,
    generate_unified_insights,
)
from unified.base import GroupBy, MetricPoint, SourceInfo, SourceStatus, SourceType
from unified.normalizer import date_bounds, normalize_table

logger = logging.getLogger(__name__)

MANUAL_PLATFORM = "manual"
SOURCE_PLATFORMS = frozenset({"google-analytics", "google-ads", "facebook-ads", MANUAL_PLATFORM})


@dataclass(frozen=True)
class IntegrationSourceData:
    account_id: str
    access_token: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class AddSourceResult:
    source_id: uuid.UUID
    status: str
    message: str
    row_count: int = 0


def to_source_info(source: MetricSource) -> SourceInfo:
    return SourceInfo(
        id=str(source.id),
        name=source.name,
        type=source.type,
        platform=source.platform,
        status=source.status,
        uploaded_at=source.created_at,
        last_analyzed=source.last_analyzed,
        row_count=source.row_count,
        date_range_start=source.date_range_start,
        date_range_end=source.date_range_end,
    )


def to_metric_point(row: UnifiedMetric) -> MetricPoint:
    return MetricPoint(
        source_id=str(row.source_id),
        source_name=row.source_name,
        platform=row.platform,
        date=row.date,
        metric_name=row.metric_name,
        metric_value=float(row.metric_value),
        metric_type=row.metric_type,
        category=row.category,
    )


class UnifiedMetricsService:
    def __init__(
        self,
        *,
        storage: BlobStorage,
        integration_service: IntegrationService,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._storage = storage
        self._integration_service = integration_service
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def add_source(
        self,
        db: Session,
        *,
        name: str,
        type: str,
        platform: str | None = None,
        file_id: str | None = None,
        integration: IntegrationSourceData | None = None,
    ) -> AddSourceResult:
        if not name or not name.strip():
            raise invalid_argument("MISSING_FIELDS", "Source name is required.", "Give the source a name.")
        if type not in SourceType.ALL:
            raise invalid_argument(
                "INVALID_SOURCE_TYPE",
                f"Source type '{type}' is not supported.",
                "Use 'file' or 'integration'.",
            )
        platform = platform or MANUAL_PLATFORM
        if platform not in SOURCE_PLATFORMS:
            raise invalid_argument(
                "INVALID_PLATFORM",
                f"Platform '{platform}' is not supported.",
                f"Use one of: {', '.join(sorted(SOURCE_PLATFORMS))}.",
            )
        if type == SourceType.FILE and not file_id:
            raise invalid_argument(
                "MISSING_FIELDS",
                "File sources require a file id.",
                "Upload a file first and pass its file_id.",
            )
        if type == SourceType.INTEGRATION and (integration is None or platform == MANUAL_PLATFORM):
            raise invalid_argument(
                "MISSING_FIELDS",
                "Integration sources require a platform and integration data.",
                "Provide the platform, account id, access token and date range.",
            )

        repository = MetricSourceRepository(db)
        source = repository.create_source(
            name=name.strip(),
            type=type,
            platform=platform,
            status=SourceStatus.PROCESSING,
            file_id=file_id,
        )
        db.commit()
        source_id = source.id

        try:
            if type == SourceType.INTEGRATION and integration is not None:
                table = self._fetch_integration_table(platform, integration)
            else:
                table = self._load_file_table(file_id or "")

            points = normalize_table(
                source_id=str(source_id),
                source_name=source.name,
                platform=platform,
                table=table,
            )
            repository.replace_metrics(
                source_id=source_id,
                rows=[
                    UnifiedMetric(
                        source_id=source_id,
                        source_name=point.source_name,
                        platform=point.platform,
                        date=point.date,
                        metric_name=point.metric_name,
                        metric_value=point.metric_value,
                        metric_type=point.metric_type,
                        category=point.category,
                    )
                    for point in points
                ],
            )
            bounds = date_bounds(points)
            if bounds is None and integration is not None:
                bounds = (integration.start_date, integration.end_date)
            repository.mark_active(
                source_id=source_id,
                analyzed_at=self._clock(),
                row_count=table.row_count,
                date_range_start=bounds[0] if bounds else None,
                date_range_end=bounds[1] if bounds else None,
            )
            db.commit()
        except Exception as exc:
            db.rollback()
            error = exc if isinstance(exc, AnalyticsError) else internal_error(
                "UNEXPECTED_ERROR",
                f"Source processing failed: {exc}",
                "Try again. If the problem persists, contact support.",
            )
            repository.mark_error(source_id=source_id, error_message=error.message)
            db.commit()
            logger.warning("Metric source processing failed source_id=%s code=%s", source_id, error.code)
            if error is exc:
                raise
            raise error from exc

        logger.info(
            "Metric source added source_id=%s type=%s platform=%s rows=%s metrics=%s",
            source_id,
            type,
            platform,
            table.row_count,
            len(points),
        )
        return AddSourceResult(
            source_id=source_id,
            status=SourceStatus.ACTIVE,
            message="Source added and processed successfully.",
            row_count=table.row_count,
        )

    def list_sources(self, db: Session, source_ids: Sequence[uuid.UUID] | None = None) -> list[SourceInfo]:
        return [to_source_info(source) for source in MetricSourceRepository(db).list_sources(source_ids)]

    def remove_source(self, db: Session, source_id: uuid.UUID) -> None:
        if not MetricSourceRepository(db).delete_source(source_id):
            raise not_found(
                "SOURCE_NOT_FOUND",
                f"No metric source found with ID: {source_id}",
                "Check the source ID.",
            )
        db.commit()
        logger.info("Metric source removed source_id=%s", source_id)

    def _load_file_table(self, file_id: str) -> ParsedTable:
        try:
            match = next(iter(self._storage.list(file_id)), None)
            if match is None:
                raise not_found(
                    "FILE_NOT_FOUND",
                    f"No file found with ID: {file_id}",
                    "Upload the file again or check the file ID.",
                )
            content = self._storage.download(match.name)
        except FileStorageError as exc:
            raise StorageError("Unable to read the source file from storage.", code="STORAGE_ACCESS_ERROR") from exc
        return load_table(match.name, content)

    def _fetch_integration_table(self, platform: str, integration: IntegrationSourceData) -> ParsedTable:
        fetched = self._integration_service.fetch_data(
            IntegrationFetchRequest(
                platform=platform,
                account_id=integration.account_id,
                access_token=integration.access_token,
                start_date=integration.start_date,
                end_date=integration.end_date,
            )
        )
        return ParsedTable(
            headers=tuple(fetched.headers),
            rows=tuple(tuple(row) for row in fetched.rows),
        )

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def build_dashboard(
        self,
        db: Session,
        *,
        source_ids: Sequence[uuid.UUID] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        metrics: Sequence[str] | None = None,
        group_by: str = GroupBy.DAY,
    ) -> dict[str, Any]:
        if group_by not in GroupBy.ALL:
            raise invalid_argument(
                "INVALID_GROUP_BY",
                f"Grouping '{group_by}' is not supported.",
                "Use day, week or month.",
            )

        repository = MetricSourceRepository(db)
        sources = [to_source_info(source) for source in repository.list_sources(source_ids)]
        if not sources:
            return {
                "sources": [],
                "key_metrics": [],
                "time_series": {},
                "summary": {
                    "total_sources": 0,
                    "date_range": {"start": "", "end": ""},
                    "top_performing_source": {"source_id": "", "source_name": "", "platform": ""},
                    "total_metrics_tracked": 0,
                },
                "insights": [],
            }

        now = self._clock()
        date_range = determine_date_range(sources, start_date, end_date, today=now.date())
        rows = repository.list_metrics(
            source_ids=[uuid.UUID(source.id) for source in sources],
            start=date_range[0],
            end=date_range[1],
            metric_names=metrics,
        )
        points = [to_metric_point(row) for row in rows]

        comparisons = generate_metric_comparisons(points, sources)
        time_series = generate_time_series(points, group_by)
        insights = generate_unified_insights(sources, comparisons, now=now)
        summary = calculate_summary(sources, points, date_range)

        logger.info(
            "Unified dashboard built sources=%s metrics=%s points=%s insights=%s",
            len(sources),
            len(comparisons),
            len(points),
            len(insights),
        )
        return {
            "sources": [source.to_dict() for source in sources],
            "key_metrics": [comparison.to_dict() for comparison in comparisons],
            "time_series": {
                name: [point.to_dict() for point in series] for name, series in time_series.items()
            },
            "summary": summary.to_dict(),
            "insights": [insight.to_dict() for insight in insights],
        }


@lru_cache(maxsize=1)
def get_unified_metrics_service() -> UnifiedMetricsService:
    return UnifiedMetricsService(
        storage=get_blob_storage(),
        integration_service=get_integration_service(),
    )
