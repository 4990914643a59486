"""
app/services/schedule_service.py

Management of scheduled report jobs: CRUD, execution history, stored
analyses and period-over-period trend comparisons.

Repositories only flush; this service commits.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Mapping

from sqlalchemy.orm import Session

from analysis.base import AnalysisType
from app.connectors.base import BasePlatformConnector
from app.connectors.facebook_ads import FacebookAdsConnector
from app.connectors.google_ads import GoogleAdsConnector
from app.connectors.google_analytics import GoogleAnalyticsConnector
from app.errors import AnalyticsError, invalid_argument, not_found
from db.models.historical_analysis import HistoricalAnalysis, TrendComparison
from db.models.scheduled_job import JobExecution, Platform, ScheduledJob
from db.repositories.scheduled_job_repository import ScheduledJobRepository
from scheduling.calculator import calculate_next_run, validate_cadence
from scheduling.trends import TrendSummary, compare_analyses

logger = logging.getLogger(__name__)

_CONNECTOR_TYPES: dict[str, type[BasePlatformConnector]] = {
    GoogleAnalyticsConnector.platform: GoogleAnalyticsConnector,
    GoogleAdsConnector.platform: GoogleAdsConnector,
    FacebookAdsConnector.platform: FacebookAdsConnector,
}

REQUIRED_CREATE_FIELDS = ("name", "platform", "account_id", "access_token", "frequency", "time_of_day")
CADENCE_FIELDS = frozenset({"frequency", "time_of_day", "day_of_week", "day_of_month", "timezone"})
UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "metrics",
        "dimensions",
        "notification_email",
        "auto_analyze",
        "analysis_type",
        "is_active",
    }
    | CADENCE_FIELDS
)


def default_fields_for(platform: str) -> tuple[list[str], list[str]]:
    connector_type = _CONNECTOR_TYPES[platform]
    return list(connector_type.default_metrics), list(connector_type.default_dimensions)


def job_not_found(job_id: uuid.UUID) -> AnalyticsError:
    return not_found(
        "JOB_NOT_FOUND",
        f"No scheduled job found with ID: {job_id}",
        "Check the job ID and try again.",
    )


def _validate_analysis_type(value: str) -> None:
    if value not in AnalysisType.ALL:
        raise invalid_argument(
            "INVALID_ANALYSIS_TYPE",
            f"Analysis type '{value}' is not supported.",
            f"Use one of: {', '.join(sorted(AnalysisType.ALL))}.",
        )


class ScheduleService:
    """
    Validates cadences and keeps next_run consistent with them.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def create_job(self, db: Session, data: Mapping[str, Any]) -> ScheduledJob:
        missing = [name for name in REQUIRED_CREATE_FIELDS if not data.get(name)]
        if missing:
            raise invalid_argument(
                "MISSING_FIELDS",
                f"Missing required fields: {', '.join(missing)}.",
                "Provide a name, platform, account id, access token, frequency and time of day.",
            )

        platform = data["platform"]
        if platform not in Platform.ALL:
            raise invalid_argument(
                "INVALID_PLATFORM",
                f"Platform '{platform}' is not supported.",
                f"Use one of: {', '.join(sorted(Platform.ALL))}.",
            )

        timezone_name = data.get("timezone") or "UTC"
        validate_cadence(
            data["frequency"],
            data["time_of_day"],
            data.get("day_of_week"),
            data.get("day_of_month"),
            timezone_name,
        )
        analysis_type = data.get("analysis_type") or AnalysisType.INSIGHTS
        _validate_analysis_type(analysis_type)

        default_metrics, default_dimensions = default_fields_for(platform)
        next_run = calculate_next_run(
            data["frequency"],
            data["time_of_day"],
            data.get("day_of_week"),
            data.get("day_of_month"),
            timezone_name,
            now=self._clock(),
        )

        repository = ScheduledJobRepository(db)
        job = repository.create_job(
            name=data["name"],
            description=data.get("description"),
            platform=platform,
            account_id=data["account_id"],
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            frequency=data["frequency"],
            time_of_day=data["time_of_day"],
            day_of_week=data.get("day_of_week"),
            day_of_month=data.get("day_of_month"),
            timezone=timezone_name,
            is_active=True,
            next_run=next_run,
            metrics=list(data.get("metrics") or default_metrics),
            dimensions=list(data.get("dimensions") or default_dimensions),
            notification_email=data.get("notification_email"),
            auto_analyze=data.get("auto_analyze", True) is not False,
            analysis_type=analysis_type,
        )
        db.commit()
        logger.info(
            "Scheduled job created job_id=%s platform=%s frequency=%s next_run=%s",
            job.id,
            job.platform,
            job.frequency,
            job.next_run.isoformat(),
        )
        return job

    def get_job(self, db: Session, job_id: uuid.UUID) -> ScheduledJob:
        job = ScheduledJobRepository(db).get_job(job_id)
        if job is None:
            raise job_not_found(job_id)
        return job

    def list_jobs(self, db: Session, *, limit: int = 50, offset: int = 0) -> tuple[list[ScheduledJob], int]:
        return ScheduledJobRepository(db).list_jobs(limit=limit, offset=offset)

    def update_job(self, db: Session, job_id: uuid.UUID, changes: Mapping[str, Any]) -> ScheduledJob:
        job = self.get_job(db, job_id)
        changes = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if "timezone" in changes and not changes["timezone"]:
            changes["timezone"] = "UTC"

        if "analysis_type" in changes:
            _validate_analysis_type(changes["analysis_type"])

        cadence_changed = bool(CADENCE_FIELDS & changes.keys())
        if cadence_changed:
            merged = {name: changes.get(name, getattr(job, name)) for name in CADENCE_FIELDS}
            merged["timezone"] = merged["timezone"] or "UTC"
            validate_cadence(
                merged["frequency"],
                merged["time_of_day"],
                merged["day_of_week"],
                merged["day_of_month"],
                merged["timezone"],
            )

        for name, value in changes.items():
            setattr(job, name, value)

        if cadence_changed:
            job.next_run = calculate_next_run(
                job.frequency,
                job.time_of_day,
                job.day_of_week,
                job.day_of_month,
                job.timezone,
                now=self._clock(),
            )

        db.commit()
        logger.info(
            "Scheduled job updated job_id=%s fields=%s cadence_changed=%s",
            job_id,
            ",".join(sorted(changes)),
            cadence_changed,
        )
        return job

    def delete_job(self, db: Session, job_id: uuid.UUID) -> None:
        repository = ScheduledJobRepository(db)
        if repository.get_job(job_id) is None:
            raise job_not_found(job_id)
        repository.delete_job_history(job_id)
        repository.delete_job(job_id)
        db.commit()
        logger.info("Scheduled job deleted job_id=%s", job_id)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def list_executions(
        self,
        db: Session,
        job_id: uuid.UUID,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[JobExecution], int]:
        self.get_job(db, job_id)
        return ScheduledJobRepository(db).list_executions(job_id=job_id, limit=limit, offset=offset)

    def list_analyses(
        self,
        db: Session,
        job_id: uuid.UUID,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[HistoricalAnalysis], int]:
        self.get_job(db, job_id)
        return ScheduledJobRepository(db).list_analyses(job_id=job_id, limit=limit, offset=offset)

    def compare_trends(
        self,
        db: Session,
        job_id: uuid.UUID,
        *,
        current_analysis_id: uuid.UUID | None = None,
        previous_analysis_id: uuid.UUID | None = None,
    ) -> tuple[TrendComparison, TrendSummary]:
        """
        Compare two stored analyses of the job. Without explicit ids the two
        most recent analyses are used.
        """

        repository = ScheduledJobRepository(db)
        self.get_job(db, job_id)

        if current_analysis_id is None or previous_analysis_id is None:
            latest = repository.latest_analyses(job_id=job_id, limit=2)
            if len(latest) < 2:
                raise not_found(
                    "ANALYSIS_NOT_FOUND",
                    "At least two stored analyses are required for a trend comparison.",
                    "Run the job again or provide both analysis IDs.",
                )
            current, previous = latest[0], latest[1]
        else:
            current = repository.get_analysis(current_analysis_id)
            previous = repository.get_analysis(previous_analysis_id)
            if (
                current is None
                or previous is None
                or current.job_id != job_id
                or previous.job_id != job_id
            ):
                raise not_found(
                    "ANALYSIS_NOT_FOUND",
                    "One or both analyses could not be found.",
                    "Check the analysis IDs.",
                )

        summary = compare_analyses(
            current.key_metrics,
            previous.key_metrics,
            comparison_period={
                "current": {
                    "start": current.date_range_start.isoformat(),
                    "end": current.date_range_end.isoformat(),
                },
                "previous": {
                    "start": previous.date_range_start.isoformat(),
                    "end": previous.date_range_end.isoformat(),
                },
            },
        )

        comparison = repository.create_trend_comparison(
            job_id=job_id,
            current_analysis_id=current.id,
            previous_analysis_id=previous.id,
            comparison_data=summary.to_dict(),
            significant_changes=summary.significant_changes,
            improvement_areas=summary.improvement_areas,
            decline_areas=summary.decline_areas,
        )
        db.commit()
        logger.info(
            "Trend comparison stored job_id=%s comparison_id=%s significant=%s",
            job_id,
            comparison.id,
            summary.significant_changes,
        )
        return comparison, summary


@lru_cache(maxsize=1)
def get_schedule_service() -> ScheduleService:
    return ScheduleService()
