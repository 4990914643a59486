"""
app/services/job_runner.py

Execution of scheduled report jobs.

The poll loop claims due jobs, records a ``running`` execution for each and
hands the job to a bounded worker pool without waiting for it. A worker runs

    fetch (integration) -> analyze (when auto_analyze) -> store history
        -> notify -> mark execution completed | failed -> reschedule

A job id is claimed in-process for the whole run, so a manual trigger and a
poll can never execute the same job concurrently.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from analysis.base import AnalysisRequest, AnalysisResult, ReportType
from analysis.orchestrator import AnalysisOrchestrator
from app.config import get_scheduler_settings
from app.errors import AnalyticsError, failed_precondition
from app.services.analysis_service import get_analysis_orchestrator
from app.services.integration_service import (
    IntegrationFetchRequest,
    IntegrationService,
    get_integration_service,
)
from app.services.schedule_service import job_not_found
from db.models.scheduled_job import Platform, ScheduledJob
from db.repositories.scheduled_job_repository import ScheduledJobRepository
from db.session import SessionLocal
from scheduling.calculator import calculate_next_run, calculate_report_date_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobSnapshot:
    """
    Detached copy of the job fields a run needs, so workers never touch ORM
    instances bound to another session.
    """

    id: uuid.UUID
    name: str
    platform: str
    account_id: str
    access_token: str
    refresh_token: str | None
    frequency: str
    time_of_day: str
    day_of_week: int | None
    day_of_month: int | None
    timezone: str
    metrics: tuple[str, ...]
    dimensions: tuple[str, ...]
    notification_email: str | None
    auto_analyze: bool
    analysis_type: str

    @classmethod
    def from_model(cls, job: ScheduledJob) -> "JobSnapshot":
        return cls(
            id=job.id,
            name=job.name,
            platform=job.platform,
            account_id=job.account_id,
            access_token=job.access_token,
            refresh_token=job.refresh_token,
            frequency=job.frequency,
            time_of_day=job.time_of_day,
            day_of_week=job.day_of_week,
            day_of_month=job.day_of_month,
            timezone=job.timezone,
            metrics=tuple(job.metrics or ()),
            dimensions=tuple(job.dimensions or ()),
            notification_email=job.notification_email,
            auto_analyze=bool(job.auto_analyze),
            analysis_type=job.analysis_type,
        )


def report_type_for(platform: str) -> str:
    return ReportType.GA4 if platform == Platform.GOOGLE_ANALYTICS else ReportType.ADS


class ScheduledJobRunner:
    def __init__(
        self,
        *,
        integration_service: IntegrationService,
        orchestrator_factory: Callable[[], AnalysisOrchestrator],
        session_factory: Callable[[], Session] = SessionLocal,
        batch_size: int = 10,
        max_workers: int = 4,
        clock: Callable[[], datetime] | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._integration_service = integration_service
        self._orchestrator_factory = orchestrator_factory
        self._session_factory = session_factory
        self._batch_size = max(1, batch_size)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="scheduled-job",
        )
        self._in_flight: set[uuid.UUID] = set()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # In-flight guard
    # ------------------------------------------------------------------

    def _claim(self, job_id: uuid.UUID) -> bool:
        with self._lock:
            if job_id in self._in_flight:
                return False
            self._in_flight.add(job_id)
            return True

    def _release(self, job_id: uuid.UUID) -> None:
        with self._lock:
            self._in_flight.discard(job_id)

    def is_running(self, job_id: uuid.UUID) -> bool:
        with self._lock:
            return job_id in self._in_flight

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def poll_due_jobs(self) -> int:
        """
        Submit every due job that is not already running. Returns the
        number of submitted jobs without waiting for any of them.
        """

        now = self._clock()
        submitted = 0
        with self._session_scope() as db:
            repository = ScheduledJobRepository(db)
            due_jobs = repository.list_due_jobs(now=now, limit=self._batch_size)
            for job in due_jobs:
                if not self._claim(job.id):
                    logger.info("Scheduled job still running, skipping job_id=%s", job.id)
                    continue
                # a worker may have rescheduled the job after the due query ran
                if not repository.is_due(job_id=job.id, now=now):
                    self._release(job.id)
                    logger.info("Scheduled job no longer due, skipping job_id=%s", job.id)
                    continue
                try:
                    execution = repository.create_execution(job_id=job.id)
                    db.commit()
                except Exception:
                    db.rollback()
                    self._release(job.id)
                    logger.exception("Failed to start execution job_id=%s", job.id)
                    continue
                self._submit(JobSnapshot.from_model(job), execution.id)
                submitted += 1

        if submitted:
            logger.info("Scheduler poll submitted=%s due=%s", submitted, len(due_jobs))
        return submitted

    def trigger(self, job_id: uuid.UUID) -> uuid.UUID:
        """
        Run a job now, regardless of its schedule. Returns the execution id.
        """

        with self._session_scope() as db:
            repository = ScheduledJobRepository(db)
            job = repository.get_job(job_id)
            if job is None:
                raise job_not_found(job_id)
            if not self._claim(job_id):
                raise failed_precondition(
                    "JOB_ALREADY_RUNNING",
                    f"Scheduled job {job_id} is already running.",
                    "Wait for the current execution to finish and try again.",
                )
            try:
                execution = repository.create_execution(job_id=job_id)
                db.commit()
            except Exception:
                db.rollback()
                self._release(job_id)
                raise
            snapshot = JobSnapshot.from_model(job)

        self._submit(snapshot, execution.id)
        logger.info("Scheduled job triggered job_id=%s execution_id=%s", job_id, execution.id)
        return execution.id

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _submit(self, job: JobSnapshot, execution_id: uuid.UUID) -> Future:
        try:
            return self._executor.submit(self._run_claimed, job, execution_id)
        except RuntimeError:
            self._release(job.id)
            raise

    def _run_claimed(self, job: JobSnapshot, execution_id: uuid.UUID) -> None:
        try:
            self.run_job(job, execution_id)
        finally:
            self._release(job.id)

    # ------------------------------------------------------------------
    # One run
    # ------------------------------------------------------------------

    def run_job(self, job: JobSnapshot, execution_id: uuid.UUID) -> None:
        started = time.monotonic()
        start_date, end_date = calculate_report_date_range(job.frequency, self._clock().date())
        steps: dict[str, str] = {}

        try:
            fetched = self._integration_service.fetch_data(
                IntegrationFetchRequest(
                    platform=job.platform,
                    account_id=job.account_id,
                    access_token=job.access_token,
                    refresh_token=job.refresh_token,
                    start_date=start_date,
                    end_date=end_date,
                    metrics=job.metrics,
                    dimensions=job.dimensions,
                )
            )
            steps["fetch"] = "completed"
            with self._session_scope() as db:
                ScheduledJobRepository(db).record_fetch(
                    execution_id=execution_id,
                    file_id=fetched.file_id,
                    rows_fetched=fetched.total_rows,
                )
                db.commit()

            analysis_id = None
            if job.auto_analyze:
                result = self._orchestrator_factory().analyze(
                    AnalysisRequest(
                        file_id=fetched.file_id,
                        report_type=report_type_for(job.platform),
                        analysis_type=job.analysis_type,
                    )
                )
                steps["analyze"] = "completed"
                analysis_id = self._store_analysis(
                    job,
                    execution_id,
                    fetched.file_id,
                    fetched.total_rows,
                    result,
                    start_date,
                    end_date,
                )
                if job.notification_email:
                    self._send_notification(job, result, start_date, end_date)
                    steps["notify"] = "completed"
            else:
                steps["analyze"] = "skipped"

            with self._session_scope() as db:
                repository = ScheduledJobRepository(db)
                repository.mark_completed(
                    execution_id=execution_id,
                    execution_time_ms=_elapsed_ms(started),
                    analysis_id=analysis_id,
                    result_payload={"steps": steps, "date_range": [start_date.isoformat(), end_date.isoformat()]},
                )
                self._reschedule(repository, job)
                db.commit()

            logger.info(
                "Scheduled job completed job_id=%s execution_id=%s rows=%s analysis_id=%s",
                job.id,
                execution_id,
                fetched.total_rows,
                analysis_id,
            )
        except Exception as exc:
            logger.exception("Scheduled job failed job_id=%s execution_id=%s", job.id, execution_id)
            message = exc.message if isinstance(exc, AnalyticsError) else str(exc) or type(exc).__name__
            self._record_failure(job, execution_id, message, steps, started)

    def _record_failure(
        self,
        job: JobSnapshot,
        execution_id: uuid.UUID,
        message: str,
        steps: dict[str, str],
        started: float,
    ) -> None:
        try:
            with self._session_scope() as db:
                repository = ScheduledJobRepository(db)
                repository.mark_failed(
                    execution_id=execution_id,
                    error_message=message,
                    execution_time_ms=_elapsed_ms(started),
                    result_payload={"steps": steps},
                )
                self._reschedule(repository, job)
                db.commit()
        except Exception:
            # runs on a worker thread whose Future is never read
            logger.exception(
                "Failed to record job failure job_id=%s execution_id=%s",
                job.id,
                execution_id,
            )

    def _store_analysis(
        self,
        job: JobSnapshot,
        execution_id: uuid.UUID,
        file_id: str,
        total_rows: int,
        result: AnalysisResult,
        start_date: date,
        end_date: date,
    ) -> uuid.UUID:
        with self._session_scope() as db:
            analysis = ScheduledJobRepository(db).create_analysis(
                job_id=job.id,
                execution_id=execution_id,
                file_id=file_id,
                analysis_data=result.to_dict(),
                date_range_start=start_date,
                date_range_end=end_date,
                total_rows=total_rows,
                key_metrics=dict(result.key_metrics),
                insights_count=len(result.insights),
                recommendations_count=len(result.recommendations),
            )
            db.commit()
            return analysis.id

    def _reschedule(self, repository: ScheduledJobRepository, job: JobSnapshot) -> None:
        now = self._clock()
        next_run = calculate_next_run(
            job.frequency,
            job.time_of_day,
            job.day_of_week,
            job.day_of_month,
            job.timezone,
            now=now,
        )
        repository.record_run(job_id=job.id, last_run=now, next_run=next_run)

    @staticmethod
    def _send_notification(job: JobSnapshot, result: AnalysisResult, start_date: date, end_date: date) -> None:
        # Email delivery is not wired up; the notification is logged.
        logger.info(
            "Notification job=%s recipient=%s date_range=%s..%s insights=%s recommendations=%s summary=%s",
            job.name,
            job.notification_email,
            start_date.isoformat(),
            end_date.isoformat(),
            len(result.insights),
            len(result.recommendations),
            result.summary,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


@lru_cache(maxsize=1)
def get_job_runner() -> ScheduledJobRunner:
    """
    Build and cache the runner with env-driven settings.
    """
    settings = get_scheduler_settings()
    return ScheduledJobRunner(
        integration_service=get_integration_service(),
        orchestrator_factory=get_analysis_orchestrator,
        batch_size=settings.batch_size,
        max_workers=settings.max_workers,
    )
