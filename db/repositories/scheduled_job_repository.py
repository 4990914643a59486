"""
Repository for scheduled jobs, their executions, stored analyses and
trend comparisons.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, delete, func, select
from sqlalchemy.orm import Session

from db.models.historical_analysis import HistoricalAnalysis, TrendComparison
from db.models.scheduled_job import JobExecution, JobExecutionStatus, ScheduledJob


class ScheduledJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def create_job(self, **fields: Any) -> ScheduledJob:
        job = ScheduledJob(**fields)
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> ScheduledJob | None:
        return self._session.get(ScheduledJob, job_id)

    def list_jobs(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        is_active: bool | None = None,
    ) -> tuple[list[ScheduledJob], int]:
        stmt: Select[tuple[ScheduledJob]] = select(ScheduledJob)
        count_stmt = select(func.count()).select_from(ScheduledJob)
        if is_active is not None:
            stmt = stmt.where(ScheduledJob.is_active.is_(is_active))
            count_stmt = count_stmt.where(ScheduledJob.is_active.is_(is_active))

        stmt = stmt.order_by(ScheduledJob.created_at.desc()).limit(max(1, limit)).offset(max(0, offset))
        jobs = list(self._session.scalars(stmt).all())
        total = int(self._session.scalar(count_stmt) or 0)
        return jobs, total

    def list_due_jobs(self, *, now: datetime, limit: int = 10) -> list[ScheduledJob]:
        stmt: Select[tuple[ScheduledJob]] = (
            select(ScheduledJob)
            .where(ScheduledJob.is_active.is_(True))
            .where(ScheduledJob.next_run <= now)
            .order_by(ScheduledJob.next_run.asc())
            .limit(max(1, limit))
        )
        return list(self._session.scalars(stmt).all())

    def is_due(self, *, job_id: uuid.UUID, now: datetime) -> bool:
        """
        Re-read the job's schedule from the database, bypassing rows already
        loaded into the session.
        """
        stmt = (
            select(ScheduledJob.id)
            .where(ScheduledJob.id == job_id)
            .where(ScheduledJob.is_active.is_(True))
            .where(ScheduledJob.next_run <= now)
        )
        return self._session.scalar(stmt) is not None

    def delete_job(self, job_id: uuid.UUID) -> bool:
        job = self.get_job(job_id)
        if job is None:
            return False
        self._session.delete(job)
        self._session.flush()
        return True

    def record_run(self, *, job_id: uuid.UUID, last_run: datetime, next_run: datetime) -> ScheduledJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.last_run = last_run
        job.next_run = next_run
        return job

    # ------------------------------------------------------------------
    # Executions
    # ------------------------------------------------------------------

    def create_execution(self, *, job_id: uuid.UUID) -> JobExecution:
        execution = JobExecution(
            job_id=job_id,
            status=JobExecutionStatus.RUNNING,
            started_at=datetime.now(timezone.utc),
        )
        self._session.add(execution)
        self._session.flush()
        self._session.refresh(execution)
        return execution

    def get_execution(self, execution_id: uuid.UUID) -> JobExecution | None:
        return self._session.get(JobExecution, execution_id)

    def list_executions(
        self,
        *,
        job_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[JobExecution], int]:
        stmt = (
            select(JobExecution)
            .where(JobExecution.job_id == job_id)
            .order_by(JobExecution.started_at.desc())
            .limit(max(1, limit))
            .offset(max(0, offset))
        )
        total = self._session.scalar(
            select(func.count()).select_from(JobExecution).where(JobExecution.job_id == job_id)
        )
        return list(self._session.scalars(stmt).all()), int(total or 0)

    def record_fetch(
        self,
        *,
        execution_id: uuid.UUID,
        file_id: str,
        rows_fetched: int,
    ) -> JobExecution | None:
        execution = self.get_execution(execution_id)
        if execution is None:
            return None
        execution.file_id = file_id
        execution.rows_fetched = rows_fetched
        return execution

    def mark_completed(
        self,
        *,
        execution_id: uuid.UUID,
        execution_time_ms: int,
        analysis_id: uuid.UUID | None = None,
        result_payload: dict[str, Any] | None = None,
    ) -> JobExecution | None:
        execution = self.get_execution(execution_id)
        if execution is None:
            return None
        execution.status = JobExecutionStatus.COMPLETED
        execution.completed_at = datetime.now(timezone.utc)
        execution.execution_time_ms = execution_time_ms
        execution.analysis_id = analysis_id
        execution.result_payload = result_payload
        execution.error_message = None
        return execution

    def mark_failed(
        self,
        *,
        execution_id: uuid.UUID,
        error_message: str,
        execution_time_ms: int,
        result_payload: dict[str, Any] | None = None,
    ) -> JobExecution | None:
        execution = self.get_execution(execution_id)
        if execution is None:
            return None
        execution.status = JobExecutionStatus.FAILED
        execution.completed_at = datetime.now(timezone.utc)
        execution.execution_time_ms = execution_time_ms
        execution.error_message = error_message
        if result_payload is not None:
            execution.result_payload = result_payload
        return execution

    # ------------------------------------------------------------------
    # Historical analyses and trends
    # ------------------------------------------------------------------

    def create_analysis(self, **fields: Any) -> HistoricalAnalysis:
        analysis = HistoricalAnalysis(**fields)
        self._session.add(analysis)
        self._session.flush()
        self._session.refresh(analysis)
        return analysis

    def get_analysis(self, analysis_id: uuid.UUID) -> HistoricalAnalysis | None:
        return self._session.get(HistoricalAnalysis, analysis_id)

    def list_analyses(
        self,
        *,
        job_id: uuid.UUID,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[HistoricalAnalysis], int]:
        stmt = (
            select(HistoricalAnalysis)
            .where(HistoricalAnalysis.job_id == job_id)
            .order_by(HistoricalAnalysis.created_at.desc())
            .limit(max(1, limit))
            .offset(max(0, offset))
        )
        total = self._session.scalar(
            select(func.count()).select_from(HistoricalAnalysis).where(HistoricalAnalysis.job_id == job_id)
        )
        return list(self._session.scalars(stmt).all()), int(total or 0)

    def latest_analyses(self, *, job_id: uuid.UUID, limit: int = 2) -> list[HistoricalAnalysis]:
        analyses, _ = self.list_analyses(job_id=job_id, limit=limit)
        return analyses

    def create_trend_comparison(self, **fields: Any) -> TrendComparison:
        comparison = TrendComparison(**fields)
        self._session.add(comparison)
        self._session.flush()
        self._session.refresh(comparison)
        return comparison

    def delete_job_history(self, job_id: uuid.UUID) -> None:
        # Explicit deletes keep the cascade working on backends without FK enforcement.
        self._session.execute(delete(TrendComparison).where(TrendComparison.job_id == job_id))
        self._session.execute(delete(HistoricalAnalysis).where(HistoricalAnalysis.job_id == job_id))
        self._session.execute(delete(JobExecution).where(JobExecution.job_id == job_id))
