"""
tests/test_job_runner.py

ScheduledJobRunner tests. The repository is replaced with an in-memory
recorder and the worker pool with an executor the test drives by hand, so
no database or threads are involved.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable

import pytest

from analysis.base import AnalysisResult, DataSummary, Insight
from app.errors import AnalyticsError, TokenExpiredError
from app.services import job_runner as job_runner_module
from app.services.integration_service import IntegrationFetchResult
from app.services.job_runner import ScheduledJobRunner, report_type_for

NOW = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        pass


class RecordingRepository:
    """Stands in for ScheduledJobRepository; state is shared across sessions."""

    jobs: dict[uuid.UUID, Any] = {}
    executions: dict[uuid.UUID, dict[str, Any]] = {}
    analyses: list[dict[str, Any]] = []
    runs: list[dict[str, Any]] = []

    def __init__(self, session: FakeSession) -> None:
        self.session = session

    @classmethod
    def reset(cls) -> None:
        cls.jobs, cls.executions, cls.analyses, cls.runs = {}, {}, [], []

    def get_job(self, job_id: uuid.UUID):
        return self.jobs.get(job_id)

    def list_due_jobs(self, *, now: datetime, limit: int = 10):
        due = [job for job in self.jobs.values() if job.is_active and job.next_run <= now]
        return due[:limit]

    def is_due(self, *, job_id: uuid.UUID, now: datetime) -> bool:
        job = self.jobs.get(job_id)
        return job is not None and job.is_active and job.next_run <= now

    def create_execution(self, *, job_id: uuid.UUID):
        execution_id = uuid.uuid4()
        self.executions[execution_id] = {"job_id": job_id, "status": "running"}
        return SimpleNamespace(id=execution_id)

    def record_fetch(self, *, execution_id: uuid.UUID, file_id: str, rows_fetched: int) -> None:
        self.executions[execution_id].update(file_id=file_id, rows_fetched=rows_fetched)

    def mark_completed(self, *, execution_id: uuid.UUID, **fields: Any) -> None:
        self.executions[execution_id].update(status="completed", **fields)

    def mark_failed(self, *, execution_id: uuid.UUID, **fields: Any) -> None:
        self.executions[execution_id].update(status="failed", **fields)

    def create_analysis(self, **fields: Any):
        analysis_id = uuid.uuid4()
        self.analyses.append({"id": analysis_id, **fields})
        return SimpleNamespace(id=analysis_id)

    def record_run(self, *, job_id: uuid.UUID, last_run: datetime, next_run: datetime) -> None:
        self.runs.append({"job_id": job_id, "last_run": last_run, "next_run": next_run})
        job = self.jobs.get(job_id)
        if job is not None:
            job.last_run, job.next_run = last_run, next_run


class ManualExecutor:
    """Queues submitted work until ``run_all`` is called."""

    def __init__(self) -> None:
        self.pending: list[tuple[Callable[..., Any], tuple]] = []

    def submit(self, fn: Callable[..., Any], *args: Any):
        self.pending.append((fn, args))
        return None

    def run_all(self) -> None:
        while self.pending:
            fn, args = self.pending.pop(0)
            fn(*args)

    def shutdown(self, wait: bool = True) -> None:
        self.pending.clear()


class FakeIntegrationService:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.requests: list[Any] = []

    def fetch_data(self, request) -> IntegrationFetchResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return IntegrationFetchResult(
            file_id="f" * 32,
            file_name="google-ads.csv",
            total_rows=2,
            headers=["date", "clicks"],
            uploaded_at=NOW,
        )


class FakeOrchestrator:
    def __init__(self) -> None:
        self.requests: list[Any] = []

    def analyze(self, request) -> AnalysisResult:
        self.requests.append(request)
        return AnalysisResult(
            insights=(Insight(category="Traffic", title="t", description="d", impact="low"),),
            recommendations=(),
            summary="Clicks are steady.",
            key_metrics={"clicks": 22.0},
            charts=(),
            headers=("date", "clicks"),
            rows=(("2024-01-01", "10"), ("2024-01-02", "12")),
            data_summary=DataSummary(total_rows=2, filtered_rows=2),
        )


def _job(**overrides: Any) -> SimpleNamespace:
    values = {
        "id": uuid.uuid4(),
        "name": "Weekly ads",
        "platform": "google-ads",
        "account_id": "123",
        "access_token": "token",
        "refresh_token": None,
        "frequency": "daily",
        "time_of_day": "09:00",
        "day_of_week": None,
        "day_of_month": None,
        "timezone": "UTC",
        "metrics": ["metrics.clicks"],
        "dimensions": [],
        "notification_email": "team@example.com",
        "auto_analyze": True,
        "analysis_type": "insights",
        "is_active": True,
        "next_run": datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def repository(monkeypatch: pytest.MonkeyPatch) -> type[RecordingRepository]:
    RecordingRepository.reset()
    monkeypatch.setattr(job_runner_module, "ScheduledJobRepository", RecordingRepository)
    return RecordingRepository


@pytest.fixture()
def executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture()
def orchestrator() -> FakeOrchestrator:
    return FakeOrchestrator()


def _runner(
    executor: ManualExecutor,
    orchestrator: FakeOrchestrator,
    integration: FakeIntegrationService | None = None,
) -> ScheduledJobRunner:
    return ScheduledJobRunner(
        integration_service=integration or FakeIntegrationService(),
        orchestrator_factory=lambda: orchestrator,
        session_factory=FakeSession,
        clock=lambda: NOW,
        executor=executor,
    )


# ---------------------------------------------------------------------------
# Poll loop
# ---------------------------------------------------------------------------


class TestPollDueJobs:
    def test_submits_only_due_active_jobs(self, repository, executor, orchestrator) -> None:
        due = _job()
        future = _job(next_run=datetime(2024, 1, 2, tzinfo=timezone.utc))
        inactive = _job(is_active=False)
        for job in (due, future, inactive):
            repository.jobs[job.id] = job

        runner = _runner(executor, orchestrator)

        assert runner.poll_due_jobs() == 1
        assert [execution["job_id"] for execution in repository.executions.values()] == [due.id]
        assert runner.is_running(due.id)

    def test_successful_run_records_everything(self, repository, executor, orchestrator) -> None:
        job = _job()
        repository.jobs[job.id] = job
        integration = FakeIntegrationService()
        runner = _runner(executor, orchestrator, integration)

        runner.poll_due_jobs()
        executor.run_all()

        execution = next(iter(repository.executions.values()))
        assert execution["status"] == "completed"
        assert execution["rows_fetched"] == 2
        assert execution["result_payload"]["steps"] == {"fetch": "completed", "analyze": "completed", "notify": "completed"}
        assert execution["analysis_id"] == repository.analyses[0]["id"]

        fetch_request = integration.requests[0]
        assert (fetch_request.start_date, fetch_request.end_date) == (date(2023, 12, 31), date(2024, 1, 1))
        assert orchestrator.requests[0].report_type == "ads"

        analysis = repository.analyses[0]
        assert analysis["key_metrics"] == {"clicks": 22.0}
        assert analysis["insights_count"] == 1
        assert analysis["analysis_data"]["summary"] == "Clicks are steady."

        assert repository.runs == [
            {"job_id": job.id, "last_run": NOW, "next_run": datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)}
        ]
        assert not runner.is_running(job.id)

    def test_running_job_is_skipped(self, repository, executor, orchestrator) -> None:
        job = _job()
        repository.jobs[job.id] = job
        runner = _runner(executor, orchestrator)

        assert runner.poll_due_jobs() == 1
        assert runner.poll_due_jobs() == 0
        assert len(repository.executions) == 1

    def test_job_rescheduled_after_due_query_is_not_resubmitted(
        self,
        repository,
        executor,
        orchestrator,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        job = _job()
        repository.jobs[job.id] = job
        runner = _runner(executor, orchestrator)
        assert runner.poll_due_jobs() == 1

        class FinishAfterQueryRepository(RecordingRepository):
            def list_due_jobs(self, *, now: datetime, limit: int = 10):
                due = super().list_due_jobs(now=now, limit=limit)
                # the in-flight run completes and reschedules before the claim
                executor.run_all()
                return due

        monkeypatch.setattr(job_runner_module, "ScheduledJobRepository", FinishAfterQueryRepository)

        assert runner.poll_due_jobs() == 0
        assert job.next_run == datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)
        assert len(repository.executions) == 1
        assert not runner.is_running(job.id)


# ---------------------------------------------------------------------------
# One run
# ---------------------------------------------------------------------------


class TestRunOutcomes:
    def test_fetch_failure_marks_execution_failed_and_reschedules(self, repository, executor, orchestrator) -> None:
        job = _job()
        repository.jobs[job.id] = job
        runner = _runner(executor, orchestrator, FakeIntegrationService(error=TokenExpiredError("Google Ads")))

        runner.poll_due_jobs()
        executor.run_all()

        execution = next(iter(repository.executions.values()))
        assert execution["status"] == "failed"
        assert "expired" in execution["error_message"]
        assert execution["result_payload"] == {"steps": {}}
        assert orchestrator.requests == []
        assert len(repository.runs) == 1
        assert not runner.is_running(job.id)

    def test_failure_bookkeeping_error_does_not_escape_worker(
        self,
        repository,
        executor,
        orchestrator,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        class BrokenFailureRepository(RecordingRepository):
            def mark_failed(self, *, execution_id: uuid.UUID, **fields: Any) -> None:
                raise RuntimeError("database went away")

        monkeypatch.setattr(job_runner_module, "ScheduledJobRepository", BrokenFailureRepository)
        job = _job()
        repository.jobs[job.id] = job
        runner = _runner(executor, orchestrator, FakeIntegrationService(error=TokenExpiredError("Google Ads")))

        runner.poll_due_jobs()
        executor.run_all()

        assert "Failed to record job failure" in caplog.text
        assert not runner.is_running(job.id)

    def test_auto_analyze_off_skips_analysis(self, repository, executor, orchestrator) -> None:
        job = _job(auto_analyze=False)
        repository.jobs[job.id] = job
        runner = _runner(executor, orchestrator)

        runner.poll_due_jobs()
        executor.run_all()

        execution = next(iter(repository.executions.values()))
        assert execution["status"] == "completed"
        assert execution["result_payload"]["steps"] == {"fetch": "completed", "analyze": "skipped"}
        assert repository.analyses == []
        assert orchestrator.requests == []

    def test_ga_jobs_use_ga4_report_type(self) -> None:
        assert report_type_for("google-analytics") == "ga4"
        assert report_type_for("facebook-ads") == "ads"


# ---------------------------------------------------------------------------
# Manual trigger
# ---------------------------------------------------------------------------


class TestTrigger:
    def test_trigger_runs_regardless_of_schedule(self, repository, executor, orchestrator) -> None:
        job = _job(next_run=datetime(2030, 1, 1, tzinfo=timezone.utc))
        repository.jobs[job.id] = job
        runner = _runner(executor, orchestrator)

        execution_id = runner.trigger(job.id)
        executor.run_all()

        assert repository.executions[execution_id]["status"] == "completed"

    def test_unknown_job(self, executor, orchestrator) -> None:
        with pytest.raises(AnalyticsError) as ctx:
            _runner(executor, orchestrator).trigger(uuid.uuid4())

        assert ctx.value.code == "JOB_NOT_FOUND"
        assert ctx.value.http_status == 404

    def test_concurrent_trigger_is_rejected(self, repository, executor, orchestrator) -> None:
        job = _job()
        repository.jobs[job.id] = job
        runner = _runner(executor, orchestrator)

        runner.trigger(job.id)
        with pytest.raises(AnalyticsError) as ctx:
            runner.trigger(job.id)

        assert ctx.value.code == "JOB_ALREADY_RUNNING"
        assert ctx.value.http_status == 409
        assert len(repository.executions) == 1

        executor.run_all()
        runner.trigger(job.id)
        assert len(repository.executions) == 2
