"""
app/api/routers/scheduled_jobs.py

Scheduled report job endpoints: CRUD, execution history, stored analyses,
trend comparison and manual trigger.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.schemas.analysis import ErrorResponse
from app.schemas.scheduled_jobs import (
    HistoricalAnalysisListResponse,
    HistoricalAnalysisResponse,
    JobExecutionListResponse,
    JobExecutionResponse,
    JobTriggerResponse,
    MetricTrendResponse,
    ScheduledJobCreate,
    ScheduledJobListResponse,
    ScheduledJobResponse,
    ScheduledJobUpdate,
    TrendComparisonRequest,
    TrendComparisonResponse,
)
from app.services.job_runner import ScheduledJobRunner, get_job_runner
from app.services.schedule_service import ScheduleService, get_schedule_service
from db.session import get_db

router = APIRouter(prefix="/scheduled-jobs", tags=["scheduled-jobs"])

_NOT_FOUND = {404: {"model": ErrorResponse}}


@router.post(
    "",
    response_model=ScheduledJobResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_scheduled_job(
    payload: ScheduledJobCreate,
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduledJobResponse:
    job = schedule_service.create_job(db, payload.model_dump())
    return ScheduledJobResponse.model_validate(job)


@router.get("", response_model=ScheduledJobListResponse)
def list_scheduled_jobs(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduledJobListResponse:
    jobs, total = schedule_service.list_jobs(db, limit=limit, offset=offset)
    return ScheduledJobListResponse(
        jobs=[ScheduledJobResponse.model_validate(job) for job in jobs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{job_id}", response_model=ScheduledJobResponse, responses=_NOT_FOUND)
def get_scheduled_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduledJobResponse:
    return ScheduledJobResponse.model_validate(schedule_service.get_job(db, job_id))


@router.put(
    "/{job_id}",
    response_model=ScheduledJobResponse,
    responses={400: {"model": ErrorResponse}, **_NOT_FOUND},
)
def update_scheduled_job(
    job_id: UUID,
    payload: ScheduledJobUpdate,
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduledJobResponse:
    job = schedule_service.update_job(db, job_id, payload.model_dump(exclude_unset=True))
    return ScheduledJobResponse.model_validate(job)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_NOT_FOUND)
def delete_scheduled_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> Response:
    schedule_service.delete_job(db, job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{job_id}/executions", response_model=JobExecutionListResponse, responses=_NOT_FOUND)
def list_job_executions(
    job_id: UUID,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> JobExecutionListResponse:
    executions, total = schedule_service.list_executions(db, job_id, limit=limit, offset=offset)
    return JobExecutionListResponse(
        executions=[JobExecutionResponse.model_validate(item) for item in executions],
        total=total,
    )


@router.get("/{job_id}/analyses", response_model=HistoricalAnalysisListResponse, responses=_NOT_FOUND)
def list_job_analyses(
    job_id: UUID,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> HistoricalAnalysisListResponse:
    analyses, total = schedule_service.list_analyses(db, job_id, limit=limit, offset=offset)
    return HistoricalAnalysisListResponse(
        analyses=[HistoricalAnalysisResponse.model_validate(item) for item in analyses],
        total=total,
    )


@router.post(
    "/{job_id}/trend-comparison",
    response_model=TrendComparisonResponse,
    responses=_NOT_FOUND,
)
def compare_job_trends(
    job_id: UUID,
    payload: TrendComparisonRequest | None = None,
    db: Session = Depends(get_db),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> TrendComparisonResponse:
    """
    Compare two stored analyses. Without ids the two most recent are used.
    """

    payload = payload or TrendComparisonRequest()
    comparison, summary = schedule_service.compare_trends(
        db,
        job_id,
        current_analysis_id=payload.current_analysis_id,
        previous_analysis_id=payload.previous_analysis_id,
    )
    return TrendComparisonResponse(
        id=comparison.id,
        job_id=comparison.job_id,
        current_analysis_id=comparison.current_analysis_id,
        previous_analysis_id=comparison.previous_analysis_id,
        insights=[MetricTrendResponse.model_validate(item.to_dict()) for item in summary.insights],
        significant_changes=summary.significant_changes,
        improvement_areas=summary.improvement_areas,
        decline_areas=summary.decline_areas,
        comparison_period=summary.comparison_period or None,
        created_at=comparison.created_at,
    )


@router.post(
    "/{job_id}/trigger",
    response_model=JobTriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={409: {"model": ErrorResponse}, **_NOT_FOUND},
)
def trigger_scheduled_job(
    job_id: UUID,
    job_runner: ScheduledJobRunner = Depends(get_job_runner),
) -> JobTriggerResponse:
    execution_id = job_runner.trigger(job_id)
    return JobTriggerResponse(job_id=job_id, execution_id=execution_id)
