"""
app/schemas/scheduled_jobs.py

Schemas for scheduled report jobs, their executions, stored analyses and
trend comparisons.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ScheduledJobCreate(BaseModel):
    name: str = ""
    description: str | None = None
    platform: str = ""
    account_id: str = ""
    access_token: str = ""
    refresh_token: str | None = None
    frequency: str = ""
    time_of_day: str = ""
    day_of_week: int | None = None
    day_of_month: int | None = None
    timezone: str = "UTC"
    metrics: list[str] | None = None
    dimensions: list[str] | None = None
    notification_email: str | None = None
    auto_analyze: bool = True
    analysis_type: str = "insights"


class ScheduledJobUpdate(BaseModel):
    """
    Partial update; only fields present in the request body are applied.
    """

    name: str | None = None
    description: str | None = None
    frequency: str | None = None
    time_of_day: str | None = None
    day_of_week: int | None = None
    day_of_month: int | None = None
    timezone: str | None = None
    metrics: list[str] | None = None
    dimensions: list[str] | None = None
    notification_email: str | None = None
    auto_analyze: bool | None = None
    analysis_type: str | None = None
    is_active: bool | None = None


class ScheduledJobResponse(BaseModel):
    """
    Job as returned by the API. Tokens are never echoed back.
    """

    model_config = {"from_attributes": True}

    id: UUID
    name: str
    description: str | None = None
    platform: str
    account_id: str
    frequency: str
    time_of_day: str
    day_of_week: int | None = None
    day_of_month: int | None = None
    timezone: str
    is_active: bool
    last_run: datetime | None = None
    next_run: datetime
    metrics: list[str] | None = None
    dimensions: list[str] | None = None
    notification_email: str | None = None
    auto_analyze: bool
    analysis_type: str
    created_at: datetime
    updated_at: datetime


class ScheduledJobListResponse(BaseModel):
    jobs: list[ScheduledJobResponse] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    limit: int
    offset: int


class JobExecutionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    job_id: UUID
    status: str
    started_at: datetime
    completed_at: datetime | None = None
    file_id: str | None = None
    analysis_id: UUID | None = None
    rows_fetched: int | None = None
    error_message: str | None = None
    execution_time_ms: int | None = None
    result_payload: dict[str, Any] | None = None


class JobExecutionListResponse(BaseModel):
    executions: list[JobExecutionResponse] = Field(default_factory=list)
    total: int = Field(..., ge=0)


class HistoricalAnalysisResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    job_id: UUID
    execution_id: UUID
    file_id: str
    analysis_data: dict[str, Any]
    date_range_start: date
    date_range_end: date
    total_rows: int
    key_metrics: dict[str, float] | None = None
    insights_count: int
    recommendations_count: int
    created_at: datetime


class HistoricalAnalysisListResponse(BaseModel):
    analyses: list[HistoricalAnalysisResponse] = Field(default_factory=list)
    total: int = Field(..., ge=0)


class TrendComparisonRequest(BaseModel):
    current_analysis_id: UUID | None = None
    previous_analysis_id: UUID | None = None


class MetricTrendResponse(BaseModel):
    metric: str
    current_value: float
    previous_value: float
    change: float
    change_percent: float
    trend: str
    significance: str


class TrendComparisonResponse(BaseModel):
    id: UUID
    job_id: UUID
    current_analysis_id: UUID
    previous_analysis_id: UUID
    insights: list[MetricTrendResponse] = Field(default_factory=list)
    significant_changes: int
    improvement_areas: int
    decline_areas: int
    comparison_period: dict[str, Any] | None = None
    created_at: datetime


class JobTriggerResponse(BaseModel):
    job_id: UUID
    execution_id: UUID
    status: str = "running"
    message: str = "Job execution started."
