"""
app/schemas/unified_dashboard.py

Schemas for the cross-source unified dashboard.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field


class DashboardRequest(BaseModel):
    source_ids: list[UUID] | None = None
    start_date: date | None = None
    end_date: date | None = None
    metrics: list[str] | None = None
    group_by: str = "day"


class IntegrationSourceBody(BaseModel):
    account_id: str = ""
    access_token: str = ""
    start_date: date
    end_date: date


class AddSourceRequest(BaseModel):
    name: str = ""
    type: str = ""
    platform: str | None = None
    file_id: str | None = None
    integration_data: IntegrationSourceBody | None = None


class AddSourceResponse(BaseModel):
    success: bool = True
    source_id: UUID
    status: str
    message: str
    row_count: int = 0


class ListSourcesRequest(BaseModel):
    source_ids: list[UUID] | None = None


class SourceDateRange(BaseModel):
    start: str
    end: str


class SourceResponse(BaseModel):
    id: str
    name: str
    type: str
    platform: str | None = None
    status: str
    uploaded_at: str | None = None
    last_analyzed: str | None = None
    row_count: int | None = None
    date_range: SourceDateRange | None = None


class SourceListResponse(BaseModel):
    sources: list[SourceResponse] = Field(default_factory=list)


class SourceValueResponse(BaseModel):
    source_id: str
    source_name: str
    platform: str
    value: float


class BestPerformingResponse(BaseModel):
    source_id: str
    source_name: str
    value: float


class MetricComparisonResponse(BaseModel):
    metric_name: str
    sources: list[SourceValueResponse] = Field(default_factory=list)
    total_value: float
    average_value: float
    best_performing: BestPerformingResponse


class TimeSeriesPointResponse(BaseModel):
    date: str
    sources: dict[str, float] = Field(default_factory=dict)
    total: float


class UnifiedInsightResponse(BaseModel):
    title: str
    description: str
    type: str
    impact: str
    sources: list[str] = Field(default_factory=list)


class TopSourceResponse(BaseModel):
    source_id: str = ""
    source_name: str = ""
    platform: str = ""


class DashboardSummaryResponse(BaseModel):
    total_sources: int
    date_range: SourceDateRange
    top_performing_source: TopSourceResponse
    total_metrics_tracked: int


class DashboardResponse(BaseModel):
    sources: list[SourceResponse] = Field(default_factory=list)
    key_metrics: list[MetricComparisonResponse] = Field(default_factory=list)
    time_series: dict[str, list[TimeSeriesPointResponse]] = Field(default_factory=dict)
    summary: DashboardSummaryResponse
    insights: list[UnifiedInsightResponse] = Field(default_factory=list)
