"""
app/schemas/analysis.py

Request and response schemas for upload and analysis endpoints.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from analysis.base import DateRange, FilterSpec


class UploadResponse(BaseModel):
    file_id: str
    file_name: str
    uploaded_at: datetime
    row_count: int = Field(..., ge=0)
    column_count: int = Field(..., ge=0)


class DateRangeModel(BaseModel):
    start: date | None = None
    end: date | None = None


class FilterSpecModel(BaseModel):
    """
    Optional row constraints. Omitted fields apply no constraint.
    """

    date_range: DateRangeModel | None = None
    selected_metrics: list[str] | None = None
    selected_categories: list[str] | None = None
    min_value: float | None = None
    max_value: float | None = None

    def to_filter_spec(self) -> FilterSpec:
        return FilterSpec(
            date_range=(
                DateRange(start=self.date_range.start, end=self.date_range.end)
                if self.date_range is not None
                else None
            ),
            selected_metrics=tuple(self.selected_metrics) if self.selected_metrics is not None else None,
            selected_categories=(
                tuple(self.selected_categories) if self.selected_categories is not None else None
            ),
            min_value=self.min_value,
            max_value=self.max_value,
        )


class AnalyzeRequest(BaseModel):
    file_id: str = ""
    report_type: str = ""
    analysis_type: str = ""
    filters: FilterSpecModel | None = None


class InsightModel(BaseModel):
    category: str
    title: str
    description: str
    impact: str
    metrics: dict[str, Any] | None = None


class RecommendationModel(BaseModel):
    title: str
    description: str
    priority: str
    effort: str
    expected_impact: str


class ChartDataPointModel(BaseModel):
    label: str
    value: float
    date: str | None = None
    category: str | None = None


class ChartModel(BaseModel):
    type: str
    title: str
    data: list[ChartDataPointModel] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    x_axis_label: str | None = None
    y_axis_label: str | None = None


class RawDataModel(BaseModel):
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)


class DataSummaryDateRange(BaseModel):
    earliest: str | None = None
    latest: str | None = None


class DataSummaryModel(BaseModel):
    total_rows: int
    filtered_rows: int
    date_range: DataSummaryDateRange = Field(default_factory=DataSummaryDateRange)
    available_metrics: list[str] = Field(default_factory=list)
    available_categories: list[str] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    insights: list[InsightModel] = Field(default_factory=list)
    recommendations: list[RecommendationModel] = Field(default_factory=list)
    summary: str
    key_metrics: dict[str, float] = Field(default_factory=dict)
    charts: list[ChartModel] = Field(default_factory=list)
    raw_data: RawDataModel
    data_summary: DataSummaryModel
    applied_filters: list[str] = Field(default_factory=list)
    used_fallback: bool = False


class ErrorDetail(BaseModel):
    code: str
    message: str
    suggestion: str


class ErrorResponse(BaseModel):
    detail: ErrorDetail
