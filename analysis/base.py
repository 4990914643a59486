"""
analysis/base.py

Domain types for the table analysis pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


class ColumnRole:
    DATE = "date"
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    UNCLASSIFIED = "unclassified"


class ReportType:
    GA4 = "ga4"
    ADS = "ads"
    GENERAL = "general"

    ALL = frozenset({GA4, ADS, GENERAL})


class AnalysisType:
    INSIGHTS = "insights"
    RECOMMENDATIONS = "recommendations"
    SUMMARY = "summary"

    ALL = frozenset({INSIGHTS, RECOMMENDATIONS, SUMMARY})


class ChartType:
    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    AREA = "area"


@dataclass(frozen=True)
class ParsedTable:
    """
    Header row plus data rows. Every row has exactly len(headers) cells.
    """

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)


@dataclass(frozen=True)
class ColumnClassification:
    """
    Per-header roles. Each header lands in at most one of the three ordered
    lists, chosen by date -> numeric -> categorical precedence.
    """

    roles: dict[str, str]
    date_columns: tuple[str, ...] = ()
    numeric_columns: tuple[str, ...] = ()
    categorical_columns: tuple[str, ...] = ()

    @property
    def primary_date(self) -> str | None:
        return self.date_columns[0] if self.date_columns else None

    @property
    def primary_numeric(self) -> str | None:
        return self.numeric_columns[0] if self.numeric_columns else None

    @property
    def primary_categorical(self) -> str | None:
        return self.categorical_columns[0] if self.categorical_columns else None


@dataclass(frozen=True)
class DateRange:
    start: date | None = None
    end: date | None = None


@dataclass(frozen=True)
class FilterSpec:
    """
    Optional row constraints. A field left as None means no constraint.
    """

    date_range: DateRange | None = None
    selected_metrics: tuple[str, ...] | None = None
    selected_categories: tuple[str, ...] | None = None
    min_value: float | None = None
    max_value: float | None = None

    @property
    def is_empty(self) -> bool:
        has_dates = self.date_range is not None and (
            self.date_range.start is not None or self.date_range.end is not None
        )
        return not (
            has_dates
            or self.selected_metrics
            or self.selected_categories
            or self.min_value is not None
            or self.max_value is not None
        )


@dataclass(frozen=True)
class FilterResult:
    rows: tuple[tuple[str, ...], ...]
    applied_filters: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChartDataPoint:
    label: str
    value: float
    date: str | None = None
    category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"label": self.label, "value": self.value}
        if self.date is not None:
            payload["date"] = self.date
        if self.category is not None:
            payload["category"] = self.category
        return payload


@dataclass(frozen=True)
class ChartDescriptor:
    type: str
    title: str
    data: tuple[ChartDataPoint, ...]
    colors: tuple[str, ...]
    x_axis_label: str | None = None
    y_axis_label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "data": [point.to_dict() for point in self.data],
            "x_axis_label": self.x_axis_label,
            "y_axis_label": self.y_axis_label,
            "colors": list(self.colors),
        }


@dataclass(frozen=True)
class Insight:
    category: str
    title: str
    description: str
    impact: str
    metrics: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "metrics": self.metrics,
        }


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str
    priority: str
    effort: str
    expected_impact: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "effort": self.effort,
            "expected_impact": self.expected_impact,
        }


@dataclass(frozen=True)
class DataSummary:
    total_rows: int
    filtered_rows: int
    earliest_date: str | None = None
    latest_date: str | None = None
    available_metrics: tuple[str, ...] = ()
    available_categories: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "filtered_rows": self.filtered_rows,
            "date_range": {"earliest": self.earliest_date, "latest": self.latest_date},
            "available_metrics": list(self.available_metrics),
            "available_categories": list(self.available_categories),
        }


@dataclass(frozen=True)
class AnalysisContent:
    """
    Narrative part of an analysis: what the generation service (or the
    deterministic fallback) contributes.
    """

    insights: tuple[Insight, ...]
    recommendations: tuple[Recommendation, ...]
    summary: str
    key_metrics: dict[str, float]
    used_fallback: bool = False


@dataclass(frozen=True)
class AnalysisResult:
    insights: tuple[Insight, ...]
    recommendations: tuple[Recommendation, ...]
    summary: str
    key_metrics: dict[str, float]
    charts: tuple[ChartDescriptor, ...]
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    data_summary: DataSummary
    applied_filters: tuple[str, ...] = field(default_factory=tuple)
    used_fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "insights": [insight.to_dict() for insight in self.insights],
            "recommendations": [item.to_dict() for item in self.recommendations],
            "summary": self.summary,
            "key_metrics": dict(self.key_metrics),
            "charts": [chart.to_dict() for chart in self.charts],
            "raw_data": {"headers": list(self.headers), "rows": [list(row) for row in self.rows]},
            "data_summary": self.data_summary.to_dict(),
            "applied_filters": list(self.applied_filters),
            "used_fallback": self.used_fallback,
        }


@dataclass(frozen=True)
class AnalysisRequest:
    file_id: str
    report_type: str
    analysis_type: str
    filters: FilterSpec | None = None
