"""
unified/base.py

Plain value types for the cross-source metrics dashboard. Services convert
ORM rows into these before calling the aggregation functions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


class SourceType:
    FILE = "file"
    INTEGRATION = "integration"

    ALL = frozenset({FILE, INTEGRATION})


class SourceStatus:
    ACTIVE = "active"
    PROCESSING = "processing"
    ERROR = "error"


class MetricType:
    COUNT = "count"
    RATE = "rate"
    CURRENCY = "currency"
    DURATION = "duration"


class MetricCategory:
    TRAFFIC = "traffic"
    ENGAGEMENT = "engagement"
    CONVERSION = "conversion"
    REVENUE = "revenue"
    ADVERTISING = "advertising"


class GroupBy:
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    ALL = frozenset({DAY, WEEK, MONTH})


@dataclass(frozen=True)
class SourceInfo:
    id: str
    name: str
    type: str
    platform: str | None = None
    status: str = SourceStatus.PROCESSING
    uploaded_at: datetime | None = None
    last_analyzed: datetime | None = None
    row_count: int | None = None
    date_range_start: date | None = None
    date_range_end: date | None = None

    def to_dict(self) -> dict[str, Any]:
        date_range = None
        if self.date_range_start is not None and self.date_range_end is not None:
            date_range = {
                "start": self.date_range_start.isoformat(),
                "end": self.date_range_end.isoformat(),
            }
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "platform": self.platform,
            "status": self.status,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "last_analyzed": self.last_analyzed.isoformat() if self.last_analyzed else None,
            "row_count": self.row_count,
            "date_range": date_range,
        }


@dataclass(frozen=True)
class MetricPoint:
    source_id: str
    source_name: str
    platform: str
    date: date
    metric_name: str
    metric_value: float
    metric_type: str = MetricType.COUNT
    category: str = MetricCategory.TRAFFIC


@dataclass(frozen=True)
class SourceValue:
    source_id: str
    source_name: str
    platform: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "source_name": self.source_name,
            "platform": self.platform,
            "value": self.value,
        }


@dataclass(frozen=True)
class MetricComparison:
    metric_name: str
    sources: tuple[SourceValue, ...]
    total_value: float
    average_value: float
    best_performing: SourceValue

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric_name": self.metric_name,
            "sources": [item.to_dict() for item in self.sources],
            "total_value": self.total_value,
            "average_value": self.average_value,
            "best_performing": {
                "source_id": self.best_performing.source_id,
                "source_name": self.best_performing.source_name,
                "value": self.best_performing.value,
            },
        }


@dataclass(frozen=True)
class TimeSeriesPoint:
    date: str
    sources: dict[str, float]
    total: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "sources": dict(self.sources), "total": self.total}


@dataclass(frozen=True)
class UnifiedInsight:
    title: str
    description: str
    type: str
    impact: str
    sources: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "impact": self.impact,
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class DashboardSummary:
    total_sources: int
    date_range: tuple[str, str]
    top_performing_source: dict[str, str] = field(default_factory=dict)
    total_metrics_tracked: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_sources": self.total_sources,
            "date_range": {"start": self.date_range[0], "end": self.date_range[1]},
            "top_performing_source": dict(self.top_performing_source),
            "total_metrics_tracked": self.total_metrics_tracked,
        }
