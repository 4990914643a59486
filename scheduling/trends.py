"""
scheduling/trends.py

Period-over-period comparison of two stored analyses of the same job.
No I/O, no side effects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

TREND_THRESHOLD_PERCENT = 5.0
MEDIUM_SIGNIFICANCE_PERCENT = 10.0
HIGH_SIGNIFICANCE_PERCENT = 20.0


@dataclass(frozen=True)
class MetricTrend:
    metric: str
    current_value: float
    previous_value: float
    change: float
    change_percent: float
    trend: str
    significance: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "current_value": self.current_value,
            "previous_value": self.previous_value,
            "change": self.change,
            "change_percent": self.change_percent,
            "trend": self.trend,
            "significance": self.significance,
        }


@dataclass(frozen=True)
class TrendSummary:
    insights: tuple[MetricTrend, ...] = ()
    significant_changes: int = 0
    improvement_areas: int = 0
    decline_areas: int = 0
    comparison_period: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "insights": [item.to_dict() for item in self.insights],
            "significant_changes": self.significant_changes,
            "improvement_areas": self.improvement_areas,
            "decline_areas": self.decline_areas,
            "comparison_period": dict(self.comparison_period),
        }


def _as_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def classify_trend(change_percent: float) -> str:
    if change_percent > TREND_THRESHOLD_PERCENT:
        return "up"
    if change_percent < -TREND_THRESHOLD_PERCENT:
        return "down"
    return "stable"


def classify_significance(change_percent: float) -> str:
    magnitude = abs(change_percent)
    if magnitude > HIGH_SIGNIFICANCE_PERCENT:
        return "high"
    if magnitude > MEDIUM_SIGNIFICANCE_PERCENT:
        return "medium"
    return "low"


def compare_analyses(
    current_metrics: Mapping[str, Any] | None,
    previous_metrics: Mapping[str, Any] | None,
    comparison_period: Mapping[str, Any] | None = None,
) -> TrendSummary:
    """
    Compare key metrics of two analyses.

    Metrics missing on either side, non-numeric, or with a zero previous
    value are skipped. Iteration follows the current analysis's key order.
    """

    current_metrics = current_metrics or {}
    previous_metrics = previous_metrics or {}

    insights: list[MetricTrend] = []
    significant = improvements = declines = 0

    for metric, raw_current in current_metrics.items():
        current = _as_number(raw_current)
        previous = _as_number(previous_metrics.get(metric))
        if current is None or previous is None or previous == 0:
            continue

        change = current - previous
        change_percent = change / previous * 100
        trend = classify_trend(change_percent)
        significance = classify_significance(change_percent)

        if significance == "high":
            significant += 1
        if trend == "up":
            improvements += 1
        elif trend == "down":
            declines += 1

        insights.append(
            MetricTrend(
                metric=metric,
                current_value=current,
                previous_value=previous,
                change=change,
                change_percent=change_percent,
                trend=trend,
                significance=significance,
            )
        )

    return TrendSummary(
        insights=tuple(insights),
        significant_changes=significant,
        improvement_areas=improvements,
        decline_areas=declines,
        comparison_period=dict(comparison_period or {}),
    )
