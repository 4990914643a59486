"""
analysis/summary.py

Deterministic, non-AI pieces of an analysis: dataset summary, column-sum key
metrics and the fallback analysis used when the generation reply is unusable.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from analysis.base import (
    AnalysisContent,
    ColumnClassification,
    DataSummary,
    Insight,
    Recommendation,
)
from analysis.classifier import finite_sum, parse_date, parse_numeric

METRIC_KEYWORDS: tuple[str, ...] = (
    "session", "user", "revenue", "conversion", "click",
    "impression", "view", "cost", "ctr", "rate",
)

FALLBACK_NUMERIC_SHARE = 0.5


def build_data_summary(
    headers: Sequence[str],
    original_rows: Sequence[Sequence[str]],
    filtered_rows: Sequence[Sequence[str]],
    classification: ColumnClassification,
) -> DataSummary:
    """
    Summarize row counts, the filtered date span and the available facets.

    Categories are listed from the unfiltered rows so a UI can offer every
    option even after narrowing.
    """

    earliest: str | None = None
    latest: str | None = None
    date_column = classification.primary_date
    if date_column is not None:
        index = list(headers).index(date_column)
        dates = sorted(
            parsed for parsed in (parse_date(row[index]) for row in filtered_rows) if parsed is not None
        )
        if dates:
            earliest = dates[0].date().isoformat()
            latest = dates[-1].date().isoformat()

    categories: tuple[str, ...] = ()
    category_column = classification.primary_categorical
    if category_column is not None:
        index = list(headers).index(category_column)
        categories = tuple(sorted({row[index] for row in original_rows if row[index]}))

    return DataSummary(
        total_rows=len(original_rows),
        filtered_rows=len(filtered_rows),
        earliest_date=earliest,
        latest_date=latest,
        available_metrics=classification.numeric_columns,
        available_categories=categories,
    )


def _nonzero_values(rows: Sequence[Sequence[str]], index: int) -> list[float]:
    values = (parse_numeric(row[index]) for row in rows)
    return [value for value in values if value]


def compute_key_metrics(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
) -> dict[str, float]:
    """
    Sum non-zero values of every column whose header names a marketing metric.
    """

    metrics: dict[str, float] = {}
    for index, header in enumerate(headers):
        lowered = header.lower()
        if not any(keyword in lowered for keyword in METRIC_KEYWORDS):
            continue
        values = _nonzero_values(rows, index)
        total = finite_sum(values)
        if values and total is not None:
            metrics[header] = total
    return metrics


def merge_key_metrics(
    computed: Mapping[str, float],
    generated: Mapping[str, object] | None,
) -> dict[str, float]:
    """
    Overlay numeric generated metrics on computed ones; generated values win.
    """

    merged = dict(computed)
    for key, value in (generated or {}).items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        try:
            number = float(value)
        except OverflowError:
            continue
        if math.isfinite(number):
            merged[str(key)] = number
    return merged


def build_fallback_analysis(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    report_type: str,
) -> AnalysisContent:
    """
    Build a usable analysis purely from table statistics.
    """

    row_count = len(rows)
    column_count = len(headers)
    preview = ", ".join(headers[:5]) + (", and more" if column_count > 5 else "")

    insights = (
        Insight(
            category="Data Overview",
            title="Data Successfully Processed",
            description=(
                f"Your {report_type} report contains {row_count} rows of data with "
                f"{column_count} columns. The data includes metrics such as: {preview}."
            ),
            impact="medium",
            metrics={"total_rows": row_count, "total_columns": column_count},
        ),
    )
    recommendations = (
        Recommendation(
            title="Review Data Quality",
            description=(
                "Ensure all important metrics are being tracked consistently across your "
                "reporting periods. Look for any missing data points or anomalies."
            ),
            priority="medium",
            effort="low",
            expected_impact="Improved data reliability and more accurate insights",
        ),
        Recommendation(
            title="Set Up Regular Analysis",
            description=(
                "Consider setting up automated reporting to track these metrics on a "
                "regular basis for better trend analysis."
            ),
            priority="low",
            effort="medium",
            expected_impact="Better understanding of performance trends over time",
        ),
    )

    key_metrics: dict[str, float] = {
        "total_rows": float(row_count),
        "total_columns": float(column_count),
    }
    for index, header in enumerate(headers):
        values = _nonzero_values(rows, index)
        if not values or len(values) <= row_count * FALLBACK_NUMERIC_SHARE:
            continue
        total = finite_sum(values)
        if total is not None:
            key_metrics.setdefault(header, total)

    summary = (
        f"Analysis completed for your {report_type} report. The dataset contains "
        f"{row_count} rows and {column_count} columns of data. While AI analysis was "
        "not available, the data has been successfully processed and basic metrics "
        "have been calculated."
    )
    return AnalysisContent(
        insights=insights,
        recommendations=recommendations,
        summary=summary,
        key_metrics=key_metrics,
        used_fallback=True,
    )
