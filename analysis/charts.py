"""
analysis/charts.py

Derives chart descriptors from a classified, filtered table.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from analysis.base import ChartDataPoint, ChartDescriptor, ChartType, ColumnClassification
from analysis.classifier import classify_columns, finite_sum, parse_date, parse_numeric

logger = logging.getLogger(__name__)

MAX_LINE_CHARTS = 3
MAX_BAR_GROUPS = 10
MAX_PIE_SLICES = 8
MAX_COMPARISON_METRICS = 5
BAR_LABEL_LIMIT = 20
PIE_LABEL_LIMIT = 15

LINE_COLORS = ("#3b82f6",)
BAR_COLORS = ("#10b981",)
COMPARISON_COLORS = ("#6366f1",)
PIE_COLORS = (
    "#3b82f6", "#ef4444", "#10b981", "#f59e0b",
    "#8b5cf6", "#06b6d4", "#84cc16", "#f97316",
)


def truncate_label(label: str, limit: int) -> str:
    return label[:limit] + "..." if len(label) > limit else label


def _sum_by_group(
    rows: Sequence[Sequence[str]],
    group_index: int,
    value_index: int,
) -> list[tuple[str, float]]:
    """
    Sum values per group label in first-seen order, skipping empty labels and
    unparseable values. Groups whose total overflows are dropped. Sorted descending by total; ties keep first-seen order.
    """

    values_by_group: dict[str, list[float]] = {}
    for row in rows:
        group = row[group_index]
        value = parse_numeric(row[value_index])
        if not group or value is None:
            continue
        values_by_group.setdefault(group, []).append(value)

    totals: dict[str, float] = {}
    for group, values in values_by_group.items():
        total = finite_sum(values)
        if total is not None:
            totals[group] = total
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def _line_charts(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    classification: ColumnClassification,
) -> list[ChartDescriptor]:
    date_column = classification.primary_date
    if date_column is None:
        return []

    date_index = headers.index(date_column)
    charts: list[ChartDescriptor] = []
    for column in classification.numeric_columns[:MAX_LINE_CHARTS]:
        value_index = headers.index(column)
        points = []
        for row in rows:
            parsed = parse_date(row[date_index])
            value = parse_numeric(row[value_index])
            if parsed is None or value is None:
                continue
            points.append((parsed, ChartDataPoint(
                label=parsed.date().isoformat(),
                value=value,
                date=row[date_index],
            )))

        if len(points) < 2:
            continue
        points.sort(key=lambda item: item[0])
        charts.append(
            ChartDescriptor(
                type=ChartType.LINE,
                title=f"{column} Over Time",
                data=tuple(point for _, point in points),
                x_axis_label="Date",
                y_axis_label=column,
                colors=LINE_COLORS,
            )
        )
    return charts


def _grouping_column(
    headers: Sequence[str],
    classification: ColumnClassification,
) -> str | None:
    if classification.primary_categorical is not None:
        return classification.primary_categorical
    for header in headers:
        if header not in classification.numeric_columns and header not in classification.date_columns:
            return header
    return None


def _top_groups_chart(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    classification: ColumnClassification,
) -> ChartDescriptor | None:
    metric = classification.primary_numeric
    group_column = _grouping_column(headers, classification)
    if metric is None or group_column is None:
        return None

    totals = _sum_by_group(rows, headers.index(group_column), headers.index(metric))
    data = tuple(
        ChartDataPoint(label=truncate_label(label, BAR_LABEL_LIMIT), value=value)
        for label, value in totals[:MAX_BAR_GROUPS]
    )
    if len(data) < 2:
        return None
    return ChartDescriptor(
        type=ChartType.BAR,
        title=f"Top {group_column} by {metric}",
        data=data,
        x_axis_label=group_column,
        y_axis_label=metric,
        colors=BAR_COLORS,
    )


def _distribution_chart(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    classification: ColumnClassification,
) -> ChartDescriptor | None:
    category = classification.primary_categorical
    metric = classification.primary_numeric
    if category is None or metric is None:
        return None

    totals = _sum_by_group(rows, headers.index(category), headers.index(metric))
    data = tuple(
        ChartDataPoint(
            label=truncate_label(label, PIE_LABEL_LIMIT),
            value=value,
            category=label,
        )
        for label, value in totals[:MAX_PIE_SLICES]
    )
    if len(data) < 2:
        return None
    return ChartDescriptor(
        type=ChartType.PIE,
        title=f"{metric} Distribution by {category}",
        data=data,
        colors=PIE_COLORS,
    )


def _comparison_chart(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    classification: ColumnClassification,
) -> ChartDescriptor | None:
    columns = classification.numeric_columns[:MAX_COMPARISON_METRICS]
    if len(columns) < 2:
        return None

    data = []
    for column in columns:
        index = headers.index(column)
        total = finite_sum(parse_numeric(row[index]) or 0.0 for row in rows)
        if total is None:
            logger.info("Comparison total overflowed, skipping column=%s", column)
            continue
        data.append(ChartDataPoint(label=truncate_label(column, PIE_LABEL_LIMIT), value=total))

    if len(data) < 2:
        return None

    return ChartDescriptor(
        type=ChartType.BAR,
        title="Metrics Comparison",
        data=tuple(data),
        x_axis_label="Metrics",
        y_axis_label="Total Value",
        colors=COMPARISON_COLORS,
    )


def build_charts(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    report_type: str | None = None,
    classification: ColumnClassification | None = None,
) -> list[ChartDescriptor]:
    """
    Build line, bar, pie and comparison charts for the given rows.

    Charts with fewer than two data points are omitted. Output order is fixed:
    line charts, top-groups bar, distribution pie, metrics comparison.
    """

    headers = list(headers)
    if classification is None:
        classification = classify_columns(headers, rows)

    charts = _line_charts(headers, rows, classification)
    for builder in (_top_groups_chart, _distribution_chart, _comparison_chart):
        chart = builder(headers, rows, classification)
        if chart is not None:
            charts.append(chart)

    logger.debug(
        "Charts built report_type=%s rows=%s charts=%s",
        report_type,
        len(rows),
        [chart.type for chart in charts],
    )
    return charts
