"""
unified/normalizer.py

Flattens a parsed report table into per-day metric points so that sources
with different column layouts can be compared on one dashboard.
"""

from __future__ import annotations

import re
from datetime import date

from analysis.base import ParsedTable
from analysis.classifier import classify_columns, parse_date, parse_numeric
from unified.base import MetricCategory, MetricPoint, MetricType

_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (MetricType.CURRENCY, ("cost", "spend", "revenue", "cpc", "cpm", "cpa", "price", "amount", "micros")),
    (MetricType.DURATION, ("duration", "time", "seconds")),
    (MetricType.RATE, ("rate", "ctr", "ratio", "percent", "roas")),
)

_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (MetricCategory.REVENUE, ("revenue", "purchase", "transaction", "sales", "roas")),
    (MetricCategory.CONVERSION, ("conversion", "goal", "lead", "signup")),
    (MetricCategory.ADVERTISING, ("impression", "click", "ctr", "cpc", "cpm", "cost", "spend", "reach")),
    (MetricCategory.ENGAGEMENT, ("bounce", "engagement", "duration", "pageview", "page_view", "views")),
)


def normalize_metric_name(header: str) -> str:
    """
    ``metrics.cost_micros`` and ``Cost Micros`` both become ``cost_micros``.
    """

    name = header.strip().split(".")[-1]
    name = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name)
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name)
    return name.strip("_").lower()


def _first_match(name: str, table: tuple[tuple[str, tuple[str, ...]], ...], default: str) -> str:
    for label, keywords in table:
        if any(keyword in name for keyword in keywords):
            return label
    return default


def infer_metric_type(metric_name: str) -> str:
    return _first_match(metric_name.lower(), _TYPE_KEYWORDS, MetricType.COUNT)


def infer_category(metric_name: str) -> str:
    return _first_match(metric_name.lower(), _CATEGORY_KEYWORDS, MetricCategory.TRAFFIC)


def normalize_table(
    *,
    source_id: str,
    source_name: str,
    platform: str,
    table: ParsedTable,
) -> list[MetricPoint]:
    """
    One point per (row with a parseable date, numeric column with a
    parseable value). Returns an empty list when the table has no date
    column.
    """

    classification = classify_columns(table.headers, table.rows)
    date_column = classification.primary_date
    if date_column is None:
        return []

    date_index = table.headers.index(date_column)
    numeric = [(table.headers.index(name), name) for name in classification.numeric_columns]
    described = {
        name: (normalize_metric_name(name), infer_metric_type(name), infer_category(name))
        for _, name in numeric
    }

    points: list[MetricPoint] = []
    for row in table.rows:
        parsed = parse_date(row[date_index])
        if parsed is None:
            continue
        day: date = parsed.date()
        for index, name in numeric:
            value = parse_numeric(row[index])
            if value is None:
                continue
            metric_name, metric_type, category = described[name]
            points.append(
                MetricPoint(
                    source_id=source_id,
                    source_name=source_name,
                    platform=platform,
                    date=day,
                    metric_name=metric_name,
                    metric_value=value,
                    metric_type=metric_type,
                    category=category,
                )
            )
    return points


def date_bounds(points: list[MetricPoint]) -> tuple[date, date] | None:
    if not points:
        return None
    days = [point.date for point in points]
    return min(days), max(days)
