"""
tests/test_normalizer.py

Unit tests for flattening report tables into unified metric points.
"""

from __future__ import annotations

from datetime import date

import pytest

from analysis.base import ParsedTable
from unified.base import MetricCategory, MetricType
from unified.normalizer import (
    date_bounds,
    infer_category,
    infer_metric_type,
    normalize_metric_name,
    normalize_table,
)

TABLE = ParsedTable(
    headers=("date", "Sessions", "metrics.costMicros", "ctr", "campaign"),
    rows=(
        ("2024-01-01", "100", "5000000", "1.5%", "Brand"),
        ("", "50", "1", "2", "Brand"),
        ("2024-01-03", "n/a", "7", "3", "Generic"),
    ),
)


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("metrics.cost_micros", "cost_micros"),
        ("Cost Micros", "cost_micros"),
        ("costMicros", "cost_micros"),
        ("Bounce Rate (%)", "bounce_rate"),
        ("sessions", "sessions"),
    ],
)
def test_normalize_metric_name(header: str, expected: str) -> None:
    assert normalize_metric_name(header) == expected


class TestInference:
    def test_metric_types(self) -> None:
        assert infer_metric_type("cost_micros") == MetricType.CURRENCY
        assert infer_metric_type("ctr") == MetricType.RATE
        assert infer_metric_type("avg_session_duration") == MetricType.DURATION
        assert infer_metric_type("sessions") == MetricType.COUNT

    def test_categories(self) -> None:
        assert infer_category("revenue") == MetricCategory.REVENUE
        assert infer_category("conversions") == MetricCategory.CONVERSION
        assert infer_category("clicks") == MetricCategory.ADVERTISING
        assert infer_category("bounce_rate") == MetricCategory.ENGAGEMENT
        assert infer_category("sessions") == MetricCategory.TRAFFIC


class TestNormalizeTable:
    def test_one_point_per_dated_row_and_numeric_value(self) -> None:
        points = normalize_table(source_id="s1", source_name="Ads", platform="google-ads", table=TABLE)

        assert [(point.date, point.metric_name, point.metric_value) for point in points] == [
            (date(2024, 1, 1), "sessions", 100.0),
            (date(2024, 1, 1), "cost_micros", 5000000.0),
            (date(2024, 1, 1), "ctr", 1.5),
            (date(2024, 1, 3), "cost_micros", 7.0),
            (date(2024, 1, 3), "ctr", 3.0),
        ]
        assert {point.source_id for point in points} == {"s1"}
        assert points[1].metric_type == MetricType.CURRENCY
        assert points[1].category == MetricCategory.ADVERTISING

    def test_table_without_date_column(self) -> None:
        table = ParsedTable(headers=("campaign", "clicks"), rows=(("Brand", "10"),))

        assert normalize_table(source_id="s1", source_name="Ads", platform="manual", table=table) == []

    def test_date_bounds(self) -> None:
        points = normalize_table(source_id="s1", source_name="Ads", platform="google-ads", table=TABLE)

        assert date_bounds(points) == (date(2024, 1, 1), date(2024, 1, 3))
        assert date_bounds([]) is None
