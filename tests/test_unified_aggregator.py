"""
tests/test_unified_aggregator.py

Unit tests for cross-source dashboard aggregation.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from unified.aggregator import (
    bucket_date,
    calculate_summary,
    determine_date_range,
    generate_metric_comparisons,
    generate_time_series,
    generate_unified_insights,
)
from unified.base import GroupBy, MetricPoint, SourceInfo

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

ADS = SourceInfo(
    id="a",
    name="Search Ads",
    type="integration",
    platform="google-ads",
    status="active",
    last_analyzed=NOW - timedelta(days=1),
    date_range_start=date(2024, 1, 1),
    date_range_end=date(2024, 1, 20),
)
SOCIAL = SourceInfo(
    id="b",
    name="Social",
    type="file",
    platform="facebook-ads",
    status="active",
    last_analyzed=NOW - timedelta(days=2),
    date_range_start=date(2024, 1, 5),
    date_range_end=date(2024, 1, 31),
)


def _point(source: SourceInfo, day: int, metric: str, value: float) -> MetricPoint:
    return MetricPoint(
        source_id=source.id,
        source_name=source.name,
        platform=source.platform or "unknown",
        date=date(2024, 1, day),
        metric_name=metric,
        metric_value=value,
    )


POINTS = [
    _point(ADS, 1, "clicks", 100),
    _point(ADS, 2, "clicks", 50),
    _point(SOCIAL, 1, "clicks", 20),
    _point(ADS, 1, "cost", 10),
    _point(SOCIAL, 2, "cost", 40),
]


# ---------------------------------------------------------------------------
# Date range
# ---------------------------------------------------------------------------


class TestDetermineDateRange:
    def test_requested_bounds_win(self) -> None:
        assert determine_date_range([ADS, SOCIAL], date(2023, 1, 1), date(2023, 2, 1)) == (
            date(2023, 1, 1),
            date(2023, 2, 1),
        )

    def test_overlap_of_source_ranges(self) -> None:
        assert determine_date_range([ADS, SOCIAL]) == (date(2024, 1, 5), date(2024, 1, 20))

    def test_partial_request_fills_from_overlap(self) -> None:
        assert determine_date_range([ADS, SOCIAL], requested_start=date(2024, 1, 7)) == (
            date(2024, 1, 7),
            date(2024, 1, 20),
        )

    def test_defaults_to_last_thirty_days(self) -> None:
        undated = SourceInfo(id="c", name="Manual", type="file")

        assert determine_date_range([undated], today=date(2024, 3, 31)) == (date(2024, 3, 1), date(2024, 3, 31))


# ---------------------------------------------------------------------------
# Comparisons and time series
# ---------------------------------------------------------------------------


class TestMetricComparisons:
    def test_totals_averages_and_ranking(self) -> None:
        comparisons = generate_metric_comparisons(POINTS, [ADS, SOCIAL])

        assert [item.metric_name for item in comparisons] == ["clicks", "cost"]
        clicks = comparisons[0]
        assert clicks.total_value == 170.0
        assert clicks.average_value == 85.0
        assert clicks.best_performing.source_id == "a"
        assert [(item.source_id, item.value) for item in clicks.sources] == [("a", 150.0), ("b", 20.0)]
        assert comparisons[1].best_performing.source_name == "Social"

    def test_unknown_source_is_labelled(self) -> None:
        comparisons = generate_metric_comparisons(POINTS[:1], [])

        assert comparisons[0].sources[0].source_name == "Unknown"
        assert comparisons[0].sources[0].platform == "unknown"

    def test_to_dict_shape(self) -> None:
        payload = generate_metric_comparisons(POINTS, [ADS, SOCIAL])[0].to_dict()

        assert payload["best_performing"] == {"source_id": "a", "source_name": "Search Ads", "value": 150.0}
        assert payload["sources"][1]["platform"] == "facebook-ads"


class TestTimeSeries:
    def test_daily_series_per_metric(self) -> None:
        series = generate_time_series(POINTS, GroupBy.DAY)

        clicks = [point.to_dict() for point in series["clicks"]]
        assert clicks == [
            {"date": "2024-01-01", "sources": {"a": 100.0, "b": 20.0}, "total": 120.0},
            {"date": "2024-01-02", "sources": {"a": 50.0}, "total": 50.0},
        ]

    def test_weekly_buckets_start_on_sunday(self) -> None:
        series = generate_time_series(POINTS, GroupBy.WEEK)

        assert [point.date for point in series["clicks"]] == ["2023-12-31"]
        assert series["clicks"][0].total == 170.0

    def test_bucket_date(self) -> None:
        assert bucket_date(date(2024, 1, 17), GroupBy.MONTH) == date(2024, 1, 1)
        assert bucket_date(date(2024, 1, 7), GroupBy.WEEK) == date(2024, 1, 7)
        assert bucket_date(date(2024, 1, 13), GroupBy.WEEK) == date(2024, 1, 7)


# ---------------------------------------------------------------------------
# Insights and summary
# ---------------------------------------------------------------------------


class TestUnifiedInsights:
    def test_performance_gap_on_top_metric(self) -> None:
        comparisons = generate_metric_comparisons(POINTS, [ADS, SOCIAL])

        insights = generate_unified_insights([ADS, SOCIAL], comparisons, now=NOW)

        assert len(insights) == 1
        assert insights[0].title == "Significant Performance Gap in clicks"
        assert "650.0%" in insights[0].description
        assert insights[0].sources == ("a", "b")

    def test_small_gap_is_ignored(self) -> None:
        points = [_point(ADS, 1, "clicks", 120), _point(SOCIAL, 1, "clicks", 100)]
        comparisons = generate_metric_comparisons(points, [ADS, SOCIAL])

        assert generate_unified_insights([ADS, SOCIAL], comparisons, now=NOW) == []

    def test_zero_worst_value_is_flagged(self) -> None:
        points = [_point(ADS, 1, "clicks", 10), _point(SOCIAL, 1, "clicks", 0)]
        comparisons = generate_metric_comparisons(points, [ADS, SOCIAL])

        insights = generate_unified_insights([ADS, SOCIAL], comparisons, now=NOW)

        assert "a wide margin" in insights[0].description

    def test_single_platform_and_stale_sources(self) -> None:
        first = SourceInfo(id="x", name="Ads 1", type="file", platform="google-ads")
        second = SourceInfo(
            id="y",
            name="Ads 2",
            type="file",
            platform="google-ads",
            last_analyzed=datetime(2024, 1, 9),
        )

        insights = generate_unified_insights([first, second], [], now=NOW)

        assert [item.title for item in insights] == ["Single Platform Dependency", "Outdated Data Sources"]
        assert insights[1].sources == ("x",)
        assert insights[1].description.startswith("1 data source(s)")


class TestSummary:
    def test_top_source_and_metric_count(self) -> None:
        summary = calculate_summary([ADS, SOCIAL], POINTS, (date(2024, 1, 5), date(2024, 1, 20)))

        assert summary.to_dict() == {
            "total_sources": 2,
            "date_range": {"start": "2024-01-05", "end": "2024-01-20"},
            "top_performing_source": {"source_id": "a", "source_name": "Search Ads", "platform": "google-ads"},
            "total_metrics_tracked": 2,
        }

    def test_no_metrics_leaves_top_source_blank(self) -> None:
        summary = calculate_summary([ADS], [], (date(2024, 1, 1), date(2024, 1, 2)))

        assert summary.top_performing_source == {"source_id": "", "source_name": "", "platform": ""}
        assert summary.total_metrics_tracked == 0
