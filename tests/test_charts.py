"""
tests/test_charts.py

Unit tests for chart descriptor derivation.
"""

from __future__ import annotations

from analysis.base import ChartType
from analysis.charts import MAX_BAR_GROUPS, MAX_PIE_SLICES, build_charts, truncate_label

HEADERS = ["date", "campaign", "clicks", "cost"]
ROWS = [
    ["2024-01-02", "Brand", "10", "5"],
    ["2024-01-01", "Generic", "30", "7"],
    ["2024-01-03", "Brand", "15", "2"],
]


class TestBuildCharts:
    def test_chart_order_is_line_bar_pie_comparison(self) -> None:
        charts = build_charts(HEADERS, ROWS)

        assert [chart.type for chart in charts] == [
            ChartType.LINE,
            ChartType.LINE,
            ChartType.BAR,
            ChartType.PIE,
            ChartType.BAR,
        ]
        assert [chart.title for chart in charts] == [
            "clicks Over Time",
            "cost Over Time",
            "Top campaign by clicks",
            "clicks Distribution by campaign",
            "Metrics Comparison",
        ]

    def test_line_points_are_sorted_by_date(self) -> None:
        line = build_charts(HEADERS, ROWS)[0]

        assert [point.label for point in line.data] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert [point.value for point in line.data] == [30.0, 10.0, 15.0]
        assert line.x_axis_label == "Date"
        assert line.y_axis_label == "clicks"

    def test_group_totals_sorted_descending(self) -> None:
        bar = build_charts(HEADERS, ROWS)[2]

        assert [(point.label, point.value) for point in bar.data] == [("Generic", 30.0), ("Brand", 25.0)]

    def test_pie_slices_keep_full_category(self) -> None:
        pie = build_charts(HEADERS, ROWS)[3]

        assert [point.category for point in pie.data] == ["Generic", "Brand"]

    def test_comparison_totals_each_numeric_column(self) -> None:
        comparison = build_charts(HEADERS, ROWS)[-1]

        assert [(point.label, point.value) for point in comparison.data] == [("clicks", 55.0), ("cost", 14.0)]

    def test_single_dated_row_has_no_line_chart(self) -> None:
        charts = build_charts(HEADERS, ROWS[:1])

        assert all(chart.type != ChartType.LINE for chart in charts)

    def test_bar_falls_back_to_unclassified_column(self) -> None:
        headers = ["name", "clicks"]
        rows = [["alpha", "1"], ["beta", "4"], ["gamma", "2"]]

        charts = build_charts(headers, rows)

        assert len(charts) == 1
        assert charts[0].title == "Top name by clicks"
        assert [point.label for point in charts[0].data] == ["beta", "gamma", "alpha"]

    def test_no_numeric_columns_yields_no_charts(self) -> None:
        charts = build_charts(["campaign", "channel"], [["a", "x"], ["b", "y"]])

        assert charts == []

    def test_group_and_slice_limits(self) -> None:
        rows = [["2024-01-01", f"campaign-{index}", str(index), "1"] for index in range(1, 21)]

        charts = build_charts(HEADERS, rows)
        bar = next(chart for chart in charts if chart.title.startswith("Top "))
        pie = next(chart for chart in charts if chart.type == ChartType.PIE)

        assert len(bar.data) == MAX_BAR_GROUPS
        assert len(pie.data) == MAX_PIE_SLICES
        assert bar.data[0].label == "campaign-20"

    def test_overflowing_group_total_is_dropped(self) -> None:
        rows = [
            ["2024-01-01", "Brand", "1e308", "1"],
            ["2024-01-02", "Brand", "1e308", "1"],
            ["2024-01-03", "Generic", "20", "1"],
            ["2024-01-04", "Search", "10", "1"],
        ]

        bar = next(chart for chart in build_charts(HEADERS, rows) if chart.title == "Top campaign by clicks")

        assert [(point.label, point.value) for point in bar.data] == [("Generic", 20.0), ("Search", 10.0)]


def test_truncate_label() -> None:
    assert truncate_label("short", 20) == "short"
    assert truncate_label("a" * 25, 20) == "a" * 20 + "..."
