"""
tests/test_trend_comparison.py

Unit tests for period-over-period metric trends.
"""

from __future__ import annotations

import unittest

from scheduling.trends import classify_significance, classify_trend, compare_analyses


class TestClassifiers(unittest.TestCase):
    def test_trend_thresholds(self) -> None:
        self.assertEqual(classify_trend(5.1), "up")
        self.assertEqual(classify_trend(5.0), "stable")
        self.assertEqual(classify_trend(-5.0), "stable")
        self.assertEqual(classify_trend(-5.1), "down")

    def test_significance_thresholds(self) -> None:
        self.assertEqual(classify_significance(20.5), "high")
        self.assertEqual(classify_significance(-25), "high")
        self.assertEqual(classify_significance(20), "medium")
        self.assertEqual(classify_significance(10.5), "medium")
        self.assertEqual(classify_significance(10), "low")


class TestCompareAnalyses(unittest.TestCase):
    def test_changes_and_counters(self) -> None:
        summary = compare_analyses(
            {"sessions": 150, "cost": 90, "clicks": 102},
            {"sessions": 100, "cost": 100, "clicks": 100},
            {"current": "2024-01-08", "previous": "2024-01-01"},
        )

        by_metric = {item.metric: item for item in summary.insights}
        self.assertEqual([item.metric for item in summary.insights], ["sessions", "cost", "clicks"])
        self.assertEqual(by_metric["sessions"].change, 50.0)
        self.assertEqual(by_metric["sessions"].change_percent, 50.0)
        self.assertEqual(by_metric["sessions"].trend, "up")
        self.assertEqual(by_metric["sessions"].significance, "high")
        self.assertEqual(by_metric["cost"].trend, "down")
        self.assertEqual(by_metric["cost"].significance, "low")
        self.assertEqual(by_metric["clicks"].trend, "stable")
        self.assertEqual(summary.significant_changes, 1)
        self.assertEqual(summary.improvement_areas, 1)
        self.assertEqual(summary.decline_areas, 1)
        self.assertEqual(summary.comparison_period["previous"], "2024-01-01")

    def test_skips_unusable_metrics(self) -> None:
        summary = compare_analyses(
            {"zero_base": 10, "missing": 5, "text": "12", "flag": True, "ok": 11},
            {"zero_base": 0, "text": 10, "flag": False, "ok": 10},
        )

        self.assertEqual([item.metric for item in summary.insights], ["ok"])

    def test_oversized_values_are_skipped(self) -> None:
        summary = compare_analyses({"huge": 10**400, "ok": 11}, {"huge": 5, "ok": 10})

        self.assertEqual([item.metric for item in summary.insights], ["ok"])

    def test_empty_inputs(self) -> None:
        summary = compare_analyses(None, None)

        self.assertEqual(summary.insights, ())
        self.assertEqual(summary.to_dict()["comparison_period"], {})

    def test_to_dict_shape(self) -> None:
        payload = compare_analyses({"revenue": 80}, {"revenue": 100}).to_dict()

        self.assertEqual(
            payload["insights"][0],
            {
                "metric": "revenue",
                "current_value": 80.0,
                "previous_value": 100.0,
                "change": -20.0,
                "change_percent": -20.0,
                "trend": "down",
                "significance": "medium",
            },
        )
        self.assertEqual(payload["decline_areas"], 1)
