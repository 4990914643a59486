"""
tests/test_column_classifier.py

Unit tests for column role heuristics and cell value parsing.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from analysis.base import ColumnRole
from analysis.classifier import classify_columns, parse_date, parse_numeric


class TestParseNumeric:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("42", 42.0),
            ("$1,234.50", 1234.5),
            ("12.5%", 12.5),
            (" -3 ", -3.0),
        ],
    )
    def test_cleans_currency_thousands_and_percent(self, raw: str, expected: float) -> None:
        assert parse_numeric(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "n/a", "abc", None, "inf", "nan"])
    def test_unparseable_values_are_none(self, raw: str | None) -> None:
        assert parse_numeric(raw) is None


class TestParseDate:
    def test_iso_date(self) -> None:
        assert parse_date("2024-03-05") == datetime(2024, 3, 5)

    def test_compact_ga_date(self) -> None:
        assert parse_date("20240305") == datetime(2024, 3, 5)

    def test_us_slash_date(self) -> None:
        assert parse_date("03/05/2024") == datetime(2024, 3, 5)

    def test_zulu_timestamp_becomes_naive_utc(self) -> None:
        assert parse_date("2024-03-05T23:30:00Z") == datetime(2024, 3, 5, 23, 30)

    @pytest.mark.parametrize("raw", ["", "yesterday", None, "2024-13-40"])
    def test_unparseable_values_are_none(self, raw: str | None) -> None:
        assert parse_date(raw) is None


class TestClassifyColumns:
    def test_header_keywords_win(self) -> None:
        headers = ["Date", "Campaign", "Clicks"]
        rows = [["2024-01-01", "Brand", "10"], ["2024-01-02", "Generic", "12"]]

        result = classify_columns(headers, rows)

        assert result.roles == {
            "Date": ColumnRole.DATE,
            "Campaign": ColumnRole.CATEGORICAL,
            "Clicks": ColumnRole.NUMERIC,
        }
        assert result.primary_date == "Date"
        assert result.primary_categorical == "Campaign"
        assert result.primary_numeric == "Clicks"

    def test_each_column_gets_exactly_one_role(self) -> None:
        headers = ["updated_total", "x"]
        rows = [["1", "a"], ["2", "b"]]

        result = classify_columns(headers, rows)

        assert result.roles["updated_total"] == ColumnRole.DATE
        assert "updated_total" not in result.numeric_columns

    def test_numeric_by_value_sampling(self) -> None:
        headers = ["alpha", "beta"]
        rows = [["1", "x"], ["2", "y"], ["3", "z"], ["oops", "w"]]

        result = classify_columns(headers, rows)

        assert result.roles["alpha"] == ColumnRole.NUMERIC

    def test_categorical_by_low_cardinality(self) -> None:
        headers = ["alpha", "beta"]
        rows = [["a", "1"], ["b", "2"], ["a", "3"], ["b", "4"], ["a", "5"]]

        result = classify_columns(headers, rows)

        assert result.roles["alpha"] == ColumnRole.CATEGORICAL

    def test_all_distinct_text_is_unclassified(self) -> None:
        headers = ["alpha", "beta"]
        rows = [["a", "1"], ["b", "2"], ["c", "3"]]

        result = classify_columns(headers, rows)

        assert result.roles["alpha"] == ColumnRole.UNCLASSIFIED
