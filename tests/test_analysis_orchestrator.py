"""
tests/test_analysis_orchestrator.py

Tests for the end-to-end analysis pipeline with in-memory storage and a
scripted generation adapter.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from datetime import date, datetime, timezone

import pytest

from analysis.base import AnalysisRequest, DateRange, FilterSpec
from analysis.orchestrator import AnalysisOrchestrator
from app.errors import AnalyticsError
from db.repositories.errors import FileStorageError
from db.repositories.storage import StoredObject
from llm_synthesis.adapter import (
    BaseLLMAdapter,
    LLMAuthenticationError,
    LLMRateLimitError,
    LLMServiceError,
    LLMTimeoutError,
    MockLLMAdapter,
)

CSV_BYTES = (
    b"date,campaign,clicks,cost\n"
    b"2024-01-01,Brand,100,50\n"
    b"2024-01-02,Generic,80,40\n"
    b"2024-01-03,Brand,120,60\n"
)
FILE_ID = "a1b2c3"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class InMemoryStorage:
    def __init__(self, objects: dict[str, bytes] | None = None, *, broken: bool = False) -> None:
        self.objects = dict(objects or {})
        self.broken = broken

    def upload(self, path: str, content: bytes, content_type: str | None = None) -> None:
        self.objects[path] = content

    def download(self, path: str) -> bytes:
        return self.objects[path]

    def list(self, prefix: str = "") -> Iterator[StoredObject]:
        if self.broken:
            raise FileStorageError("storage offline")
        for name in sorted(self.objects):
            if name.startswith(prefix):
                yield StoredObject(
                    name=name,
                    size_bytes=len(self.objects[name]),
                    updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                )


class ScriptedAdapter(BaseLLMAdapter):
    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply or ""


def _orchestrator(adapter: BaseLLMAdapter, storage: InMemoryStorage | None = None) -> AnalysisOrchestrator:
    storage = storage or InMemoryStorage({f"{FILE_ID}_campaigns.csv": CSV_BYTES})
    return AnalysisOrchestrator(storage=storage, adapter=adapter)


def _request(**overrides) -> AnalysisRequest:
    values = {"file_id": FILE_ID, "report_type": "ads", "analysis_type": "insights"}
    values.update(overrides)
    return AnalysisRequest(**values)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestAnalyze:
    def test_generated_analysis_is_used(self) -> None:
        result = _orchestrator(MockLLMAdapter()).analyze(_request())

        assert result.used_fallback is False
        assert result.summary == "Mock analysis summary."
        assert result.insights[0].title == "Mock insight for testing purposes"
        assert result.recommendations[0].expected_impact.startswith("Real insights")

    def test_key_metrics_combine_computed_and_generated(self) -> None:
        reply = json.dumps({"summary": "ok", "keyMetrics": {"clicks": 1.0, "roas": 3.5, "note": "x"}})

        result = _orchestrator(ScriptedAdapter(reply)).analyze(_request())

        assert result.key_metrics["clicks"] == 1.0
        assert result.key_metrics["cost"] == 150.0
        assert result.key_metrics["roas"] == 3.5
        assert "note" not in result.key_metrics

    def test_oversized_generated_metric_is_ignored(self) -> None:
        reply = '{"summary": "ok", "keyMetrics": {"clicks": ' + "9" * 400 + ', "roas": 2.0}}'

        result = _orchestrator(ScriptedAdapter(reply)).analyze(_request())

        assert result.used_fallback is False
        assert result.key_metrics["clicks"] == 300.0
        assert result.key_metrics["roas"] == 2.0

    def test_overflowing_column_totals_stay_json_safe(self) -> None:
        huge = (
            b"date,campaign,clicks,cost\n"
            b"2024-01-01,Brand,100,1e308\n"
            b"2024-01-02,Generic,80,1e308\n"
            b"2024-01-03,Brand,120,1e308\n"
        )
        reply = json.dumps({"summary": "ok", "insights": [{"title": "CTR", "metrics": {"ctr": 0.1}}]})
        storage = InMemoryStorage({f"{FILE_ID}_campaigns.csv": huge})

        result = _orchestrator(ScriptedAdapter(reply), storage).analyze(_request())

        assert "cost" not in result.key_metrics
        assert result.key_metrics["clicks"] == 300.0
        assert "Metrics Comparison" not in [chart.title for chart in result.charts]
        json.dumps(result.to_dict(), allow_nan=False)

    def test_result_carries_table_charts_and_summary(self) -> None:
        result = _orchestrator(MockLLMAdapter()).analyze(_request())
        payload = result.to_dict()

        assert payload["raw_data"]["headers"] == ["date", "campaign", "clicks", "cost"]
        assert len(payload["raw_data"]["rows"]) == 3
        assert payload["data_summary"]["date_range"] == {"earliest": "2024-01-01", "latest": "2024-01-03"}
        assert payload["data_summary"]["available_categories"] == ["Brand", "Generic"]
        assert [chart["type"] for chart in payload["charts"]][:2] == ["line", "line"]

    def test_filters_narrow_rows_and_are_reported(self) -> None:
        adapter = ScriptedAdapter(json.dumps({"summary": "filtered"}))
        filters = FilterSpec(
            date_range=DateRange(start=date(2024, 1, 2), end=date(2024, 1, 3)),
            selected_categories=("Brand",),
        )

        result = _orchestrator(adapter).analyze(_request(filters=filters))

        assert [row[0] for row in result.rows] == ["2024-01-03"]
        assert result.data_summary.total_rows == 3
        assert result.data_summary.filtered_rows == 1
        assert result.applied_filters == ("Date range: 2024-01-02 to 2024-01-03", "Categories: Brand")
        assert "2024-01-01" not in adapter.prompts[0]

    @pytest.mark.parametrize(
        "reply",
        ["", "Sorry, I cannot help with that.", '{"insights": ['],
    )
    def test_unusable_reply_falls_back(self, reply: str) -> None:
        result = _orchestrator(ScriptedAdapter(reply)).analyze(_request())

        assert result.used_fallback is True
        assert result.key_metrics["total_rows"] == 3.0
        assert result.key_metrics["total_columns"] == 4.0
        assert result.insights[0].title == "Data Successfully Processed"
        assert len(result.recommendations) == 2


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestAnalyzeFailures:
    @pytest.mark.parametrize(
        ("overrides", "code"),
        [
            ({"file_id": ""}, "MISSING_PARAMETERS"),
            ({"report_type": ""}, "MISSING_PARAMETERS"),
            ({"report_type": "seo"}, "INVALID_REPORT_TYPE"),
            ({"analysis_type": "forecast"}, "INVALID_ANALYSIS_TYPE"),
        ],
    )
    def test_invalid_parameters(self, overrides: dict, code: str) -> None:
        adapter = ScriptedAdapter("{}")

        with pytest.raises(AnalyticsError) as ctx:
            _orchestrator(adapter).analyze(_request(**overrides))

        assert ctx.value.code == code
        assert ctx.value.http_status == 400
        assert adapter.prompts == []

    def test_unknown_file_id(self) -> None:
        with pytest.raises(AnalyticsError) as ctx:
            _orchestrator(MockLLMAdapter()).analyze(_request(file_id="missing"))

        assert ctx.value.code == "FILE_NOT_FOUND"
        assert ctx.value.http_status == 404

    def test_storage_failure(self) -> None:
        storage = InMemoryStorage(broken=True)

        with pytest.raises(AnalyticsError) as ctx:
            _orchestrator(MockLLMAdapter(), storage).analyze(_request())

        assert ctx.value.code == "STORAGE_ACCESS_ERROR"
        assert ctx.value.http_status == 500

    def test_filters_removing_everything(self) -> None:
        filters = FilterSpec(date_range=DateRange(start=date(2030, 1, 1)))

        with pytest.raises(AnalyticsError) as ctx:
            _orchestrator(MockLLMAdapter()).analyze(_request(filters=filters))

        assert ctx.value.code == "NO_FILTERED_DATA"

    def test_parse_errors_propagate(self) -> None:
        storage = InMemoryStorage({f"{FILE_ID}_bad.csv": b"date,clicks\n"})

        with pytest.raises(AnalyticsError) as ctx:
            _orchestrator(MockLLMAdapter(), storage).analyze(_request())

        assert ctx.value.http_status == 400

    @pytest.mark.parametrize(
        ("error", "code", "status"),
        [
            (LLMRateLimitError("quota"), "AI_RATE_LIMIT", 429),
            (LLMTimeoutError(30), "AI_TIMEOUT", 504),
            (LLMAuthenticationError("bad key"), "AI_CONFIG_ERROR", 500),
            (LLMServiceError("boom"), "AI_ERROR", 500),
        ],
    )
    def test_generation_errors_are_classified(self, error: Exception, code: str, status: int) -> None:
        adapter = ScriptedAdapter(error=error)

        with pytest.raises(AnalyticsError) as ctx:
            _orchestrator(adapter).analyze(_request())

        assert ctx.value.code == code
        assert ctx.value.http_status == status
        assert len(adapter.prompts) == 1
