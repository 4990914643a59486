"""Structured schema for LLM marketing-analysis replies.

The reply is untrusted: every field is coerced to a safe default instead of
rejected, so a single malformed insight never invalidates the whole payload.
"""

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Level = Literal["high", "medium", "low"]

_LEVELS = ("high", "medium", "low")
DEFAULT_SUMMARY = "Analysis completed successfully."


def _coerce_level(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in _LEVELS:
        return value.strip().lower()
    return "medium"


def _text_or(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _json_safe(value: Any) -> Any:
    """Drop floats JSON cannot carry (NaN, Infinity), recursing into containers."""
    if isinstance(value, dict):
        cleaned = {}
        for key, item in value.items():
            if isinstance(item, float) and not math.isfinite(item):
                continue
            cleaned[str(key)] = _json_safe(item)
        return cleaned
    if isinstance(value, list):
        return [
            _json_safe(item)
            for item in value
            if not (isinstance(item, float) and not math.isfinite(item))
        ]
    return value


class InsightPayload(BaseModel):
    """One insight as returned by the model, defaulted field by field."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    category: str = "General"
    title: str = "Insight"
    description: str = "No description available"
    impact: Level = "medium"
    metrics: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _default_fields(cls, data: Any) -> Dict[str, Any]:
        source = data if isinstance(data, dict) else {}
        metrics = source.get("metrics")
        return {
            "category": _text_or(source.get("category"), "General"),
            "title": _text_or(source.get("title"), "Insight"),
            "description": _text_or(source.get("description"), "No description available"),
            "impact": _coerce_level(source.get("impact")),
            "metrics": _json_safe(metrics) if isinstance(metrics, dict) else None,
        }


class RecommendationPayload(BaseModel):
    """One recommendation as returned by the model, defaulted field by field."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str = "Recommendation"
    description: str = "No description available"
    priority: Level = "medium"
    effort: Level = "medium"
    expected_impact: str = "Positive impact expected"

    @model_validator(mode="before")
    @classmethod
    def _default_fields(cls, data: Any) -> Dict[str, Any]:
        source = data if isinstance(data, dict) else {}
        expected = source.get("expectedImpact", source.get("expected_impact"))
        return {
            "title": _text_or(source.get("title"), "Recommendation"),
            "description": _text_or(source.get("description"), "No description available"),
            "priority": _coerce_level(source.get("priority")),
            "effort": _coerce_level(source.get("effort")),
            "expected_impact": _text_or(expected, "Positive impact expected"),
        }


class AnalysisPayload(BaseModel):
    """Top-level analysis object extracted from the model reply."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    insights: List[InsightPayload] = Field(default_factory=list)
    recommendations: List[RecommendationPayload] = Field(default_factory=list)
    summary: str = DEFAULT_SUMMARY
    key_metrics: Dict[str, Any] = Field(default_factory=dict, alias="keyMetrics")

    @field_validator("insights", "recommendations", mode="before")
    @classmethod
    def _list_or_empty(cls, value: Any) -> List[Any]:
        return value if isinstance(value, list) else []

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_or_default(cls, value: Any) -> str:
        return value if isinstance(value, str) and value.strip() else DEFAULT_SUMMARY

    @field_validator("key_metrics", mode="before")
    @classmethod
    def _metrics_or_empty(cls, value: Any) -> Dict[str, Any]:
        return _json_safe(value) if isinstance(value, dict) else {}
