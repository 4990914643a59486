"""
tests/test_connectors.py

Platform connector tests against a scripted requests session. No network.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any

import pytest
import requests

from app.config import ExternalHTTPSettings, PlatformSettings
from app.connectors import (
    FacebookAdsConnector,
    GoogleAdsConnector,
    GoogleAnalyticsConnector,
    PlatformCredentials,
)
from app.connectors.google_ads import build_gaql_query, extract_field_value
from app.errors import AnalyticsError, PermissionDeniedError, ProviderError, TokenExpiredError

CREDENTIALS = PlatformCredentials(access_token="token-123")
DATE_RANGE = (date(2024, 1, 1), date(2024, 1, 31))


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def request(self, **kwargs: Any) -> FakeResponse:
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _http(max_retries: int = 0) -> ExternalHTTPSettings:
    return ExternalHTTPSettings(
        timeout_seconds=5.0,
        max_retries=max_retries,
        backoff_initial_seconds=0.0,
        rate_limit_per_second=0.0,
    )


def _connector(cls, session: FakeSession, max_retries: int = 0):
    return cls(
        settings=PlatformSettings(google_ads_developer_token="dev-token"),
        http_settings=_http(max_retries),
        session=session,
    )


# ---------------------------------------------------------------------------
# Google Analytics
# ---------------------------------------------------------------------------


class TestGoogleAnalyticsConnector:
    def test_flattens_run_report_rows(self) -> None:
        session = FakeSession(
            FakeResponse(
                payload={
                    "dimensionHeaders": [{"name": "date"}, {"name": "country"}],
                    "metricHeaders": [{"name": "sessions"}, {"name": "totalUsers"}],
                    "rows": [
                        {
                            "dimensionValues": [{"value": "20240101"}, {"value": "US"}],
                            "metricValues": [{"value": "120"}, {}],
                        }
                    ],
                }
            )
        )

        result = _connector(GoogleAnalyticsConnector, session).fetch(
            "properties-1", CREDENTIALS, DATE_RANGE, ["sessions", "totalUsers"], ["date", "country"]
        )

        assert result.headers == ["date", "country", "sessions", "totalUsers"]
        assert result.rows == [["20240101", "US", "120", "0"]]
        assert result.total_rows == 1
        call = session.calls[0]
        assert call["url"].endswith("/properties/properties-1:runReport")
        assert call["headers"]["Authorization"] == "Bearer token-123"
        assert call["json"]["dateRanges"] == [{"startDate": "2024-01-01", "endDate": "2024-01-31"}]
        assert call["timeout"] == 5.0

    def test_empty_report(self) -> None:
        session = FakeSession(FakeResponse(payload={}))

        result = _connector(GoogleAnalyticsConnector, session).fetch("p", CREDENTIALS, DATE_RANGE, [], [])

        assert result.rows == []


# ---------------------------------------------------------------------------
# Google Ads
# ---------------------------------------------------------------------------


class TestGoogleAdsConnector:
    def test_reads_camel_case_fields_across_batches(self) -> None:
        session = FakeSession(
            FakeResponse(
                payload=[
                    {"results": [{"segments": {"date": "2024-01-02"}, "metrics": {"costMicros": "1500000"}}]},
                    {"results": [{"segments": {"date": "2024-01-01"}, "metrics": {}}]},
                ]
            )
        )

        result = _connector(GoogleAdsConnector, session).fetch(
            "123", CREDENTIALS, DATE_RANGE, ["metrics.cost_micros"], ["segments.date"]
        )

        assert result.headers == ["segments.date", "metrics.cost_micros"]
        assert result.rows == [["2024-01-02", "1500000"], ["2024-01-01", ""]]
        call = session.calls[0]
        assert call["headers"]["developer-token"] == "dev-token"
        assert "BETWEEN '2024-01-01' AND '2024-01-31'" in call["json"]["query"]

    def test_query_shape(self) -> None:
        query = build_gaql_query(["segments.date", "metrics.clicks"], date(2024, 1, 1), date(2024, 1, 2))

        assert query.startswith("SELECT segments.date, metrics.clicks FROM campaign WHERE")
        assert query.endswith("LIMIT 10000")

    def test_extract_field_value(self) -> None:
        result = {"campaign": {"name": "Brand", "status": None}}

        assert extract_field_value(result, "campaign.name") == "Brand"
        assert extract_field_value(result, "campaign.status") == ""
        assert extract_field_value(result, "campaign.name.extra") == ""
        assert extract_field_value(result, "metrics.clicks") == ""


# ---------------------------------------------------------------------------
# Facebook Ads
# ---------------------------------------------------------------------------


class TestFacebookAdsConnector:
    def test_reads_insights_rows(self) -> None:
        session = FakeSession(
            FakeResponse(payload={"data": [{"date_start": "2024-01-01", "clicks": "12", "actions": [1]}]})
        )

        result = _connector(FacebookAdsConnector, session).fetch(
            "act_1", CREDENTIALS, DATE_RANGE, ["clicks", "actions"], ["date_start"]
        )

        assert result.rows == [["2024-01-01", "12", ""]]
        params = session.calls[0]["params"]
        assert params["fields"] == "date_start,clicks,actions"
        assert json.loads(params["time_range"]) == {"since": "2024-01-01", "until": "2024-01-31"}
        assert params["access_token"] == "token-123"

    def test_error_body_is_a_provider_error(self) -> None:
        session = FakeSession(FakeResponse(payload={"error": {"message": "Invalid account"}}))

        with pytest.raises(ProviderError) as ctx:
            _connector(FacebookAdsConnector, session).fetch("act_1", CREDENTIALS, DATE_RANGE, ["clicks"], [])

        assert ctx.value.code == "FACEBOOK_API_ERROR"
        assert "Invalid account" in ctx.value.message


# ---------------------------------------------------------------------------
# Shared HTTP behavior
# ---------------------------------------------------------------------------


class TestHttpMechanics:
    @pytest.mark.parametrize(
        ("status", "error_type", "code", "http_status"),
        [
            (401, TokenExpiredError, "TOKEN_EXPIRED", 401),
            (403, PermissionDeniedError, "INSUFFICIENT_PERMISSIONS", 403),
            (400, ProviderError, "PROVIDER_ERROR", 500),
        ],
    )
    def test_status_mapping(self, status: int, error_type: type, code: str, http_status: int) -> None:
        session = FakeSession(FakeResponse(status_code=status))

        with pytest.raises(error_type) as ctx:
            _connector(GoogleAnalyticsConnector, session).fetch("p", CREDENTIALS, DATE_RANGE, [], [])

        assert ctx.value.code == code
        assert ctx.value.http_status == http_status
        assert len(session.calls) == 1

    def test_no_retry_by_default(self) -> None:
        session = FakeSession(FakeResponse(status_code=503), FakeResponse(payload={}))

        with pytest.raises(ProviderError):
            _connector(GoogleAnalyticsConnector, session).fetch("p", CREDENTIALS, DATE_RANGE, [], [])

        assert len(session.calls) == 1

    def test_retries_when_enabled(self) -> None:
        session = FakeSession(
            requests.ConnectionError("reset"),
            FakeResponse(status_code=503),
            FakeResponse(payload={"rows": []}),
        )

        result = _connector(GoogleAnalyticsConnector, session, max_retries=2).fetch(
            "p", CREDENTIALS, DATE_RANGE, [], []
        )

        assert result.rows == []
        assert len(session.calls) == 3

    def test_transport_failure_is_wrapped(self) -> None:
        session = FakeSession(requests.Timeout("slow"))

        with pytest.raises(AnalyticsError) as ctx:
            _connector(GoogleAnalyticsConnector, session).fetch("p", CREDENTIALS, DATE_RANGE, [], [])

        assert ctx.value.code == "PROVIDER_ERROR"

    def test_invalid_json_body(self) -> None:
        session = FakeSession(FakeResponse(text="<html>"))

        with pytest.raises(ProviderError) as ctx:
            _connector(GoogleAnalyticsConnector, session).fetch("p", CREDENTIALS, DATE_RANGE, [], [])

        assert "not valid JSON" in ctx.value.message
