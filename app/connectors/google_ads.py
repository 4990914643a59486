"""
app/connectors/google_ads.py

Google Ads API connector (customers:searchStream with a GAQL query).
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Sequence

import requests

from app.config import ExternalHTTPSettings, PlatformSettings
from app.connectors.base import BasePlatformConnector, PlatformCredentials, ProviderFetchResult

logger = logging.getLogger(__name__)

QUERY_ROW_LIMIT = 10000


def build_gaql_query(fields: Sequence[str], start: date, end: date) -> str:
    return (
        f"SELECT {', '.join(fields)} "
        "FROM campaign "
        f"WHERE segments.date BETWEEN '{start.isoformat()}' AND '{end.isoformat()}' "
        "ORDER BY segments.date DESC "
        f"LIMIT {QUERY_ROW_LIMIT}"
    )


def _camel_case(part: str) -> str:
    return re.sub(r"_([a-z0-9])", lambda match: match.group(1).upper(), part)


def extract_field_value(result: Any, field_path: str) -> str:
    """
    Walk a dotted GAQL path such as ``metrics.cost_micros``.

    The REST API returns camelCase keys (``costMicros``), so each segment is
    looked up as written and then in camelCase.
    """

    value: Any = result
    for part in field_path.split("."):
        if not isinstance(value, dict):
            return ""
        if part in value:
            value = value[part]
        elif _camel_case(part) in value:
            value = value[_camel_case(part)]
        else:
            return ""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


class GoogleAdsConnector(BasePlatformConnector):
    platform = "google-ads"
    display_name = "Google Ads"
    default_metrics = (
        "metrics.impressions",
        "metrics.clicks",
        "metrics.cost_micros",
        "metrics.conversions",
        "metrics.ctr",
    )
    default_dimensions = ("segments.date", "campaign.name", "campaign.status")

    def __init__(
        self,
        *,
        settings: PlatformSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(http_settings=http_settings, session=session)
        self._base_url = settings.google_ads_base_url.rstrip("/")
        self._developer_token = settings.google_ads_developer_token or ""

    def fetch(
        self,
        account_ref: str,
        credentials: PlatformCredentials,
        date_range: tuple[date, date],
        metrics: Sequence[str],
        dimensions: Sequence[str],
    ) -> ProviderFetchResult:
        headers = [*dimensions, *metrics]
        payload = self._request_json(
            method="POST",
            url=f"{self._base_url}/customers/{account_ref}:searchStream",
            headers={
                "Authorization": f"Bearer {credentials.access_token}",
                "developer-token": self._developer_token,
                "login-customer-id": account_ref,
                "Content-Type": "application/json",
            },
            json_body={"query": build_gaql_query(headers, *date_range)},
        )

        # searchStream returns a list of batches; a single object is accepted too.
        batches = payload if isinstance(payload, list) else [payload]
        rows: list[list[str]] = []
        for batch in batches:
            if not isinstance(batch, dict):
                continue
            for result in batch.get("results") or []:
                rows.append([extract_field_value(result, field) for field in headers])

        logger.info("Google Ads report fetched customer=%s rows=%s", account_ref, len(rows))
        return ProviderFetchResult(headers=headers, rows=rows, total_rows=len(rows))
