"""
app/connectors/facebook_ads.py

Facebook Marketing API connector (ad account insights).
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Sequence

import requests

from app.config import ExternalHTTPSettings, PlatformSettings
from app.connectors.base import BasePlatformConnector, PlatformCredentials, ProviderFetchResult
from app.errors import ProviderError

logger = logging.getLogger(__name__)

INSIGHTS_PAGE_LIMIT = 1000


class FacebookAdsConnector(BasePlatformConnector):
    platform = "facebook-ads"
    display_name = "Facebook Ads"
    default_metrics = ("impressions", "clicks", "spend", "conversions", "ctr")
    default_dimensions = ("date_start", "campaign_name", "objective")

    def __init__(
        self,
        *,
        settings: PlatformSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(http_settings=http_settings, session=session)
        self._base_url = settings.facebook_graph_base_url.rstrip("/")

    def fetch(
        self,
        account_ref: str,
        credentials: PlatformCredentials,
        date_range: tuple[date, date],
        metrics: Sequence[str],
        dimensions: Sequence[str],
    ) -> ProviderFetchResult:
        start, end = date_range
        headers = [*dimensions, *metrics]
        payload = self._request_json(
            method="GET",
            url=f"{self._base_url}/{account_ref}/insights",
            params={
                "fields": ",".join(headers),
                "time_range": json.dumps({"since": start.isoformat(), "until": end.isoformat()}),
                "level": "campaign",
                "limit": INSIGHTS_PAGE_LIMIT,
                "access_token": credentials.access_token,
            },
        )
        if not isinstance(payload, dict):
            payload = {}

        error = payload.get("error")
        if error:
            detail = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderError(
                self.display_name,
                detail or "Failed to fetch data.",
                code="FACEBOOK_API_ERROR",
            )

        rows = [[_cell(item, field) for field in headers] for item in payload.get("data") or []]

        logger.info("Facebook insights fetched account=%s rows=%s", account_ref, len(rows))
        return ProviderFetchResult(headers=headers, rows=rows, total_rows=len(rows))


def _cell(item: Any, field: str) -> str:
    if not isinstance(item, dict):
        return ""
    value = item.get(field)
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)
