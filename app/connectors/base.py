"""
app/connectors/base.py

Base platform connector and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

import requests

from app.config import ExternalHTTPSettings
from app.errors import PermissionDeniedError, ProviderError, TokenExpiredError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


@dataclass(frozen=True)
class PlatformCredentials:
    access_token: str
    refresh_token: str | None = None


@dataclass(frozen=True)
class ProviderFetchResult:
    """
    Tabular provider response. Every row has len(headers) cells.
    """

    headers: list[str]
    rows: list[list[str]]
    total_rows: int


class BasePlatformConnector(ABC):
    """
    Connector interface for fetching report rows from an ad or analytics
    platform.
    """

    platform: str
    display_name: str
    default_metrics: tuple[str, ...] = ()
    default_dimensions: tuple[str, ...] = ()

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0

    @abstractmethod
    def fetch(
        self,
        account_ref: str,
        credentials: PlatformCredentials,
        date_range: tuple[date, date],
        metrics: Sequence[str],
        dimensions: Sequence[str],
    ) -> ProviderFetchResult:
        """
        Fetch report rows for *account_ref* over the inclusive date range.
        """

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        response = self._request(method=method, url=url, params=params, headers=headers, json_body=json_body)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(self.display_name, "response was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> requests.Response:
        """
        Execute an HTTP request with rate limiting.

        401 and 403 map to credential errors. Transport failures and
        retryable statuses are retried only when max_retries > 0, which is
        off by default.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            self._apply_rate_limit()
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=headers,
                    json=json_body,
                    timeout=self._timeout_seconds,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            else:
                status_code = response.status_code
                if status_code == 401:
                    raise TokenExpiredError(self.display_name)
                if status_code == 403:
                    raise PermissionDeniedError(self.display_name)
                if 200 <= status_code < 300:
                    return response
                last_error = ProviderError(self.display_name, f"HTTP {status_code}.")
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Platform request failed platform=%s status=%s url=%s",
                        self.platform,
                        status_code,
                        url,
                    )
                    raise last_error

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Platform request retry platform=%s attempt=%s/%s wait_seconds=%.2f url=%s",
                self.platform,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error(
            "Platform request failed platform=%s url=%s error=%s",
            self.platform,
            url,
            last_error,
        )
        if isinstance(last_error, ProviderError):
            raise last_error
        raise ProviderError(self.display_name, f"request failed: {last_error}") from last_error

    def _apply_rate_limit(self) -> None:
        """
        Enforce minimum interval between outbound requests.
        """

        if self._min_request_interval_seconds <= 0:
            return

        now = time.monotonic()
        elapsed = now - self._last_request_monotonic
        remaining = self._min_request_interval_seconds - elapsed
        if remaining > 0:
            time.sleep(remaining)
        self._last_request_monotonic = time.monotonic()
