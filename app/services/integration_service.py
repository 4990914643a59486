"""
app/services/integration_service.py

Fetches report data from an ad or analytics platform and stores it as a
CSV file that the analysis pipeline can pick up by file id.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, Mapping, Sequence

from analysis.csv_parser import serialize_csv
from app.config import get_external_http_settings, get_platform_settings
from app.connectors.base import BasePlatformConnector, PlatformCredentials
from app.connectors.facebook_ads import FacebookAdsConnector
from app.connectors.google_ads import GoogleAdsConnector
from app.connectors.google_analytics import GoogleAnalyticsConnector
from app.errors import StorageError, invalid_argument, not_found
from app.services.upload_service import build_storage_path, get_blob_storage
from db.repositories.errors import FileStorageError
from db.repositories.storage import BlobStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrationFetchRequest:
    platform: str
    account_id: str
    access_token: str
    start_date: date
    end_date: date
    metrics: Sequence[str] = ()
    dimensions: Sequence[str] = ()
    refresh_token: str | None = None


@dataclass(frozen=True)
class IntegrationFetchResult:
    file_id: str
    file_name: str
    total_rows: int
    headers: list[str]
    uploaded_at: datetime
    rows: list[list[str]] = field(default_factory=list, repr=False)


class IntegrationService:
    """
    Validates fetch requests, dispatches them to the platform connector and
    persists the result.
    """

    def __init__(
        self,
        *,
        connectors: Mapping[str, BasePlatformConnector],
        storage: BlobStorage,
        max_date_range_days: int = 365,
    ) -> None:
        self._connectors = dict(connectors)
        self._storage = storage
        self._max_date_range_days = max_date_range_days

    def get_connector(self, platform: str) -> BasePlatformConnector:
        connector = self._connectors.get(platform)
        if connector is None:
            raise invalid_argument(
                "UNSUPPORTED_PLATFORM",
                f"Platform '{platform}' is not supported.",
                f"Use one of: {', '.join(sorted(self._connectors))}.",
            )
        return connector

    def validate_date_range(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise invalid_argument(
                "INVALID_DATE_RANGE",
                "Start date must be before end date.",
                "Check your date selection.",
            )
        if (end_date - start_date).days > self._max_date_range_days:
            raise invalid_argument(
                "DATE_RANGE_TOO_LARGE",
                f"Date range cannot exceed {self._max_date_range_days} days.",
                "Select a smaller date range.",
            )

    def fetch_data(self, request: IntegrationFetchRequest) -> IntegrationFetchResult:
        if not request.platform or not request.account_id or not request.access_token:
            raise invalid_argument(
                "MISSING_FIELDS",
                "Platform, account id, and access token are required.",
                "Provide all integration parameters.",
            )
        connector = self.get_connector(request.platform)
        self.validate_date_range(request.start_date, request.end_date)

        metrics = list(request.metrics) or list(connector.default_metrics)
        dimensions = list(request.dimensions) or list(connector.default_dimensions)

        result = connector.fetch(
            request.account_id,
            PlatformCredentials(access_token=request.access_token, refresh_token=request.refresh_token),
            (request.start_date, request.end_date),
            metrics,
            dimensions,
        )
        if not result.rows:
            raise not_found(
                "NO_DATA_FOUND",
                "No data was found for the specified date range and parameters.",
                "Widen the date range or choose different metrics.",
            )

        file_id = uuid.uuid4().hex
        file_name = (
            f"{request.platform}-{request.start_date.isoformat()}-to-{request.end_date.isoformat()}.csv"
        )
        content = serialize_csv(result.headers, result.rows).encode("utf-8")
        try:
            self._storage.upload(build_storage_path(file_id, file_name), content, "text/csv")
        except FileStorageError as exc:
            logger.error("Integration storage failed platform=%s error=%s", request.platform, exc)
            raise StorageError("Failed to save fetched data to storage.") from exc

        logger.info(
            "Integration data stored platform=%s account=%s file_id=%s rows=%s",
            request.platform,
            request.account_id,
            file_id,
            result.total_rows,
        )
        return IntegrationFetchResult(
            file_id=file_id,
            file_name=file_name,
            total_rows=result.total_rows,
            headers=list(result.headers),
            uploaded_at=datetime.now(timezone.utc),
            rows=[list(row) for row in result.rows],
        )

    def get_platform_configs(self) -> dict[str, dict[str, Any]]:
        return {
            platform: {
                "name": connector.display_name,
                "default_metrics": list(connector.default_metrics),
                "default_dimensions": list(connector.default_dimensions),
                "max_date_range": self._max_date_range_days,
            }
            for platform, connector in self._connectors.items()
        }


def build_connectors() -> dict[str, BasePlatformConnector]:
    settings = get_platform_settings()
    http_settings = get_external_http_settings()
    connectors: list[BasePlatformConnector] = [
        GoogleAnalyticsConnector(settings=settings, http_settings=http_settings),
        GoogleAdsConnector(settings=settings, http_settings=http_settings),
        FacebookAdsConnector(settings=settings, http_settings=http_settings),
    ]
    return {connector.platform: connector for connector in connectors}


@lru_cache(maxsize=1)
def get_integration_service() -> IntegrationService:
    """
    Build and cache the integration service with env-driven settings.
    """
    return IntegrationService(
        connectors=build_connectors(),
        storage=get_blob_storage(),
        max_date_range_days=get_platform_settings().max_date_range_days,
    )
