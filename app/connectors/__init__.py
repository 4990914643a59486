"""
app/connectors package marker.
"""

from app.connectors.base import BasePlatformConnector, PlatformCredentials, ProviderFetchResult
from app.connectors.facebook_ads import FacebookAdsConnector
from app.connectors.google_ads import GoogleAdsConnector
from app.connectors.google_analytics import GoogleAnalyticsConnector

__all__ = [
    "BasePlatformConnector",
    "PlatformCredentials",
    "ProviderFetchResult",
    "GoogleAnalyticsConnector",
    "GoogleAdsConnector",
    "FacebookAdsConnector",
]
