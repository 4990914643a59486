"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class UploadSettings:
    """
    Limits and storage location for uploaded report files.
    """

    max_file_size_bytes: int = 10 * 1024 * 1024
    storage_root: str = "data/reports"


@dataclass(frozen=True)
class LLMSettings:
    """
    Text-generation adapter selection and call parameters.
    """

    adapter: str = "openai"
    model: str = "gpt-4o-mini"
    max_tokens: int = 2000
    temperature: float = 0.3
    timeout_seconds: float = 30.0
    api_key: str | None = None
    base_url: str | None = None


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for platform connectors.
    """

    timeout_seconds: float = 30.0
    max_retries: int = 0
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class PlatformSettings:
    """
    Endpoints and static credentials for the ad/analytics platforms.
    """

    google_analytics_base_url: str = "https://analyticsdata.googleapis.com/v1beta"
    google_ads_base_url: str = "https://googleads.googleapis.com/v14"
    google_ads_developer_token: str | None = None
    facebook_graph_base_url: str = "https://graph.facebook.com/v18.0"
    max_date_range_days: int = 365


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Poll loop and worker pool settings for scheduled report jobs.
    """

    enabled: bool = True
    poll_interval_seconds: int = 60
    batch_size: int = 10
    max_workers: int = 4


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload settings from environment variables.
    """

    return UploadSettings(
        max_file_size_bytes=max(1, _get_int_env("UPLOAD_MAX_FILE_SIZE_BYTES", 10 * 1024 * 1024)),
        storage_root=_get_str_env("REPORT_STORAGE_ROOT", "data/reports"),
    )


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached text-generation settings from environment variables.
    """

    return LLMSettings(
        adapter=_get_str_env("LLM_ADAPTER", "openai").lower(),
        model=_get_str_env("LLM_MODEL", "gpt-4o-mini"),
        max_tokens=max(1, _get_int_env("LLM_MAX_TOKENS", 2000)),
        temperature=min(2.0, max(0.0, _get_float_env("LLM_TEMPERATURE", 0.3))),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 30.0)),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 0)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_platform_settings() -> PlatformSettings:
    """
    Return platform endpoint settings from environment variables.
    """

    return PlatformSettings(
        google_analytics_base_url=_get_str_env(
            "GOOGLE_ANALYTICS_BASE_URL", "https://analyticsdata.googleapis.com/v1beta"
        ),
        google_ads_base_url=_get_str_env("GOOGLE_ADS_BASE_URL", "https://googleads.googleapis.com/v14"),
        google_ads_developer_token=_get_optional_str_env("GOOGLE_ADS_DEVELOPER_TOKEN"),
        facebook_graph_base_url=_get_str_env("FACEBOOK_GRAPH_BASE_URL", "https://graph.facebook.com/v18.0"),
        max_date_range_days=max(1, _get_int_env("INTEGRATION_MAX_DATE_RANGE_DAYS", 365)),
    )


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return scheduler poll and worker pool settings.
    """

    return SchedulerSettings(
        enabled=_get_bool_env("SCHEDULER_ENABLED", True),
        poll_interval_seconds=max(5, _get_int_env("SCHEDULER_POLL_INTERVAL_SECONDS", 60)),
        batch_size=max(1, _get_int_env("SCHEDULER_BATCH_SIZE", 10)),
        max_workers=max(1, _get_int_env("SCHEDULER_MAX_WORKERS", 4)),
    )
