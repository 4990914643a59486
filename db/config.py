"""
db/config.py

Environment-driven database settings shared by the API, the job runner and
Alembic.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]


def load_env_files() -> None:
    """
    Load KEY=VALUE pairs from `.env` then `.env.local` when present.
    Variables already in the process environment win.
    """

    for filename in (".env", ".env.local"):
        env_path = _PROJECT_ROOT / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            if key and key not in os.environ:
                os.environ[key] = value.strip().strip('"').strip("'")


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite bare postgres URLs to the psycopg (v3) driver form.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})


def database_url_candidates() -> list[str]:
    """
    Env var names consulted for the database URL, highest priority first.
    CLOUD_DATABASE_URL only counts when ENVIRONMENT is cloud-like.
    """

    names = ["DATABASE_URL"]
    if os.getenv("ENVIRONMENT", "local").strip().lower() in CLOUD_ENVIRONMENTS:
        names.append("CLOUD_DATABASE_URL")
    names.append("LOCAL_DATABASE_URL")
    return names


def resolve_database_url() -> str:
    load_env_files()
    for name in database_url_candidates():
        url = (os.getenv(name) or "").strip()
        if url:
            return normalize_postgres_url(url)
    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, or LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, ""))
    except ValueError:
        return default


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800


def get_database_settings() -> DatabaseSettings:
    url = resolve_database_url()
    return DatabaseSettings(
        url=url,
        echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        pool_size=max(1, _int_env("DB_POOL_SIZE", 5)),
        max_overflow=max(0, _int_env("DB_MAX_OVERFLOW", 10)),
        pool_recycle_seconds=max(60, _int_env("DB_POOL_RECYCLE", 1800)),
    )
