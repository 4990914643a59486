"""
app/main.py

FastAPI application factory for the marketing analytics API.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.error_handlers import register_error_handlers


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before any service or database connection is initialised and
    raises one RuntimeError listing every missing or invalid variable.

    Rules:
    - A PostgreSQL database URL must be configured.
    - The LLM API key check is skipped only when LLM_ADAPTER=mock.
    - LLM_ADAPTER must be 'openai' or 'mock'.
    """

    from db.config import database_url_candidates, load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    database_url = next(
        (os.getenv(name, "").strip() for name in database_url_candidates() if os.getenv(name, "").strip()),
        "",
    )
    if not database_url:
        errors.append(
            "No database URL configured. Set DATABASE_URL, or LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
        )
    elif not database_url.startswith(("postgres://", "postgresql")):
        errors.append("The database URL must point at PostgreSQL.")

    # --- LLM adapter ----------------------------------------------------
    adapter = os.getenv("LLM_ADAPTER", "openai").strip().lower()
    if adapter not in {"openai", "mock"}:
        errors.append(f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: ['mock', 'openai'].")
    elif adapter != "mock":
        llm_api_key = os.getenv("LLM_API_KEY", "").strip()
        openai_api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not llm_api_key and not openai_api_key:
            errors.append("LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY, or set LLM_ADAPTER=mock.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.
    Missing tables abort startup; nothing is auto-migrated.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers the ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    actual = set(sa_inspect(get_engine()).get_table_names())
    missing = sorted(set(Base.metadata.tables.keys()) - actual)
    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch, %d table(s) missing from the database: %s. Run 'alembic upgrade head'.",
            len(missing),
            ", ".join(missing),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(missing)}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, run the report scheduler while serving."""
    log = logging.getLogger(__name__)
    _check_db()
    log.info("Database connectivity confirmed")
    _check_schema()
    log.info("Database schema validated")

    from app.config import get_scheduler_settings
    from app.scheduler.jobs import build_scheduler
    from app.services.job_runner import get_job_runner

    settings = get_scheduler_settings()
    scheduler = None
    if settings.enabled:
        scheduler = build_scheduler(settings)
        scheduler.start()
        log.info("Scheduler started poll_interval_seconds=%s", settings.poll_interval_seconds)
    else:
        log.info("Scheduler disabled by SCHEDULER_ENABLED")
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=True)
            log.info("Scheduler shut down")
        get_job_runner().shutdown(wait=True)
        log.info("Job runner shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Marketing Analytics API",
        version="1.0.0",
        lifespan=_lifespan,
    )
    register_error_handlers(application)

    from app.api.routers import (
        analysis_router,
        integrations_router,
        scheduled_jobs_router,
        unified_dashboard_router,
        upload_router,
    )

    application.include_router(upload_router)
    application.include_router(analysis_router)
    application.include_router(integrations_router)
    application.include_router(scheduled_jobs_router)
    application.include_router(unified_dashboard_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "healthy"}

    return application


app = create_app()
