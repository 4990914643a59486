"""
alembic/env.py

Migration environment for the report, scheduling and unified-dashboard
tables. PostgreSQL only.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from db.base import Base
from db.config import normalize_postgres_url, resolve_database_url
from db.models import (  # noqa: F401  imports register the tables on Base.metadata
    HistoricalAnalysis,
    JobExecution,
    MetricSource,
    ScheduledJob,
    TrendComparison,
    UnifiedMetric,
)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _migration_url() -> str:
    """
    First match wins: `-x db_url=...`, ALEMBIC_DATABASE_URL, sqlalchemy.url
    from alembic.ini, then the application database URL.
    """

    x_args = context.get_x_argument(as_dictionary=True)
    candidates = (
        x_args.get("db_url"),
        os.getenv("ALEMBIC_DATABASE_URL"),
        config.get_main_option("sqlalchemy.url"),
    )
    explicit = next((value.strip() for value in candidates if value and value.strip()), None)
    url = normalize_postgres_url(explicit) if explicit else resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("Migrations support PostgreSQL URLs only.")
    return url


def _configure_kwargs() -> dict[str, object]:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
    }


def run_migrations_offline() -> None:
    context.configure(
        url=_migration_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _migration_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
