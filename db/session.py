"""
db/session.py

Lazily created SQLAlchemy engine and session factory.

Nothing touches the database until the first session is requested, so
modules importing SessionLocal stay importable without a configured
DATABASE_URL (tests, tooling).
"""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import get_database_settings

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def create_db_engine() -> Engine:
    settings = get_database_settings()
    if not settings.url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_recycle=settings.pool_recycle_seconds,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def SessionLocal() -> Session:
    """Open a new session on the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            class_=Session,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
