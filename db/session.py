"""
db/session.py

SQLAlchemy engine and session factory construction.

Nothing here is created at import time. The process entry point (API lifespan,
CLI script) builds one engine from ``DatabaseSettings`` and hands the session
factory to whatever needs the store.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import DatabaseSettings


def _connect_args(settings: DatabaseSettings) -> dict[str, object]:
    connect_args: dict[str, object] = {"connect_timeout": settings.connect_timeout_seconds}
    if settings.statement_timeout_ms > 0:
        connect_args["options"] = f"-c statement_timeout={settings.statement_timeout_ms}"
    return connect_args


def create_db_engine(settings: DatabaseSettings) -> Engine:
    """
    Create a pooled PostgreSQL engine from explicit settings.
    """

    if not settings.url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout_seconds,
        pool_recycle=settings.pool_recycle_seconds,
        connect_args=_connect_args(settings),
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Yield a fresh session and ensure it is closed on exit."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
