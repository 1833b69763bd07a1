"""
Shared environment-driven database configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def normalize_postgres_url(url: str) -> str:
    """
    Normalize postgres URLs to SQLAlchemy's recommended psycopg driver form.
    """

    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


CLOUD_LIKE_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})


def is_cloud_environment() -> bool:
    """
    True when ENVIRONMENT selects CLOUD_DATABASE_URL.
    """

    return os.getenv("ENVIRONMENT", "local").strip().lower() in CLOUD_LIKE_ENVIRONMENTS


def resolve_database_url() -> str:
    """
    Resolve database URL using environment variables and optional .env files.

    Priority:
    1) DATABASE_URL
    2) CLOUD_DATABASE_URL when ENVIRONMENT is cloud-like
    3) LOCAL_DATABASE_URL
    """

    load_env_files()

    direct_url = os.getenv("DATABASE_URL")
    if direct_url:
        return normalize_postgres_url(direct_url)

    cloud_url = os.getenv("CLOUD_DATABASE_URL")
    if is_cloud_environment() and cloud_url:
        return normalize_postgres_url(cloud_url)

    local_url = os.getenv("LOCAL_DATABASE_URL")
    if local_url:
        return normalize_postgres_url(local_url)

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, or configure "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Connection and pool parameters for the relational store.

    ``pool_size + max_overflow`` is the hard ceiling on concurrent connections.
    """

    url: str
    pool_size: int = 5
    max_overflow: int = 15
    pool_timeout_seconds: int = 2
    pool_recycle_seconds: int = 1800
    connect_timeout_seconds: int = 2
    statement_timeout_ms: int = 30_000
    echo: bool = False


def get_database_settings() -> DatabaseSettings:
    """
    Build database settings from the environment.

    Not cached: callers construct the engine once and pass it down explicitly.
    """

    url = resolve_database_url()
    return DatabaseSettings(
        url=url,
        pool_size=max(1, _get_int_env("DB_POOL_SIZE", 5)),
        max_overflow=max(0, _get_int_env("DB_MAX_OVERFLOW", 15)),
        pool_timeout_seconds=max(1, _get_int_env("DB_POOL_TIMEOUT_SECONDS", 2)),
        pool_recycle_seconds=_get_int_env("DB_POOL_RECYCLE", 1800),
        connect_timeout_seconds=max(1, _get_int_env("DB_CONNECT_TIMEOUT_SECONDS", 2)),
        statement_timeout_ms=max(0, _get_int_env("DB_STATEMENT_TIMEOUT_MS", 30_000)),
        echo=_get_bool_env("SQL_ECHO", default=False),
    )
