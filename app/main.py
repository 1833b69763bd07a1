from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from sqlalchemy.engine import Engine


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - No empty-string values are accepted.
    - A database URL must be configured.
    - The spreadsheet id and one Sheets credential must be configured.
    - INVENTORY_FEED_LAYOUT, when set, must name a known layout.
    """

    from db.config import is_cloud_environment, load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    database_url = os.getenv("DATABASE_URL", "").strip()
    # CLOUD_DATABASE_URL only counts where resolve_database_url would use it.
    cloud_database_url = (
        os.getenv("CLOUD_DATABASE_URL", "").strip() if is_cloud_environment() else ""
    )
    local_database_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
    if not database_url and not cloud_database_url and not local_database_url:
        errors.append(
            "No database URL configured. Set DATABASE_URL or LOCAL_DATABASE_URL, "
            "or CLOUD_DATABASE_URL with ENVIRONMENT=prod|production|staging|cloud."
        )

    # --- Google Sheets feed ---------------------------------------------
    if not os.getenv("GOOGLE_SHEET_ID", "").strip():
        errors.append("GOOGLE_SHEET_ID is not set. Empty strings are not permitted.")

    api_key = os.getenv("GOOGLE_SHEETS_API_KEY", "").strip()
    access_token = os.getenv("GOOGLE_SHEETS_ACCESS_TOKEN", "").strip()
    if not api_key and not access_token:
        errors.append(
            "Google Sheets credentials are not set. Provide GOOGLE_SHEETS_API_KEY "
            "or GOOGLE_SHEETS_ACCESS_TOKEN."
        )

    # --- Feed layout ----------------------------------------------------
    layout = os.getenv("INVENTORY_FEED_LAYOUT", "").strip()
    if layout:
        from app.mappers.product_row_mapper import PRODUCT_FEED_LAYOUTS

        if layout.lower() not in PRODUCT_FEED_LAYOUTS:
            errors.append(
                f"INVENTORY_FEED_LAYOUT='{layout}' is not valid. "
                f"Allowed values: {sorted(PRODUCT_FEED_LAYOUTS)}."
            )

    if errors:
        raise RuntimeError(
            "Startup validation failed. Missing or invalid environment variables:\n"
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


def _check_db(engine: Engine) -> None:
    """Run SELECT 1 on a pooled connection. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema(engine: Engine) -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    If any are missing, log a critical error and abort startup so that
    the operator is forced to run migrations before serving traffic.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base

    inspector = sa_inspect(engine)
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the engine, validate DB and schema, start the scheduler on boot; tear down on exit."""
    from app.config import get_inventory_sync_settings
    from app.scheduler.jobs import InventorySyncJob, build_scheduler
    from app.services.inventory_sync_service import build_inventory_sync_service
    from db.config import get_database_settings
    from db.session import build_session_factory, create_db_engine

    log = logging.getLogger(__name__)
    engine = create_db_engine(get_database_settings())

    _check_db(engine)
    log.info("Database connectivity confirmed")
    _check_schema(engine)
    log.info("Database schema validated")

    sync_settings = get_inventory_sync_settings()
    sync_service = build_inventory_sync_service(
        build_session_factory(engine),
        sync_settings=sync_settings,
    )
    application.state.inventory_sync_service = sync_service

    scheduler = None
    if sync_settings.scheduler_enabled:
        job = InventorySyncJob(
            service=sync_service,
            max_retries=sync_settings.max_retries,
            retry_delay_seconds=sync_settings.retry_delay_seconds,
        )
        scheduler = build_scheduler(job, interval_minutes=sync_settings.interval_minutes)
        scheduler.start()
        log.info(
            "Scheduler started with %d jobs interval_minutes=%s",
            len(scheduler.get_jobs()),
            sync_settings.interval_minutes,
        )
    else:
        log.info("Scheduler disabled by INVENTORY_SYNC_SCHEDULER_ENABLED")

    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=True)
            log.info("Scheduler shut down")
        engine.dispose()
        log.info("Database engine disposed")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Inventory Sync API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import inventory_sync_router

    application.include_router(inventory_sync_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
