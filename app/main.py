from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, HTTPException


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - No empty-string values are accepted.
    - A destination database URL must be configured.
    - A source location is required: HTTP base URL or local directory.
      When both are set the HTTP location wins.
    - Numeric migration knobs must parse when present.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    url_names = ("MIGRATION_DATABASE_URL", "DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    if not any(os.getenv(name, "").strip() for name in url_names):
        errors.append(
            "No database URL configured. Set MIGRATION_DATABASE_URL or DATABASE_URL, "
            "or configure LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
        )

    # --- Source catalog -------------------------------------------------
    base_url = os.getenv("MIGRATION_SOURCE_BASE_URL", "").strip()
    source_dir = os.getenv("MIGRATION_SOURCE_DIR", "").strip()
    if not base_url and not source_dir:
        errors.append(
            "No migration source configured. Set MIGRATION_SOURCE_BASE_URL "
            "(object storage) or MIGRATION_SOURCE_DIR (local JSON files)."
        )

    # --- Numeric knobs --------------------------------------------------
    for name in (
        "MIGRATION_BATCH_SIZE",
        "MIGRATION_CONTINUATION_DELAY_SECONDS",
        "MIGRATION_RECORD_TIMEOUT_SECONDS",
    ):
        raw_value = os.getenv(name)
        if raw_value is None:
            continue
        try:
            float(raw_value)
        except ValueError:
            errors.append(f"{name}='{raw_value}' is not a number.")

    if errors:
        raise RuntimeError(
            "Startup validation failed - missing or invalid environment variables:\n"
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
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    If any are missing, log a critical error and abort startup so that
    the operator is forced to run migrations before serving traffic.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 (registers all ORM models on Base.metadata)
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
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
    """Validate DB connectivity and schema, start the continuation scheduler on boot; shut it down on exit."""
    from db.config import redact_database_url, resolve_database_url

    _check_db()
    logging.getLogger(__name__).info(
        "Database connectivity confirmed target=%s",
        redact_database_url(resolve_database_url()),
    )
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")

    from app.config import get_scheduler_enabled
    from app.scheduler.jobs import get_migration_scheduler

    scheduler = get_migration_scheduler()
    if get_scheduler_enabled():
        scheduler.start()
    else:
        logging.getLogger(__name__).warning(
            "Continuation scheduler disabled; invocations run only on demand"
        )
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Startup Migration API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import migration_router

    application.include_router(migration_router)

    @application.get("/health")
    def healthcheck() -> dict[str, object]:
        from app.scheduler.jobs import get_migration_scheduler

        try:
            _check_db()
        except RuntimeError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

        scheduler = get_migration_scheduler()
        return {
            "status": "ok",
            "database": "ok",
            "scheduler_running": scheduler.running,
            "continuation_pending": scheduler.has_pending(),
        }

    return application


app = create_app()
