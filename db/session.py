"""
db/session.py

SQLAlchemy engine and session factory for the destination store.

Pool and timeout knobs come from the environment:

- ``SQL_ECHO``: log every statement
- ``DB_POOL_SIZE`` / ``DB_MAX_OVERFLOW`` / ``DB_POOL_RECYCLE``
- ``DB_STATEMENT_TIMEOUT_MS``: server-side cap on any single statement
  (0 disables). Keeps one hung insert from holding a batch past the
  per-record budget.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url

DEFAULT_STATEMENT_TIMEOUT_MS = 30_000


def _get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def engine_options() -> dict[str, Any]:
    """
    Keyword arguments for ``create_engine`` on PostgreSQL.
    """

    options: dict[str, Any] = {
        "echo": _get_bool_env("SQL_ECHO", default=False),
        "pool_pre_ping": True,
        "pool_recycle": _get_int_env("DB_POOL_RECYCLE", 1800),
        "pool_size": max(1, _get_int_env("DB_POOL_SIZE", 5)),
        "max_overflow": max(0, _get_int_env("DB_MAX_OVERFLOW", 10)),
    }
    statement_timeout_ms = _get_int_env("DB_STATEMENT_TIMEOUT_MS", DEFAULT_STATEMENT_TIMEOUT_MS)
    if statement_timeout_ms > 0:
        options["connect_args"] = {"options": f"-c statement_timeout={statement_timeout_ms}"}
    return options


def create_db_engine() -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")
    return create_engine(database_url, **engine_options())


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    """Return the shared engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Objects stay readable after commit: the engine commits after every
    record and keeps using the rows it loaded.
    """
    return sessionmaker(
        bind=engine,
        class_=Session,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(get_engine())
    return _session_factory


def SessionLocal() -> Session:
    return get_session_factory()()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
