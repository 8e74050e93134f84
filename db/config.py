"""
Environment-driven database configuration shared by the API, the CLI
and Alembic.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")

_CLOUD_LIKE_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})


def parse_env_file(path: Path) -> dict[str, str]:
    """
    KEY=VALUE pairs from one dotenv-style file. Blank lines, comments and
    lines without ``=`` are ignored; surrounding quotes are stripped.
    """

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            values[key] = value.strip().strip('"').strip("'")
    return values


def load_env_files(root: Path | None = None) -> None:
    """
    Export `.env` then `.env.local` into the process environment. Variables
    that are already set are never overwritten.
    """

    base = root or PROJECT_ROOT
    for filename in ENV_FILES:
        env_path = base / filename
        if not env_path.exists():
            continue
        for key, value in parse_env_file(env_path).items():
            os.environ.setdefault(key, value)


def normalize_postgres_url(url: str) -> str:
    """
    Normalize postgres URLs to SQLAlchemy's psycopg driver form.
    """

    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _url_candidates() -> list[str]:
    names = ["MIGRATION_DATABASE_URL", "DATABASE_URL"]
    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    if environment in _CLOUD_LIKE_ENVIRONMENTS:
        names.append("CLOUD_DATABASE_URL")
    names.append("LOCAL_DATABASE_URL")
    return names


def resolve_database_url() -> str:
    """
    Resolve the destination store URL.

    Priority:
    1) MIGRATION_DATABASE_URL (dedicated target for the import job)
    2) DATABASE_URL
    3) CLOUD_DATABASE_URL when ENVIRONMENT is cloud-like
    4) LOCAL_DATABASE_URL
    """

    load_env_files()

    for name in _url_candidates():
        value = os.getenv(name, "").strip()
        if value:
            return normalize_postgres_url(value)

    raise RuntimeError(
        "No database URL configured. Set MIGRATION_DATABASE_URL or DATABASE_URL, "
        "or configure LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


def redact_database_url(url: str) -> str:
    """
    URL safe for log lines: the password is masked.
    """

    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable database url>"
