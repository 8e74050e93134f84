"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_SOURCE_FILES: tuple[str, ...] = (
    "processed_batch_0-99.json",
    "processed_batch_100-199.json",
    "processed_batch_200-299.json",
    "processed_batch_300-399.json",
    "processed_batch_400-499.json",
    "processed_batch_500-599.json",
    "processed_batch_600-699.json",
    "processed_batch_700-799.json",
    "processed_batch_800-899.json",
    "processed_batch_900-999.json",
    "processed_batch_1000-1099.json",
    "processed_batch_1100-1199.json",
    "processed_batch_1200-1277.json",
)

DEFAULT_PLACEHOLDER_TOKENS: tuple[str, ...] = (
    "demo",
    "placeholder",
    "lorem ipsum",
    "dummy",
    "test startup",
    "test company",
    "sample startup",
    "example startup",
)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list, keeping order and dropping blank items.
    """

    raw = _get_optional_str_env(name)
    if raw is None:
        return default
    items = tuple(item.strip() for item in raw.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class MigrationSettings:
    """
    Runtime settings for the checkpointed import engine.
    """

    batch_size: int = 5
    inter_record_delay_seconds: float = 0.25
    continuation_delay_seconds: float = 3.0
    settle_delay_seconds: float = 1.0
    record_timeout_seconds: float = 30.0
    max_team_members: int = 20
    max_topics_per_kind: int = 25
    max_tags: int = 25
    max_recorded_errors: int = 10
    sub_entity_max_retries: int = 3
    sub_entity_retry_base_seconds: float = 1.0
    stuck_after_seconds: float = 300.0


@dataclass(frozen=True)
class SourceCatalogSettings:
    """
    Where the ordered source files live and how to fetch them.

    Exactly one of ``base_url`` (HTTP object storage) or ``directory``
    (local JSON files) is expected to be set.
    """

    file_names: tuple[str, ...] = DEFAULT_SOURCE_FILES
    base_url: str | None = None
    directory: str | None = None
    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class RecordValidationSettings:
    """
    Placeholder denylist and required attributes for admissible records.
    """

    placeholder_tokens: tuple[str, ...] = DEFAULT_PLACEHOLDER_TOKENS
    required_fields: tuple[str, ...] = ("country", "industry")


@lru_cache(maxsize=1)
def get_migration_settings() -> MigrationSettings:
    """
    Return cached import engine settings from environment variables.
    """

    return MigrationSettings(
        batch_size=max(1, _get_int_env("MIGRATION_BATCH_SIZE", 5)),
        inter_record_delay_seconds=max(0.0, _get_float_env("MIGRATION_INTER_RECORD_DELAY_SECONDS", 0.25)),
        continuation_delay_seconds=max(0.0, _get_float_env("MIGRATION_CONTINUATION_DELAY_SECONDS", 3.0)),
        settle_delay_seconds=max(0.0, _get_float_env("MIGRATION_SETTLE_DELAY_SECONDS", 1.0)),
        record_timeout_seconds=max(1.0, _get_float_env("MIGRATION_RECORD_TIMEOUT_SECONDS", 30.0)),
        max_team_members=max(0, _get_int_env("MIGRATION_MAX_TEAM_MEMBERS", 20)),
        max_topics_per_kind=max(0, _get_int_env("MIGRATION_MAX_TOPICS_PER_KIND", 25)),
        max_tags=max(0, _get_int_env("MIGRATION_MAX_TAGS", 25)),
        max_recorded_errors=max(1, _get_int_env("MIGRATION_MAX_RECORDED_ERRORS", 10)),
        sub_entity_max_retries=max(1, _get_int_env("MIGRATION_SUB_ENTITY_MAX_RETRIES", 3)),
        sub_entity_retry_base_seconds=max(0.0, _get_float_env("MIGRATION_SUB_ENTITY_RETRY_BASE_SECONDS", 1.0)),
        stuck_after_seconds=max(1.0, _get_float_env("MIGRATION_STUCK_AFTER_SECONDS", 300.0)),
    )


@lru_cache(maxsize=1)
def get_source_catalog_settings() -> SourceCatalogSettings:
    """
    Return cached source catalog settings from environment variables.
    """

    return SourceCatalogSettings(
        file_names=_get_csv_env("MIGRATION_SOURCE_FILES", DEFAULT_SOURCE_FILES),
        base_url=_get_optional_str_env("MIGRATION_SOURCE_BASE_URL"),
        directory=_get_optional_str_env("MIGRATION_SOURCE_DIR"),
        timeout_seconds=max(1.0, _get_float_env("MIGRATION_SOURCE_TIMEOUT_SECONDS", 10.0)),
        max_retries=max(0, _get_int_env("MIGRATION_SOURCE_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("MIGRATION_SOURCE_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("MIGRATION_SOURCE_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_record_validation_settings() -> RecordValidationSettings:
    """
    Return cached record validation settings from environment variables.
    """

    tokens = _get_csv_env("MIGRATION_PLACEHOLDER_TOKENS", DEFAULT_PLACEHOLDER_TOKENS)
    return RecordValidationSettings(
        placeholder_tokens=tuple(token.lower() for token in tokens),
        required_fields=_get_csv_env("MIGRATION_REQUIRED_FIELDS", ("country", "industry")),
    )


@lru_cache(maxsize=1)
def get_scheduler_enabled() -> bool:
    """
    Whether the API process should run the continuation scheduler.
    """

    return _get_bool_env("MIGRATION_SCHEDULER_ENABLED", True)
