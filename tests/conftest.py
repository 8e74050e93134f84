"""
tests/conftest.py

Shared fixtures: an in-memory SQLite database built from the ORM metadata,
an in-memory source catalog, a recording continuation scheduler and
deterministic sleep / clock fakes.

SQLite needs two event hooks for SAVEPOINT support: pysqlite's own
transaction handling is switched off on connect and BEGIN is emitted
explicitly. One StaticPool connection is shared by every session, so a
test must not keep a transaction open across an engine invocation.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 (registers all ORM models on Base.metadata)
from app.config import MigrationSettings
from app.connectors.base import BaseSourceCatalog, SourceFetchError
from app.validators.record_validator import RecordValidator
from db.base import Base
from db.session import build_session_factory
from migration.engine import MigrationEngine


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class InMemorySourceCatalog(BaseSourceCatalog):
    """Catalog backed by a dict; names listed in ``broken`` fail to fetch."""

    def __init__(self, files: dict[str, list[dict[str, Any]]]) -> None:
        super().__init__(file_names=list(files))
        self.files = files
        self.broken: set[str] = set()
        self.fetches: list[str] = []

    def fetch_file(self, name: str) -> list[dict[str, Any]]:
        self._require_known(name)
        self.fetches.append(name)
        if name in self.broken:
            raise SourceFetchError(f"{name}: HTTP 503")
        return [dict(record) for record in self.files[name]]


class RecordingScheduler:
    """Continuation scheduler that only records what it was asked to do."""

    def __init__(self) -> None:
        self.scheduled: list[float] = []
        self.cancelled = 0
        self._pending = False

    def schedule(self, delay_seconds: float) -> None:
        self.scheduled.append(delay_seconds)
        self._pending = True

    def cancel(self) -> bool:
        self.cancelled += 1
        was_pending = self._pending
        self._pending = False
        return was_pending

    def has_pending(self) -> bool:
        return self._pending

    def fire(self) -> None:
        self._pending = False


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def make_record(company_id: str, name: str | None = None, **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "company_id": company_id,
        "name": name or f"Startup {company_id}",
        "country": "Canada",
        "industry": "Fintech",
        "city": "Toronto",
        "elevator_pitch": "We build things.",
        "external_urls": {"homepage": f"https://{company_id}.example.com"},
        "tags": ["ai", "saas"],
        "attendance_ids": [
            {
                "data": {
                    "attendance": {
                        "exhibitor": {
                            "team": {
                                "edges": [
                                    {"node": {"id": f"{company_id}-m1", "name": "Ada Lovelace", "jobTitle": "CEO"}},
                                ]
                            }
                        },
                        "offeringTopics": {"edges": [{"node": {"id": "t1", "name": "Payments"}}]},
                        "seekingTopics": {"edges": [{"node": {"id": "t2", "name": "Investors"}}]},
                    }
                }
            }
        ],
    }
    record.update(overrides)
    return record


def make_demo_record(company_id: str) -> dict[str, Any]:
    return make_record(company_id, name="Demo Startup Inc")


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


def build_sqlite_engine() -> Engine:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:  # noqa: ANN001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:  # noqa: ANN001
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def sqlite_engine() -> Iterator[Engine]:
    engine = build_sqlite_engine()
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(sqlite_engine)


@pytest.fixture()
def read_session(session_factory: sessionmaker[Session]):
    """Context manager factory: ``with read_session() as db: ...`` closes on exit."""

    @contextmanager
    def _open() -> Iterator[Session]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    return _open


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> MigrationSettings:
    return MigrationSettings(
        batch_size=5,
        inter_record_delay_seconds=0.25,
        continuation_delay_seconds=3.0,
        settle_delay_seconds=1.0,
        record_timeout_seconds=30.0,
        max_team_members=20,
        max_topics_per_kind=25,
        max_tags=25,
        max_recorded_errors=3,
        sub_entity_max_retries=3,
        sub_entity_retry_base_seconds=1.0,
        stuck_after_seconds=300.0,
    )


@pytest.fixture()
def validator() -> RecordValidator:
    return RecordValidator(placeholder_tokens=("demo", "placeholder", "test startup"))


@pytest.fixture()
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def build_engine(session_factory, scheduler, settings, validator, sleep, clock):
    """Factory: ``build_engine(catalog, **settings_overrides)``."""

    def _build(catalog: BaseSourceCatalog, **overrides: Any) -> MigrationEngine:
        effective = replace(settings, **overrides)
        return MigrationEngine(
            session_factory=session_factory,
            catalog=catalog,
            scheduler=scheduler,
            settings=effective,
            validator=validator,
            sleep=sleep,
            clock=clock,
        )

    return _build
