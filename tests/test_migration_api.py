"""
tests/test_migration_api.py

HTTP contract of the /migration router with dependencies overridden to use
SQLite, an in-memory catalog and a recording scheduler.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers.migration import router
from app.services.migration_control_service import (
    MigrationControlService,
    get_migration_control_service,
)
from app.services.progress_report_service import (
    ProgressReportService,
    get_progress_report_service,
)
from conftest import InMemorySourceCatalog, make_record
from db.repositories.control_state_repository import ControlStateRepository
from db.session import get_db
from migration.engine import get_migration_engine


@pytest.fixture()
def catalog() -> InMemorySourceCatalog:
    return InMemorySourceCatalog(
        {
            "a.json": [make_record("a-1"), make_record("a-2")],
            "b.json": [make_record("b-1")],
        }
    )


@pytest.fixture()
def client(build_engine, catalog, scheduler, settings, sleep, session_factory) -> Iterator[TestClient]:
    app = FastAPI()
    app.include_router(router)

    def _db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    engine = build_engine(catalog)
    control_service = MigrationControlService(
        scheduler=scheduler, file_names=catalog.list_files(), settings=settings, sleep=sleep
    )
    report_service = ProgressReportService(scheduler=scheduler, file_names=catalog.list_files(), settings=settings)

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_migration_engine] = lambda: engine
    app.dependency_overrides[get_migration_control_service] = lambda: control_service
    app.dependency_overrides[get_progress_report_service] = lambda: report_service

    with TestClient(app) as test_client:
        yield test_client


def test_run_processes_one_invocation(client, scheduler) -> None:
    response = client.post("/migration/run")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["outcome"] == "processed"
    assert body["file_name"] == "a.json"
    assert body["processed"] == 2
    assert body["file_completed"] is True
    assert body["rescheduled"] is True
    assert body["next_file"] == "b.json"
    assert scheduler.scheduled == [3.0]


def test_run_fetch_failure_returns_error_envelope(client, catalog) -> None:
    catalog.broken.add("a.json")

    response = client.post("/migration/run")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "a.json" in body["error"]
    assert body["timestamp"]


def test_run_when_paused(client) -> None:
    client.post("/migration/pause")

    body = client.post("/migration/run").json()

    assert body["outcome"] == "paused"
    assert body["rescheduled"] is False


def test_resume_and_force_resume(client, scheduler) -> None:
    resumed = client.post("/migration/resume").json()
    forced = client.post("/migration/force-resume").json()

    assert resumed["continuation_delay_seconds"] == 3.0
    assert forced["continuation_delay_seconds"] == 0.0
    assert forced["is_running"] is False
    assert scheduler.scheduled == [3.0, 0.0]


def test_reset_conflicts_while_running(client, read_session) -> None:
    with read_session() as db:
        ControlStateRepository(db).mark_running()
        db.commit()

    response = client.post("/migration/reset")

    assert response.status_code == 409


def test_reset_clears_everything(client) -> None:
    client.post("/migration/run")

    body = client.post("/migration/reset").json()

    assert body["deleted_progress_rows"] == 1
    assert body["deleted_startups"] == 2
    progress = client.get("/migration/progress").json()
    assert progress["job_state"] == "not_started"


def test_mark_unknown_file_failed_is_404(client) -> None:
    response = client.post("/migration/files/nope.json/fail", json={"reason": "bad"})

    assert response.status_code == 404


def test_mark_failed_without_body_uses_default_reason(client) -> None:
    response = client.post("/migration/files/b.json/fail")

    assert response.status_code == 200
    assert response.json()["affected_files"] == ["b.json"]
    entries = client.get("/migration/progress").json()["entries"]
    assert entries[0]["status"] == "failed"
    assert entries[0]["error_message"] == "Marked failed by operator."

    requeued = client.post("/migration/requeue-failed").json()
    assert requeued["affected_files"] == ["b.json"]


def test_control_state(client) -> None:
    client.post("/migration/run")

    body = client.get("/migration/control").json()

    assert body["is_paused"] is False
    assert body["is_running"] is False
    assert body["last_checkpoint"] == {"file_index": 0, "file_name": "a.json", "offset": 0}


def test_progress_shape(client) -> None:
    client.post("/migration/run")

    body = client.get("/migration/progress").json()

    assert body["counts"] == {"total_files": 2, "completed": 1, "processing": 0, "failed": 0, "pending": 1}
    assert body["total_processed"] == 2
    assert body["percent_complete"] == 50.0
    assert body["continuation_pending"] is True
    assert body["job_state"] == "in_progress"
    assert body["can_force_resume"] is False
    assert [entry["file_name"] for entry in body["entries"]] == ["a.json"]
