"""
tests/test_migration_control_service.py

Operator controls: pause, resume, force-resume, reset, mark-failed and
requeue, against SQLite with a recording scheduler.
"""

from __future__ import annotations

import pytest

from app.domain.startup_record import StartupRecord
from app.repositories.startup_repository import StartupRepository
from app.services.migration_control_service import (
    MigrationControlService,
    MigrationInProgressError,
    UnknownSourceFileError,
)
from conftest import make_record
from db.models.migration_progress import MigrationFileStatus
from db.repositories.control_state_repository import ControlStateRepository
from db.repositories.progress_ledger import ProgressLedger

FILES = ["batch_1.json", "batch_2.json", "batch_3.json"]


@pytest.fixture()
def service(scheduler, settings, sleep) -> MigrationControlService:
    return MigrationControlService(scheduler=scheduler, file_names=FILES, settings=settings, sleep=sleep)


def _seed_running_job(read_session) -> None:
    with read_session() as db:
        ledger = ProgressLedger(db)
        ledger.upsert_status("batch_1.json", status=MigrationFileStatus.COMPLETED, processed_count=4, total_count=4)
        ledger.upsert_status("batch_2.json", status=MigrationFileStatus.PROCESSING, processed_count=2, total_count=6)
        StartupRepository(db).insert_startup(StartupRecord.from_payload(make_record("seeded-1")))
        ControlStateRepository(db).mark_running({"file_index": 1, "file_name": "batch_2.json", "offset": 2})
        db.commit()


def test_pause_sets_flag_without_scheduling(service, scheduler, read_session) -> None:
    with read_session() as db:
        result = service.pause(db)

    assert result.action == "pause"
    assert result.is_paused is True
    assert scheduler.scheduled == []
    with read_session() as db:
        assert ControlStateRepository(db).get_or_create().is_paused is True


def test_pause_leaves_running_flag_alone(service, read_session) -> None:
    _seed_running_job(read_session)

    with read_session() as db:
        result = service.pause(db)

    assert (result.is_paused, result.is_running) == (True, True)


def test_resume_clears_flags_settles_then_schedules_with_continuation_delay(
    service, scheduler, sleep, read_session
) -> None:
    _seed_running_job(read_session)
    with read_session() as db:
        service.pause(db)

    with read_session() as db:
        result = service.resume(db)

    assert (result.is_paused, result.is_running) == (False, False)
    assert result.continuation_scheduled is True
    assert result.continuation_delay_seconds == 3.0
    assert sleep.calls == [1.0]
    assert scheduler.scheduled == [3.0]


def test_force_resume_schedules_immediately(service, scheduler, sleep, read_session) -> None:
    _seed_running_job(read_session)

    with read_session() as db:
        result = service.force_resume(db)

    assert result.action == "force_resume"
    assert result.is_running is False
    assert sleep.calls == [1.0]
    assert scheduler.scheduled == [0.0]


def test_reset_refuses_while_running(service, scheduler, read_session) -> None:
    _seed_running_job(read_session)

    with read_session() as db:
        with pytest.raises(MigrationInProgressError):
            service.reset(db)

    assert scheduler.cancelled == 0
    with read_session() as db:
        assert len(ProgressLedger(db).all_entries()) == 2
        assert StartupRepository(db).count() == 1


def test_reset_deletes_progress_and_startups(service, scheduler, read_session) -> None:
    _seed_running_job(read_session)
    with read_session() as db:
        service.force_resume(db)
        service.pause(db)

    with read_session() as db:
        result = service.reset(db)

    assert result.deleted_progress_rows == 2
    assert result.deleted_startups == 1
    assert result.is_paused is False
    assert scheduler.cancelled == 1
    assert scheduler.has_pending() is False
    with read_session() as db:
        assert ProgressLedger(db).all_entries() == []
        assert StartupRepository(db).count() == 0
        control = ControlStateRepository(db).get_or_create()
        assert control.last_checkpoint is None
        assert (control.is_paused, control.is_running) == (False, False)


def test_mark_file_failed_unknown_file(service) -> None:
    with pytest.raises(UnknownSourceFileError):
        service.mark_file_failed(None, "missing.json", "gone")


def test_mark_file_failed_then_requeue(service, read_session) -> None:
    with read_session() as db:
        result = service.mark_file_failed(db, "batch_3.json", "corrupt upstream export")

    assert result.affected_files == ["batch_3.json"]
    with read_session() as db:
        entry = ProgressLedger(db).get_entry("batch_3.json")
        assert entry.status == MigrationFileStatus.FAILED
        assert entry.error_message == "corrupt upstream export"
        assert entry.batch_number == 2

    with read_session() as db:
        requeued = service.requeue_failed(db)

    assert requeued.affected_files == ["batch_3.json"]
    with read_session() as db:
        entry = ProgressLedger(db).get_entry("batch_3.json")
        assert entry.status == MigrationFileStatus.PENDING
        assert entry.error_message is None


def test_blank_reason_falls_back_to_default(service, read_session) -> None:
    with read_session() as db:
        service.mark_file_failed(db, "batch_1.json", "   ")

    with read_session() as db:
        assert ProgressLedger(db).get_entry("batch_1.json").error_message == "Marked failed by operator."
