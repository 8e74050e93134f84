"""
app/services/migration_control_service.py

Operator controls for the import job: pause, resume, force-resume, reset,
plus marking a file failed and requeueing failed files.

Each action commits its own transaction on the session it is given.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import Protocol

from sqlalchemy.orm import Session

from app.config import MigrationSettings, get_migration_settings
from app.domain.migration import ControlActionResult
from app.logging_utils import log_event
from app.repositories.startup_repository import StartupRepository
from db.models.migration_control import MigrationControl
from db.repositories.control_state_repository import ControlStateRepository
from db.repositories.progress_ledger import ProgressLedger

logger = logging.getLogger(__name__)


class MigrationInProgressError(RuntimeError):
    """
    A destructive action was requested while an executor holds the running flag.
    """


class UnknownSourceFileError(LookupError):
    """
    The named file is not part of the source catalog.
    """

    def __init__(self, file_name: str) -> None:
        super().__init__(f"Unknown source file '{file_name}'.")
        self.file_name = file_name


class ContinuationControl(Protocol):
    def schedule(self, delay_seconds: float) -> None:
        ...

    def cancel(self) -> bool:
        ...


class MigrationControlService:
    """
    Mutates the control row and the ledger on behalf of an operator.
    """

    def __init__(
        self,
        *,
        scheduler: ContinuationControl,
        file_names: Sequence[str],
        settings: MigrationSettings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._scheduler = scheduler
        self._file_names = tuple(file_names)
        self._settings = settings
        self._sleep = sleep

    def get_control(self, db: Session) -> MigrationControl:
        control = ControlStateRepository(db).get_or_create()
        db.commit()
        return control

    def pause(self, db: Session) -> ControlActionResult:
        """
        Takes effect at the next invocation boundary; a running batch finishes.
        """

        control = ControlStateRepository(db).set_paused(True)
        db.commit()
        logger.info("Migration paused is_running=%s", control.is_running)
        return ControlActionResult(
            action="pause",
            message="Migration paused. The current batch, if any, will finish first.",
            is_paused=control.is_paused,
            is_running=control.is_running,
        )

    def resume(self, db: Session) -> ControlActionResult:
        return self._clear_and_schedule(
            db,
            action="resume",
            delay_seconds=self._settings.continuation_delay_seconds,
        )

    def force_resume(self, db: Session) -> ControlActionResult:
        """
        Recovery path for a stale running flag: clear everything and fire now.
        A brief overlap with a live executor is tolerated; the dedup gate
        keeps it from duplicating rows.
        """

        return self._clear_and_schedule(db, action="force_resume", delay_seconds=0.0)

    def reset(self, db: Session) -> ControlActionResult:
        control_repo = ControlStateRepository(db)
        control = control_repo.get_or_create()
        if control.is_running:
            db.rollback()
            raise MigrationInProgressError(
                "Cannot reset while a batch is running. Pause, wait, or force-resume a stuck job first."
            )

        self._scheduler.cancel()
        deleted_progress = ProgressLedger(db).delete_all()
        deleted_startups = StartupRepository(db).delete_all()
        control_repo.clear_checkpoint()
        control = control_repo.clear_flags()
        db.commit()

        logger.warning(
            "Migration reset deleted_progress_rows=%s deleted_startups=%s",
            deleted_progress,
            deleted_startups,
        )
        return ControlActionResult(
            action="reset",
            message="Progress and migrated startups deleted.",
            is_paused=control.is_paused,
            is_running=control.is_running,
            deleted_progress_rows=deleted_progress,
            deleted_startups=deleted_startups,
        )

    def mark_file_failed(self, db: Session, file_name: str, reason: str) -> ControlActionResult:
        if file_name not in self._file_names:
            raise UnknownSourceFileError(file_name)

        ledger = ProgressLedger(db)
        ledger.mark_failed(
            file_name,
            batch_number=self._file_names.index(file_name),
            error_message=reason.strip() or "Marked failed by operator.",
        )
        control = ControlStateRepository(db).get_or_create()
        db.commit()

        logger.warning("Source file marked failed file=%s reason=%s", file_name, reason)
        return ControlActionResult(
            action="mark_failed",
            message=f"{file_name} marked failed; it will be skipped until requeued or reset.",
            is_paused=control.is_paused,
            is_running=control.is_running,
            affected_files=[file_name],
        )

    def requeue_failed(self, db: Session) -> ControlActionResult:
        requeued = ProgressLedger(db).requeue_failed()
        control = ControlStateRepository(db).get_or_create()
        db.commit()

        logger.info("Requeued failed files count=%s files=%s", len(requeued), requeued)
        return ControlActionResult(
            action="requeue_failed",
            message=f"Requeued {len(requeued)} failed file(s).",
            is_paused=control.is_paused,
            is_running=control.is_running,
            affected_files=requeued,
        )

    def _clear_and_schedule(self, db: Session, *, action: str, delay_seconds: float) -> ControlActionResult:
        control = ControlStateRepository(db).clear_flags()
        db.commit()

        if self._settings.settle_delay_seconds > 0:
            self._sleep(self._settings.settle_delay_seconds)
        self._scheduler.schedule(delay_seconds)

        result = ControlActionResult(
            action=action,
            message=f"Flags cleared; next invocation in {delay_seconds:g}s.",
            is_paused=control.is_paused,
            is_running=control.is_running,
            continuation_scheduled=True,
            continuation_delay_seconds=delay_seconds,
        )
        log_event(logger, logging.INFO, "migration_control", result)
        return result


@lru_cache(maxsize=1)
def get_migration_control_service() -> MigrationControlService:
    """
    Build and cache the control service.
    """

    from app.connectors.catalog_factory import get_source_catalog
    from app.scheduler.jobs import get_migration_scheduler

    return MigrationControlService(
        scheduler=get_migration_scheduler(),
        file_names=get_source_catalog().list_files(),
        settings=get_migration_settings(),
    )
