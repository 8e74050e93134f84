"""
migration/engine.py

Checkpointed, self-rescheduling import engine.

One call to ``MigrationEngine.run_once()`` is one bounded invocation:

  1. Honour the control row. Paused means return without work and without
     a continuation; a set running flag means another executor owns the job.
  2. Derive the checkpoint from the ledger (see migration/checkpoint.py).
  3. Fetch and filter the target file. On the very first run, when the
     ledger is entirely empty, wipe destination rows once.
  4. Process one micro-batch, committing the ledger after every record.
  5. Mark the file completed when the batch reaches its end, then arm a
     delayed continuation if there is anything left to do.

The file's status is re-read before every record. When an operator marks
the in-flight file failed, the batch stops there and the failure sticks:
completion only applies to a row that is still processing.

The running flag is a cooperative signal only. A crashed executor can leave
it set; resume / force-resume clear it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from functools import lru_cache
from typing import Any, Mapping, Protocol

from sqlalchemy.orm import Session, sessionmaker

from app.config import MigrationSettings, get_migration_settings
from app.connectors.base import BaseSourceCatalog
from app.domain.migration import Checkpoint, MigrationRunResult, RunOutcome
from app.logging_utils import log_event
from app.repositories.startup_repository import StartupRepository
from app.services.entity_writer import DuplicateRecordError, EntityWriter, RecordWriteError
from app.validators.record_validator import NATURAL_KEY_FIELD, RecordValidator
from db.models.migration_progress import MigrationFileStatus
from db.repositories.control_state_repository import ControlStateRepository
from db.repositories.progress_ledger import ProgressLedger
from migration.checkpoint import is_complete, resolve_checkpoint

logger = logging.getLogger(__name__)


class ContinuationScheduler(Protocol):
    def schedule(self, delay_seconds: float) -> None:
        ...


class _BatchTally:
    def __init__(self) -> None:
        self.succeeded = 0
        self.skipped = 0
        self.failed = 0
        # the file left processing status under us
        self.interrupted = False

    @property
    def processed(self) -> int:
        return self.succeeded + self.skipped + self.failed


class MigrationEngine:
    """
    Runs one micro-batch per invocation and hands off to its own continuation.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session] | sessionmaker[Session],
        catalog: BaseSourceCatalog,
        scheduler: ContinuationScheduler,
        settings: MigrationSettings | None = None,
        validator: RecordValidator | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session_factory = session_factory
        self._catalog = catalog
        self._scheduler = scheduler
        self._settings = settings or get_migration_settings()
        self._validator = validator or RecordValidator.from_settings()
        self._sleep = sleep
        self._clock = clock

    @property
    def settings(self) -> MigrationSettings:
        return self._settings

    def run_once(self) -> MigrationRunResult:
        """
        One bounded invocation. Raises SourceFetchError when the target file
        cannot be fetched; the ledger is left as it was.
        """

        session = self._session_factory()
        try:
            result = self._run(session)
        finally:
            session.close()

        if result.rescheduled:
            self._scheduler.schedule(self._settings.continuation_delay_seconds)

        log_event(logger, logging.INFO, "migration_invocation", result, success=result.success)
        return result

    def _run(self, session: Session) -> MigrationRunResult:
        control_repo = ControlStateRepository(session)
        ledger = ProgressLedger(session)

        control = control_repo.get_or_create()
        if control.is_paused:
            session.commit()
            return MigrationRunResult(
                outcome=RunOutcome.PAUSED,
                message="Migration is paused; resume to continue.",
            )
        if control.is_running:
            session.commit()
            return MigrationRunResult(
                outcome=RunOutcome.BUSY,
                message="Another invocation is mid-batch; force-resume if it is stuck.",
            )

        file_names = self._catalog.list_files()
        entries = ledger.all_entries()
        checkpoint = resolve_checkpoint(file_names, entries)
        if checkpoint is None:
            session.commit()
            if is_complete(file_names, entries):
                return MigrationRunResult(
                    outcome=RunOutcome.COMPLETE,
                    message="All source files are completed.",
                    is_complete=True,
                )
            return MigrationRunResult(
                outcome=RunOutcome.STALLED,
                message="Only failed files remain; requeue or reset to continue.",
            )

        control_repo.mark_running(checkpoint.as_payload())
        session.commit()

        try:
            result = self._process(
                session,
                ledger=ledger,
                file_names=file_names,
                checkpoint=checkpoint,
                ledger_was_empty=not entries,
            )
        except Exception:
            session.rollback()
            raise
        finally:
            control = control_repo.mark_idle()
            session.commit()

        if result.rescheduled and control.is_paused:
            return replace(result, rescheduled=False, message=f"{result.message} Paused; no continuation armed.")
        return result

    def _process(
        self,
        session: Session,
        *,
        ledger: ProgressLedger,
        file_names: list[str],
        checkpoint: Checkpoint,
        ledger_was_empty: bool,
    ) -> MigrationRunResult:
        file_name = checkpoint.file_name
        records = self._catalog.fetch_file(file_name)

        clean_slate = False
        if ledger_was_empty:
            removed = StartupRepository(session).delete_all()
            ledger.delete_all()
            session.commit()
            clean_slate = True
            logger.warning("Clean-slate import: removed %s existing startups before first file", removed)

        filtered = self._validator.filter_admissible(records, source_name=file_name)
        total = len(filtered)
        offset = checkpoint.offset

        if offset == 0:
            ledger.upsert_status(
                file_name,
                status=MigrationFileStatus.PROCESSING,
                processed_count=0,
                total_count=total,
                batch_number=checkpoint.file_index,
            )
            session.commit()

        batch_size = self._settings.batch_size
        batch = filtered[offset : offset + batch_size]
        tally = self._process_batch(session, ledger=ledger, file_name=file_name, batch=batch, offset=offset)

        interrupted = tally.interrupted
        file_completed = False
        if not interrupted and offset + batch_size >= total:
            file_completed = ledger.complete_if_processing(
                file_name,
                total_count=total,
                batch_number=checkpoint.file_index,
            )
            session.commit()
            interrupted = not file_completed

        next_file: str | None = file_name
        job_complete = False
        if file_completed or interrupted:
            entries = ledger.all_entries(refresh=True)
            upcoming = resolve_checkpoint(file_names, entries)
            next_file = upcoming.file_name if upcoming is not None else None
            job_complete = upcoming is None and is_complete(file_names, entries)

        rescheduled = next_file is not None
        if interrupted:
            entry = ledger.get_entry(file_name)
            status = entry.status if entry is not None else "removed"
            logger.warning("File left processing mid-batch file=%s status=%s; stopped", file_name, status)
            message = f"{file_name} was set to {status} while in flight; stopped."
            if next_file is not None:
                message = f"{message} Continuing with {next_file}."
        elif job_complete:
            message = f"{file_name} completed; all source files are completed."
        elif file_completed and next_file is None:
            message = f"{file_name} completed; only failed files remain."
        elif file_completed:
            message = f"{file_name} completed; continuing with {next_file}."
        else:
            message = f"Processed {file_name} records {offset}-{offset + tally.processed} of {total}."

        return MigrationRunResult(
            outcome=RunOutcome.COMPLETE if job_complete else RunOutcome.PROCESSED,
            message=message,
            file_name=file_name,
            file_index=checkpoint.file_index,
            offset=offset,
            processed=min(offset + tally.processed, total),
            total=total,
            succeeded=tally.succeeded,
            skipped=tally.skipped,
            failed=tally.failed,
            file_completed=file_completed,
            rescheduled=rescheduled,
            is_complete=job_complete,
            next_file=next_file,
            clean_slate=clean_slate,
        )

    def _process_batch(
        self,
        session: Session,
        *,
        ledger: ProgressLedger,
        file_name: str,
        batch: list[Mapping[str, Any]],
        offset: int,
    ) -> _BatchTally:
        tally = _BatchTally()
        startups = StartupRepository(session)
        writer = EntityWriter(session, settings=self._settings, sleep=self._sleep, clock=self._clock)

        for position, raw in enumerate(batch):
            if position > 0 and self._settings.inter_record_delay_seconds > 0:
                self._sleep(self._settings.inter_record_delay_seconds)

            entry = ledger.get_entry(file_name, refresh=True)
            if entry is None or entry.status != MigrationFileStatus.PROCESSING:
                tally.interrupted = True
                break

            natural_key = str(raw.get(NATURAL_KEY_FIELD, "")).strip()
            if startups.exists(natural_key):
                tally.skipped += 1
            else:
                try:
                    writer.write(raw)
                    tally.succeeded += 1
                except DuplicateRecordError:
                    tally.skipped += 1
                except RecordWriteError as exc:
                    tally.failed += 1
                    logger.warning("Record write failed file=%s error=%s", file_name, exc)
                    ledger.append_error(file_name, str(exc), max_errors=self._settings.max_recorded_errors)

            ledger.update_processed(file_name, offset + position + 1)
            session.commit()

        return tally


@lru_cache(maxsize=1)
def get_migration_engine() -> MigrationEngine:
    """
    Build and cache the engine wired to the configured catalog, database
    and continuation scheduler.
    """

    from app.connectors.catalog_factory import get_source_catalog
    from app.scheduler.jobs import get_migration_scheduler
    from db.session import SessionLocal

    return MigrationEngine(
        session_factory=SessionLocal,
        catalog=get_source_catalog(),
        scheduler=get_migration_scheduler(),
        settings=get_migration_settings(),
        validator=RecordValidator.from_settings(),
    )
