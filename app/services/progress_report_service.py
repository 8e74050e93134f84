"""
app/services/progress_report_service.py

Read model over the ledger and control row for progress displays.

Aggregates are computed here so every consumer (HTTP, CLI) sees the same
numbers: per-status counts, totals, velocity from completed files, an ETA,
the derived job state and whether force-resume should be offered.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

from sqlalchemy.orm import Session

from app.config import MigrationSettings, get_migration_settings
from app.domain.migration import StatusCounts
from db.base import as_utc
from db.models.migration_progress import MigrationFileStatus, MigrationProgress
from db.repositories.control_state_repository import ControlStateRepository
from db.repositories.progress_ledger import ProgressLedger
from migration.checkpoint import derive_job_state, summarize_statuses


class PendingContinuation(Protocol):
    def has_pending(self) -> bool:
        ...


@dataclass(frozen=True)
class ProgressReport:
    job_state: str
    counts: StatusCounts
    entries: list[MigrationProgress]
    total_processed: int
    total_expected: int
    percent_complete: float
    records_per_second: float | None
    eta_seconds: float | None
    is_paused: bool
    is_running: bool
    continuation_pending: bool
    stuck_suspected: bool
    can_force_resume: bool
    last_checkpoint: dict[str, Any] | None
    control_updated_at: datetime | None
    generated_at: datetime
    unseen_files: list[str] = field(default_factory=list)


class ProgressReportService:
    def __init__(
        self,
        *,
        scheduler: PendingContinuation,
        file_names: Sequence[str],
        settings: MigrationSettings,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._scheduler = scheduler
        self._file_names = tuple(file_names)
        self._settings = settings
        self._now = now

    def build_report(self, db: Session) -> ProgressReport:
        entries = ProgressLedger(db).all_entries()
        control = ControlStateRepository(db).get_or_create()
        db.commit()

        now = self._now()
        counts = summarize_statuses(self._file_names, entries)
        continuation_pending = self._scheduler.has_pending()
        executor_active = control.is_running or continuation_pending

        control_updated_at = as_utc(control.updated_at)
        stuck_suspected = bool(
            control.is_running
            and control_updated_at is not None
            and (now - control_updated_at).total_seconds() > self._settings.stuck_after_seconds
        )

        known = {entry.file_name: entry for entry in entries}
        unseen = [name for name in self._file_names if name not in known]
        total_processed = sum(entry.processed_count for entry in entries)
        total_expected = _expected_total(entries, len(unseen))
        velocity = _records_per_second(entries)
        remaining = max(0, total_expected - total_processed)
        eta_seconds = remaining / velocity if velocity else None

        unfinished = counts.pending + counts.failed + counts.processing
        can_force_resume = unfinished > 0 and (not executor_active or stuck_suspected)

        return ProgressReport(
            job_state=derive_job_state(
                counts,
                has_entries=bool(entries),
                executor_active=executor_active,
                is_paused=control.is_paused,
            ),
            counts=counts,
            entries=entries,
            total_processed=total_processed,
            total_expected=total_expected,
            percent_complete=_percent(counts.completed, counts.total_files),
            records_per_second=velocity,
            eta_seconds=eta_seconds,
            is_paused=control.is_paused,
            is_running=control.is_running,
            continuation_pending=continuation_pending,
            stuck_suspected=stuck_suspected,
            can_force_resume=can_force_resume,
            last_checkpoint=control.last_checkpoint,
            control_updated_at=control_updated_at,
            generated_at=now,
            unseen_files=unseen,
        )


def _percent(done: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(done * 100.0 / total, 2)


def _expected_total(entries: Sequence[MigrationProgress], unseen_count: int) -> int:
    """
    Known totals plus unseen files estimated at the mean known file size.
    """

    measured = [
        entry.total_count
        for entry in entries
        if entry.status != MigrationFileStatus.PENDING or entry.total_count
    ]
    known_total = sum(entry.total_count for entry in entries)
    if not measured or unseen_count == 0:
        return known_total
    mean = sum(measured) / len(measured)
    return known_total + int(round(mean * unseen_count))


def _records_per_second(entries: Sequence[MigrationProgress]) -> float | None:
    processed = 0
    elapsed = 0.0
    for entry in entries:
        if entry.status != MigrationFileStatus.COMPLETED:
            continue
        started_at = as_utc(entry.started_at)
        completed_at = as_utc(entry.completed_at)
        if started_at is None or completed_at is None:
            continue
        seconds = (completed_at - started_at).total_seconds()
        if seconds <= 0:
            continue
        processed += entry.processed_count
        elapsed += seconds
    if elapsed <= 0 or processed <= 0:
        return None
    return processed / elapsed


@lru_cache(maxsize=1)
def get_progress_report_service() -> ProgressReportService:
    """
    Build and cache the progress read model.
    """

    from app.connectors.catalog_factory import get_source_catalog
    from app.scheduler.jobs import get_migration_scheduler

    return ProgressReportService(
        scheduler=get_migration_scheduler(),
        file_names=get_source_catalog().list_files(),
        settings=get_migration_settings(),
    )
