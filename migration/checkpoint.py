"""
migration/checkpoint.py

Pure functions from a ledger snapshot to "what happens next".

Nothing here touches the database. Every invocation recomputes the same
answer from the same snapshot, whichever process runs it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from app.domain.migration import Checkpoint, JobState, StatusCounts
from db.models.migration_progress import MigrationFileStatus


class LedgerEntry(Protocol):
    file_name: str
    status: str
    processed_count: int
    total_count: int


def _index_entries(entries: Iterable[LedgerEntry]) -> dict[str, LedgerEntry]:
    return {entry.file_name: entry for entry in entries}


def is_complete(file_names: Sequence[str], entries: Iterable[LedgerEntry]) -> bool:
    by_name = _index_entries(entries)
    return bool(file_names) and all(
        name in by_name and by_name[name].status == MigrationFileStatus.COMPLETED
        for name in file_names
    )


def resolve_checkpoint(
    file_names: Sequence[str],
    entries: Iterable[LedgerEntry],
) -> Checkpoint | None:
    """
    Next unit of work, or None when nothing is runnable.

    A file mid-processing wins and resumes at its processed count. Otherwise
    the first file in catalog order that is neither completed nor failed
    starts at offset 0. None covers both "everything completed" and "only
    failed files remain"; callers tell them apart with ``is_complete``.
    """

    by_name = _index_entries(entries)

    for index, name in enumerate(file_names):
        entry = by_name.get(name)
        if entry is not None and entry.status == MigrationFileStatus.PROCESSING:
            offset = min(max(0, entry.processed_count), entry.total_count)
            return Checkpoint(file_index=index, file_name=name, offset=offset)

    for index, name in enumerate(file_names):
        entry = by_name.get(name)
        if entry is None or entry.status not in MigrationFileStatus.TERMINAL:
            return Checkpoint(file_index=index, file_name=name, offset=0)

    return None


def summarize_statuses(file_names: Sequence[str], entries: Iterable[LedgerEntry]) -> StatusCounts:
    by_name = _index_entries(entries)
    counts = {status: 0 for status in MigrationFileStatus.ALL}
    for name in file_names:
        entry = by_name.get(name)
        status = entry.status if entry is not None else MigrationFileStatus.PENDING
        counts[status] = counts.get(status, 0) + 1

    return StatusCounts(
        total_files=len(file_names),
        completed=counts[MigrationFileStatus.COMPLETED],
        processing=counts[MigrationFileStatus.PROCESSING],
        failed=counts[MigrationFileStatus.FAILED],
        pending=counts[MigrationFileStatus.PENDING],
    )


def derive_job_state(
    counts: StatusCounts,
    *,
    has_entries: bool,
    executor_active: bool,
    is_paused: bool,
) -> str:
    if counts.total_files > 0 and counts.completed == counts.total_files and counts.failed == 0:
        return JobState.COMPLETE
    if not has_entries and not executor_active:
        return JobState.NOT_STARTED
    if executor_active or is_paused:
        return JobState.IN_PROGRESS
    return JobState.STALLED
