"""
app/domain/migration.py

Domain models for the checkpointed import job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class JobState:
    """Overall job state, always derived from the ledger, never stored."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    STALLED = "stalled"


class RunOutcome:
    """What a single engine invocation did."""

    PAUSED = "paused"
    BUSY = "busy"
    COMPLETE = "complete"
    STALLED = "stalled"
    PROCESSED = "processed"


@dataclass(frozen=True)
class Checkpoint:
    """
    Where the next invocation resumes: a file and an offset into its
    filtered record list.
    """

    file_index: int
    file_name: str
    offset: int

    def as_payload(self) -> dict[str, Any]:
        return {
            "file_index": self.file_index,
            "file_name": self.file_name,
            "offset": self.offset,
        }


@dataclass(frozen=True)
class StatusCounts:
    """
    Per-status file counts over the catalog. Files without a ledger row
    count as pending.
    """

    total_files: int
    completed: int
    processing: int
    failed: int
    pending: int


@dataclass(frozen=True)
class WriteReceipt:
    """
    Successful write of one record. ``failed_steps`` lists best-effort
    sub-entity steps that did not land.
    """

    natural_key: str
    urls_written: int = 0
    tags_written: int = 0
    team_members_written: int = 0
    topics_written: int = 0
    failed_steps: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MigrationRunResult:
    """
    Outcome of one bounded engine invocation.
    """

    outcome: str
    message: str
    file_name: str | None = None
    file_index: int | None = None
    offset: int = 0
    processed: int = 0
    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    file_completed: bool = False
    rescheduled: bool = False
    is_complete: bool = False
    next_file: str | None = None
    clean_slate: bool = False

    @property
    def success(self) -> bool:
        return self.outcome in (RunOutcome.PROCESSED, RunOutcome.COMPLETE) and self.failed == 0


@dataclass(frozen=True)
class ControlActionResult:
    """
    Outcome of one operator control action.
    """

    action: str
    message: str
    is_paused: bool
    is_running: bool
    continuation_scheduled: bool = False
    continuation_delay_seconds: float | None = None
    deleted_progress_rows: int = 0
    deleted_startups: int = 0
    affected_files: list[str] = field(default_factory=list)
