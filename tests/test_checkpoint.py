"""
tests/test_checkpoint.py

Pure checkpoint derivation, status summaries and derived job state.
No database: ledger rows are plain stand-ins.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.config import DEFAULT_SOURCE_FILES
from app.domain.migration import Checkpoint, JobState, StatusCounts
from migration.checkpoint import derive_job_state, is_complete, resolve_checkpoint, summarize_statuses

FILES = ["a.json", "b.json", "c.json"]


@dataclass
class Row:
    file_name: str
    status: str
    processed_count: int = 0
    total_count: int = 0


class TestResolveCheckpoint:
    def test_empty_ledger_starts_at_first_file(self) -> None:
        assert resolve_checkpoint(FILES, []) == Checkpoint(file_index=0, file_name="a.json", offset=0)

    def test_resumes_processing_file_at_processed_count(self) -> None:
        ledger = [
            Row("a.json", "completed", 10, 10),
            Row("b.json", "processing", 7, 20),
        ]

        assert resolve_checkpoint(FILES, ledger) == Checkpoint(file_index=1, file_name="b.json", offset=7)

    def test_processing_file_wins_over_earlier_pending_file(self) -> None:
        ledger = [Row("b.json", "processing", 3, 9)]

        checkpoint = resolve_checkpoint(FILES, ledger)

        assert checkpoint is not None
        assert (checkpoint.file_name, checkpoint.offset) == ("b.json", 3)

    def test_first_unfinished_file_starts_at_zero(self) -> None:
        ledger = [Row("a.json", "completed", 4, 4), Row("b.json", "completed", 2, 2)]

        assert resolve_checkpoint(FILES, ledger) == Checkpoint(file_index=2, file_name="c.json", offset=0)

    def test_pending_row_is_treated_as_unstarted(self) -> None:
        ledger = [Row("a.json", "completed", 1, 1), Row("b.json", "pending", 0, 5)]

        assert resolve_checkpoint(FILES, ledger) == Checkpoint(file_index=1, file_name="b.json", offset=0)

    def test_failed_files_are_skipped(self) -> None:
        ledger = [Row("a.json", "failed", 2, 5), Row("b.json", "completed", 3, 3)]

        assert resolve_checkpoint(FILES, ledger) == Checkpoint(file_index=2, file_name="c.json", offset=0)

    def test_all_completed_yields_none(self) -> None:
        ledger = [Row(name, "completed", 1, 1) for name in FILES]

        assert resolve_checkpoint(FILES, ledger) is None
        assert is_complete(FILES, ledger) is True

    def test_only_failed_remaining_yields_none_but_not_complete(self) -> None:
        ledger = [
            Row("a.json", "completed", 1, 1),
            Row("b.json", "failed", 0, 1),
            Row("c.json", "completed", 1, 1),
        ]

        assert resolve_checkpoint(FILES, ledger) is None
        assert is_complete(FILES, ledger) is False

    def test_offset_is_clamped_to_total(self) -> None:
        ledger = [Row("a.json", "processing", 50, 10)]

        checkpoint = resolve_checkpoint(FILES, ledger)

        assert checkpoint is not None and checkpoint.offset == 10

    def test_rows_outside_catalog_are_ignored(self) -> None:
        ledger = [Row("zzz.json", "processing", 3, 9)]

        assert resolve_checkpoint(FILES, ledger) == Checkpoint(file_index=0, file_name="a.json", offset=0)

    def test_checkpoint_payload(self) -> None:
        payload = Checkpoint(file_index=2, file_name="c.json", offset=4).as_payload()
        assert payload == {"file_index": 2, "file_name": "c.json", "offset": 4}


class TestSummaries:
    def test_files_without_rows_count_as_pending(self) -> None:
        counts = summarize_statuses(FILES, [Row("a.json", "completed", 1, 1), Row("b.json", "failed")])

        assert counts == StatusCounts(total_files=3, completed=1, processing=0, failed=1, pending=1)


class TestJobState:
    def _counts(self, **kwargs) -> StatusCounts:
        base = {"total_files": 13, "completed": 0, "processing": 0, "failed": 0, "pending": 13}
        base.update(kwargs)
        return StatusCounts(**base)

    def test_reference_catalog_has_thirteen_files(self) -> None:
        assert len(DEFAULT_SOURCE_FILES) == 13

    def test_complete_only_when_every_file_completed_and_none_failed(self) -> None:
        state = derive_job_state(
            self._counts(completed=13, pending=0),
            has_entries=True,
            executor_active=False,
            is_paused=False,
        )
        assert state == JobState.COMPLETE

    def test_failed_file_never_reports_complete(self) -> None:
        state = derive_job_state(
            self._counts(completed=12, failed=1, pending=0),
            has_entries=True,
            executor_active=False,
            is_paused=False,
        )
        assert state == JobState.STALLED

    def test_pending_with_active_executor_is_in_progress(self) -> None:
        state = derive_job_state(
            self._counts(completed=5, pending=8),
            has_entries=True,
            executor_active=True,
            is_paused=False,
        )
        assert state == JobState.IN_PROGRESS

    def test_paused_job_is_in_progress(self) -> None:
        state = derive_job_state(
            self._counts(completed=5, pending=8),
            has_entries=True,
            executor_active=False,
            is_paused=True,
        )
        assert state == JobState.IN_PROGRESS

    def test_pending_without_executor_is_stalled(self) -> None:
        state = derive_job_state(
            self._counts(completed=5, processing=1, pending=7),
            has_entries=True,
            executor_active=False,
            is_paused=False,
        )
        assert state == JobState.STALLED

    def test_empty_ledger_is_not_started(self) -> None:
        state = derive_job_state(self._counts(), has_entries=False, executor_active=False, is_paused=False)
        assert state == JobState.NOT_STARTED
