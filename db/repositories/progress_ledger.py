"""
Progress ledger: per-file status and counters for the import job.

The ledger is the source of truth for where the job stands. Methods work
inside the caller's transaction; commit/rollback belongs to the caller.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Select, delete, select, update
from sqlalchemy.orm import Session

from db.models.migration_progress import MigrationFileStatus, MigrationProgress

MAX_ERROR_MESSAGE_LENGTH = 2000


class ProgressLedger:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_entry(self, file_name: str, *, refresh: bool = False) -> MigrationProgress | None:
        """
        ``refresh=True`` reloads the row from the database, picking up writes
        committed by other sessions (an operator marking the file failed).
        """
        stmt = select(MigrationProgress).where(MigrationProgress.file_name == file_name)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return self._session.scalars(stmt).first()

    def all_entries(self, *, refresh: bool = False) -> list[MigrationProgress]:
        stmt: Select[tuple[MigrationProgress]] = select(MigrationProgress).order_by(
            MigrationProgress.file_name.asc()
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return list(self._session.scalars(stmt).all())

    def upsert_status(
        self,
        file_name: str,
        *,
        status: str,
        processed_count: int,
        total_count: int,
        batch_number: int | None = None,
        error_message: str | None = None,
    ) -> MigrationProgress:
        """
        Create or update the entry keyed by file name.

        started_at is stamped when a file (re)starts processing from zero;
        completed_at only when the status becomes completed or failed.
        """

        if status not in MigrationFileStatus.ALL:
            raise ValueError(f"Unknown migration status: {status!r}")

        total = max(0, total_count)
        processed = min(max(0, processed_count), total)
        now = datetime.now(timezone.utc)

        entry = self.get_entry(file_name)
        if entry is None:
            entry = MigrationProgress(file_name=file_name, batch_number=batch_number or 0)
            self._session.add(entry)
        elif batch_number is not None:
            entry.batch_number = batch_number

        entry.status = status
        entry.total_count = total
        entry.processed_count = processed
        if error_message is not None:
            entry.error_message = error_message[:MAX_ERROR_MESSAGE_LENGTH]

        if status == MigrationFileStatus.PROCESSING:
            if processed == 0 or entry.started_at is None:
                entry.started_at = now
            entry.completed_at = None
        elif status in MigrationFileStatus.TERMINAL:
            entry.completed_at = now
        else:
            entry.completed_at = None

        self._session.flush()
        return entry

    def complete_if_processing(
        self,
        file_name: str,
        *,
        total_count: int,
        batch_number: int | None = None,
    ) -> bool:
        """
        Mark a file completed, but only while it is still processing.

        Returns False and leaves the row alone when its status changed
        underneath the caller, e.g. an operator marked it failed mid-batch.
        """

        total = max(0, total_count)
        values: dict[str, object] = {
            "status": MigrationFileStatus.COMPLETED,
            "processed_count": total,
            "total_count": total,
            "completed_at": datetime.now(timezone.utc),
        }
        if batch_number is not None:
            values["batch_number"] = batch_number

        stmt = (
            update(MigrationProgress)
            .where(
                MigrationProgress.file_name == file_name,
                MigrationProgress.status == MigrationFileStatus.PROCESSING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        self.get_entry(file_name, refresh=True)
        return bool(result.rowcount)

    def update_processed(self, file_name: str, processed_count: int) -> MigrationProgress | None:
        """
        Advance processed_count. Never moves backwards and never exceeds total_count.
        """

        entry = self.get_entry(file_name)
        if entry is None:
            return None
        target = min(processed_count, entry.total_count)
        if target > entry.processed_count:
            entry.processed_count = target
        return entry

    def append_error(self, file_name: str, message: str, *, max_errors: int) -> MigrationProgress | None:
        """
        Keep the first ``max_errors`` record errors for a file, one per line.
        """

        entry = self.get_entry(file_name)
        if entry is None:
            return None
        lines = entry.error_message.splitlines() if entry.error_message else []
        if len(lines) >= max_errors:
            return entry
        lines.append(" ".join(message.split()))
        entry.error_message = "\n".join(lines)[:MAX_ERROR_MESSAGE_LENGTH]
        return entry

    def mark_failed(
        self,
        file_name: str,
        *,
        batch_number: int,
        error_message: str,
    ) -> MigrationProgress:
        entry = self.get_entry(file_name)
        processed = entry.processed_count if entry is not None else 0
        total = entry.total_count if entry is not None else 0
        return self.upsert_status(
            file_name,
            status=MigrationFileStatus.FAILED,
            processed_count=processed,
            total_count=total,
            batch_number=batch_number,
            error_message=error_message,
        )

    def requeue_failed(self) -> list[str]:
        """
        Move failed files back to pending so the checkpoint picks them up again.
        """

        stmt = select(MigrationProgress).where(MigrationProgress.status == MigrationFileStatus.FAILED)
        requeued: list[str] = []
        for entry in self._session.scalars(stmt).all():
            entry.status = MigrationFileStatus.PENDING
            entry.processed_count = 0
            entry.error_message = None
            entry.started_at = None
            entry.completed_at = None
            requeued.append(entry.file_name)
        self._session.flush()
        return sorted(requeued)

    def delete_all(self) -> int:
        result = self._session.execute(delete(MigrationProgress))
        return int(result.rowcount or 0)
