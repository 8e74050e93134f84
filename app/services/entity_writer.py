"""
app/services/entity_writer.py

Writes one admissible, non-duplicate startup record and its nested
sub-entities into the destination store.

Only the primary insert is mandatory. Contact URLs, tags, team members and
topics are best-effort: each step runs in its own SAVEPOINT, is retried
with exponential backoff, and a step that still fails is reported on the
receipt without rolling back the primary row. The whole write runs under a
per-record deadline, checked before every best-effort step and once more
before the record is released; running past it is a RecordTimeoutError and
the record leaves nothing behind. On PostgreSQL a single hung statement is
additionally cut off by the connection's statement_timeout (db/session.py).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import MigrationSettings
from app.domain.migration import WriteReceipt
from app.domain.startup_record import RecordParseError, StartupRecord
from app.repositories.startup_repository import StartupRepository

logger = logging.getLogger(__name__)


class RecordWriteError(Exception):
    """
    One record could not be written. Counted and recorded; never aborts a batch.
    """

    def __init__(self, natural_key: str | None, message: str) -> None:
        super().__init__(message)
        self.natural_key = natural_key
        self.message = message

    def __str__(self) -> str:
        return f"{self.natural_key or '<unknown>'}: {self.message}"


class DuplicateRecordError(RecordWriteError):
    """
    The natural key appeared between the dedup check and the insert.
    """


class RecordTimeoutError(RecordWriteError):
    """
    The per-record time budget ran out.
    """


class EntityWriter:
    def __init__(
        self,
        session: Session,
        *,
        settings: MigrationSettings,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session = session
        self._repository = StartupRepository(session)
        self._settings = settings
        self._sleep = sleep
        self._clock = clock

    def write(self, raw: Mapping[str, Any]) -> WriteReceipt:
        deadline = self._clock() + self._settings.record_timeout_seconds
        natural_key = _natural_key(raw)

        try:
            record = StartupRecord.from_payload(raw)
        except RecordParseError as exc:
            raise RecordWriteError(natural_key, f"unparseable record: {exc}") from exc

        # A record that times out or fails its primary insert leaves no rows behind.
        with self._session.begin_nested():
            receipt = self._write_record(record, deadline)
            self._check_deadline(record, deadline, "completion")
        return receipt

    def _write_record(self, record: StartupRecord, deadline: float) -> WriteReceipt:
        startup_id = self._insert_primary(record)
        failed_steps: list[str] = []

        urls_written = 0
        if record.has_external_urls:
            urls_written = self._best_effort(
                "external_urls",
                lambda: self._repository.insert_external_urls(startup_id, record.external_urls),
                record=record,
                deadline=deadline,
                failed_steps=failed_steps,
            )

        tags = record.tags[: self._settings.max_tags]
        tags_written = self._best_effort(
            "tags",
            lambda: self._repository.insert_tags(startup_id, tags),
            record=record,
            deadline=deadline,
            failed_steps=failed_steps,
        ) if tags else 0

        members = record.team_members[: self._settings.max_team_members]
        members_written = self._best_effort(
            "team_members",
            lambda: self._repository.insert_team_members(startup_id, members),
            record=record,
            deadline=deadline,
            failed_steps=failed_steps,
        ) if members else 0

        topics = (
            record.offering_topics[: self._settings.max_topics_per_kind]
            + record.seeking_topics[: self._settings.max_topics_per_kind]
        )
        topics_written = self._best_effort(
            "topics",
            lambda: self._repository.insert_topics(startup_id, topics),
            record=record,
            deadline=deadline,
            failed_steps=failed_steps,
        ) if topics else 0

        if failed_steps:
            logger.warning(
                "Partial sub-entity write company_id=%s failed_steps=%s",
                record.company_id,
                ",".join(failed_steps),
            )

        return WriteReceipt(
            natural_key=record.company_id,
            urls_written=urls_written,
            tags_written=tags_written,
            team_members_written=members_written,
            topics_written=topics_written,
            failed_steps=failed_steps,
        )

    def _insert_primary(self, record: StartupRecord) -> Any:
        try:
            with self._session.begin_nested():
                startup = self._repository.insert_startup(record)
        except IntegrityError as exc:
            if self._repository.exists(record.company_id):
                raise DuplicateRecordError(record.company_id, "already present in destination") from exc
            raise RecordWriteError(record.company_id, f"primary insert rejected: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise RecordWriteError(record.company_id, f"primary insert failed: {exc}") from exc
        return startup.id

    def _best_effort(
        self,
        step: str,
        operation: Callable[[], int],
        *,
        record: StartupRecord,
        deadline: float,
        failed_steps: list[str],
    ) -> int:
        attempts = self._settings.sub_entity_max_retries
        for attempt in range(1, attempts + 1):
            self._check_deadline(record, deadline, step)
            try:
                with self._session.begin_nested():
                    return operation()
            except SQLAlchemyError as exc:
                logger.warning(
                    "Sub-entity write failed company_id=%s step=%s attempt=%s/%s error=%s",
                    record.company_id,
                    step,
                    attempt,
                    attempts,
                    exc,
                )
            if attempt < attempts:
                backoff_seconds = self._settings.sub_entity_retry_base_seconds * (2 ** (attempt - 1))
                if self._clock() + backoff_seconds >= deadline:
                    break
                self._sleep(backoff_seconds)

        failed_steps.append(step)
        return 0

    def _check_deadline(self, record: StartupRecord, deadline: float, step: str) -> None:
        if self._clock() >= deadline:
            raise RecordTimeoutError(
                record.company_id,
                f"timed out after {self._settings.record_timeout_seconds:g}s before {step}",
            )


def _natural_key(raw: Mapping[str, Any]) -> str | None:
    if not isinstance(raw, Mapping):
        return None
    value = raw.get("company_id")
    return str(value).strip() if value is not None else None
