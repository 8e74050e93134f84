"""
db/models/migration_progress.py

Progress ledger row: one per source file, the durable checkpoint of the
import job.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class MigrationFileStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (PENDING, PROCESSING, COMPLETED, FAILED)
    TERMINAL = (COMPLETED, FAILED)


class MigrationProgress(Base, TimestampMixin):
    __tablename__ = "migration_progress"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    file_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )
    batch_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Position of the file in the source catalog",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=MigrationFileStatus.PENDING,
    )
    processed_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    total_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Admissible records in the file after placeholder filtering",
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint("processed_count >= 0", name="ck_migration_progress_processed_non_negative"),
        CheckConstraint("processed_count <= total_count", name="ck_migration_progress_processed_le_total"),
        Index("ix_migration_progress_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<MigrationProgress file_name={self.file_name!r} status={self.status!r} "
            f"processed={self.processed_count}/{self.total_count}>"
        )
