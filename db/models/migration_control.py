"""
db/models/migration_control.py

Singleton row recording operator intent for the import job.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONDocument, TimestampMixin

CONTROL_ROW_ID = 1


class MigrationControl(Base, TimestampMixin):
    """
    is_running is a cooperative "an executor is mid-batch" signal, not a lock.
    It goes stale when an executor dies without clearing it; force-resume is
    the recovery path.
    """

    __tablename__ = "migration_control"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        default=CONTROL_ROW_ID,
        autoincrement=False,
    )
    is_paused: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    is_running: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    last_checkpoint: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
        comment="Checkpoint of the most recent batch start",
    )

    def __repr__(self) -> str:
        return f"<MigrationControl is_paused={self.is_paused} is_running={self.is_running}>"
