"""
Repository for the migration control singleton.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from db.models.migration_control import CONTROL_ROW_ID, MigrationControl


class ControlStateRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_or_create(self) -> MigrationControl:
        control = self._session.get(MigrationControl, CONTROL_ROW_ID, populate_existing=True)
        if control is None:
            now = datetime.now(timezone.utc)
            control = MigrationControl(
                id=CONTROL_ROW_ID,
                is_paused=False,
                is_running=False,
                created_at=now,
                updated_at=now,
            )
            self._session.add(control)
            self._session.flush()
        return control

    def set_paused(self, paused: bool) -> MigrationControl:
        control = self.get_or_create()
        control.is_paused = paused
        self._touch(control)
        return control

    def mark_running(self, checkpoint: dict[str, Any] | None = None) -> MigrationControl:
        control = self.get_or_create()
        control.is_running = True
        if checkpoint is not None:
            control.last_checkpoint = checkpoint
        self._touch(control)
        return control

    def mark_idle(self) -> MigrationControl:
        control = self.get_or_create()
        control.is_running = False
        self._touch(control)
        return control

    def clear_flags(self) -> MigrationControl:
        """Unconditionally clear pause and running flags."""
        control = self.get_or_create()
        control.is_paused = False
        control.is_running = False
        self._touch(control)
        return control

    def clear_checkpoint(self) -> MigrationControl:
        control = self.get_or_create()
        control.last_checkpoint = None
        self._touch(control)
        return control

    def _touch(self, control: MigrationControl) -> None:
        control.updated_at = datetime.now(timezone.utc)
        self._session.flush()
