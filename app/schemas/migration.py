"""
Schemas for the import job's invocation, control and progress endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class MigrationRunResponse(BaseModel):
    success: bool
    outcome: str
    message: str
    file_name: str | None = None
    file_index: int | None = None
    offset: int = Field(default=0, ge=0)
    processed: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    file_completed: bool = False
    rescheduled: bool = False
    is_complete: bool = False
    next_file: str | None = None
    clean_slate: bool = False


class MigrationErrorResponse(BaseModel):
    success: bool = False
    error: str
    timestamp: datetime


class ControlActionResponse(BaseModel):
    action: str
    message: str
    is_paused: bool
    is_running: bool
    continuation_scheduled: bool = False
    continuation_delay_seconds: float | None = None
    deleted_progress_rows: int = Field(default=0, ge=0)
    deleted_startups: int = Field(default=0, ge=0)
    affected_files: list[str] = Field(default_factory=list)


class MarkFileFailedRequest(BaseModel):
    reason: str = Field(default="Marked failed by operator.", max_length=2000)


class ControlStateResponse(BaseModel):
    is_paused: bool
    is_running: bool
    last_checkpoint: dict[str, Any] | None = None
    updated_at: datetime | None = None


class ProgressEntryResponse(BaseModel):
    file_name: str
    batch_number: int
    status: str
    processed_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class StatusCountsResponse(BaseModel):
    total_files: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    processing: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)


class MigrationProgressResponse(BaseModel):
    job_state: str
    counts: StatusCountsResponse
    entries: list[ProgressEntryResponse] = Field(default_factory=list)
    total_processed: int = Field(..., ge=0)
    total_expected: int = Field(..., ge=0)
    percent_complete: float = Field(..., ge=0.0, le=100.0)
    records_per_second: float | None = None
    eta_seconds: float | None = None
    is_paused: bool
    is_running: bool
    continuation_pending: bool
    stuck_suspected: bool
    can_force_resume: bool
    last_checkpoint: dict[str, Any] | None = None
    control_updated_at: datetime | None = None
    generated_at: datetime
