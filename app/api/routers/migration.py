"""
app/api/routers/migration.py

Import job HTTP endpoints: one-shot invocation, operator controls and the
progress read model.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.connectors.base import SourceFetchError
from app.domain.migration import ControlActionResult, MigrationRunResult
from app.schemas.migration import (
    ControlActionResponse,
    ControlStateResponse,
    MarkFileFailedRequest,
    MigrationErrorResponse,
    MigrationProgressResponse,
    MigrationRunResponse,
    ProgressEntryResponse,
    StatusCountsResponse,
)
from app.services.migration_control_service import (
    MigrationControlService,
    MigrationInProgressError,
    UnknownSourceFileError,
    get_migration_control_service,
)
from app.services.progress_report_service import (
    ProgressReportService,
    get_progress_report_service,
)
from db.base import as_utc
from db.session import get_db
from migration.engine import MigrationEngine, get_migration_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/migration", tags=["migration"])


def _error_response(message: str) -> JSONResponse:
    body = MigrationErrorResponse(error=message, timestamp=datetime.now(timezone.utc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


def _run_response(result: MigrationRunResult) -> MigrationRunResponse:
    return MigrationRunResponse(
        success=result.success,
        outcome=result.outcome,
        message=result.message,
        file_name=result.file_name,
        file_index=result.file_index,
        offset=result.offset,
        processed=result.processed,
        total=result.total,
        succeeded=result.succeeded,
        skipped=result.skipped,
        failed=result.failed,
        file_completed=result.file_completed,
        rescheduled=result.rescheduled,
        is_complete=result.is_complete,
        next_file=result.next_file,
        clean_slate=result.clean_slate,
    )


def _action_response(result: ControlActionResult) -> ControlActionResponse:
    return ControlActionResponse(
        action=result.action,
        message=result.message,
        is_paused=result.is_paused,
        is_running=result.is_running,
        continuation_scheduled=result.continuation_scheduled,
        continuation_delay_seconds=result.continuation_delay_seconds,
        deleted_progress_rows=result.deleted_progress_rows,
        deleted_startups=result.deleted_startups,
        affected_files=list(result.affected_files),
    )


@router.post(
    "/run",
    response_model=MigrationRunResponse,
    responses={500: {"model": MigrationErrorResponse}},
)
def run_migration(
    engine: MigrationEngine = Depends(get_migration_engine),
) -> MigrationRunResponse | JSONResponse:
    """
    Run one bounded invocation. Continuations are armed by the engine itself.
    """

    try:
        result = engine.run_once()
    except SourceFetchError as exc:
        logger.error("Migration invocation aborted: %s", exc)
        return _error_response(str(exc))
    except Exception as exc:
        logger.exception("Migration invocation failed: %s", exc)
        return _error_response(f"Migration invocation failed: {exc}")

    return _run_response(result)


@router.post("/pause", response_model=ControlActionResponse)
def pause_migration(
    db: Session = Depends(get_db),
    control_service: MigrationControlService = Depends(get_migration_control_service),
) -> ControlActionResponse:
    return _action_response(control_service.pause(db))


@router.post("/resume", response_model=ControlActionResponse)
def resume_migration(
    db: Session = Depends(get_db),
    control_service: MigrationControlService = Depends(get_migration_control_service),
) -> ControlActionResponse:
    return _action_response(control_service.resume(db))


@router.post("/force-resume", response_model=ControlActionResponse)
def force_resume_migration(
    db: Session = Depends(get_db),
    control_service: MigrationControlService = Depends(get_migration_control_service),
) -> ControlActionResponse:
    return _action_response(control_service.force_resume(db))


@router.post("/reset", response_model=ControlActionResponse)
def reset_migration(
    db: Session = Depends(get_db),
    control_service: MigrationControlService = Depends(get_migration_control_service),
) -> ControlActionResponse:
    try:
        result = control_service.reset(db)
    except MigrationInProgressError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return _action_response(result)


@router.post("/files/{file_name}/fail", response_model=ControlActionResponse)
def mark_file_failed(
    file_name: str,
    payload: MarkFileFailedRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    control_service: MigrationControlService = Depends(get_migration_control_service),
) -> ControlActionResponse:
    try:
        reason = (payload or MarkFileFailedRequest()).reason
        result = control_service.mark_file_failed(db, file_name, reason)
    except UnknownSourceFileError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return _action_response(result)


@router.post("/requeue-failed", response_model=ControlActionResponse)
def requeue_failed_files(
    db: Session = Depends(get_db),
    control_service: MigrationControlService = Depends(get_migration_control_service),
) -> ControlActionResponse:
    return _action_response(control_service.requeue_failed(db))


@router.get("/control", response_model=ControlStateResponse)
def get_control_state(
    db: Session = Depends(get_db),
    control_service: MigrationControlService = Depends(get_migration_control_service),
) -> ControlStateResponse:
    control = control_service.get_control(db)
    return ControlStateResponse(
        is_paused=control.is_paused,
        is_running=control.is_running,
        last_checkpoint=control.last_checkpoint,
        updated_at=as_utc(control.updated_at),
    )


@router.get("/progress", response_model=MigrationProgressResponse)
def get_migration_progress(
    db: Session = Depends(get_db),
    report_service: ProgressReportService = Depends(get_progress_report_service),
) -> MigrationProgressResponse:
    report = report_service.build_report(db)
    return MigrationProgressResponse(
        job_state=report.job_state,
        counts=StatusCountsResponse(
            total_files=report.counts.total_files,
            completed=report.counts.completed,
            processing=report.counts.processing,
            failed=report.counts.failed,
            pending=report.counts.pending,
        ),
        entries=[
            ProgressEntryResponse(
                file_name=entry.file_name,
                batch_number=entry.batch_number,
                status=entry.status,
                processed_count=entry.processed_count,
                total_count=entry.total_count,
                error_message=entry.error_message,
                started_at=as_utc(entry.started_at),
                completed_at=as_utc(entry.completed_at),
            )
            for entry in report.entries
        ],
        total_processed=report.total_processed,
        total_expected=report.total_expected,
        percent_complete=report.percent_complete,
        records_per_second=report.records_per_second,
        eta_seconds=report.eta_seconds,
        is_paused=report.is_paused,
        is_running=report.is_running,
        continuation_pending=report.continuation_pending,
        stuck_suspected=report.stuck_suspected,
        can_force_resume=report.can_force_resume,
        last_checkpoint=report.last_checkpoint,
        control_updated_at=report.control_updated_at,
        generated_at=report.generated_at,
    )
