"""
Run and control the startup import job from the CLI.

Examples:
    python scripts/run_migration.py run
    python scripts/run_migration.py run --until-done
    python scripts/run_migration.py status
    python scripts/run_migration.py pause
    python scripts/run_migration.py force-resume --run
"""

from __future__ import annotations

import argparse
import json
import logging
import time
from typing import Any

from app.config import get_migration_settings
from app.connectors.base import SourceFetchError
from app.connectors.catalog_factory import get_source_catalog
from app.domain.migration import ControlActionResult, MigrationRunResult, RunOutcome
from app.services.migration_control_service import (
    MigrationInProgressError,
    get_migration_control_service,
)
from app.services.progress_report_service import get_progress_report_service
from app.validators.record_validator import RecordValidator
from db.session import SessionLocal
from migration.engine import MigrationEngine


class _InlineContinuation:
    """
    Stands in for the background scheduler: remembers that a continuation
    was requested so ``--until-done`` can loop in-process.
    """

    def __init__(self) -> None:
        self.requested_delay: float | None = None

    def schedule(self, delay_seconds: float) -> None:
        self.requested_delay = delay_seconds

    def cancel(self) -> bool:
        pending = self.requested_delay is not None
        self.requested_delay = None
        return pending

    def has_pending(self) -> bool:
        return self.requested_delay is not None


def _run_payload(result: MigrationRunResult) -> dict[str, Any]:
    return {
        "success": result.success,
        "outcome": result.outcome,
        "message": result.message,
        "file_name": result.file_name,
        "offset": result.offset,
        "processed": result.processed,
        "total": result.total,
        "succeeded": result.succeeded,
        "skipped": result.skipped,
        "failed": result.failed,
        "file_completed": result.file_completed,
        "rescheduled": result.rescheduled,
        "is_complete": result.is_complete,
        "next_file": result.next_file,
        "clean_slate": result.clean_slate,
    }


def _action_payload(result: ControlActionResult) -> dict[str, Any]:
    return {
        "action": result.action,
        "message": result.message,
        "is_paused": result.is_paused,
        "is_running": result.is_running,
        "continuation_scheduled": result.continuation_scheduled,
        "deleted_progress_rows": result.deleted_progress_rows,
        "deleted_startups": result.deleted_startups,
        "affected_files": result.affected_files,
    }


def _run(until_done: bool, max_invocations: int) -> list[dict[str, Any]]:
    continuation = _InlineContinuation()
    engine = MigrationEngine(
        session_factory=SessionLocal,
        catalog=get_source_catalog(),
        scheduler=continuation,
        settings=get_migration_settings(),
        validator=RecordValidator.from_settings(),
    )

    payloads: list[dict[str, Any]] = []
    for _ in range(max(1, max_invocations)):
        continuation.cancel()
        result = engine.run_once()
        payloads.append(_run_payload(result))
        if not until_done or result.outcome != RunOutcome.PROCESSED or not continuation.has_pending():
            break
        time.sleep(continuation.requested_delay or 0.0)
    return payloads


def _status() -> dict[str, Any]:
    with SessionLocal() as db:
        report = get_progress_report_service().build_report(db)
    return {
        "job_state": report.job_state,
        "files": {
            "total": report.counts.total_files,
            "completed": report.counts.completed,
            "processing": report.counts.processing,
            "failed": report.counts.failed,
            "pending": report.counts.pending,
        },
        "records": {"processed": report.total_processed, "expected": report.total_expected},
        "percent_complete": report.percent_complete,
        "records_per_second": report.records_per_second,
        "eta_seconds": report.eta_seconds,
        "is_paused": report.is_paused,
        "is_running": report.is_running,
        "stuck_suspected": report.stuck_suspected,
        "can_force_resume": report.can_force_resume,
        "entries": [
            {
                "file_name": entry.file_name,
                "status": entry.status,
                "processed_count": entry.processed_count,
                "total_count": entry.total_count,
                "error_message": entry.error_message,
            }
            for entry in report.entries
        ],
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Run and control the startup import job.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one invocation (or loop with --until-done).")
    run_parser.add_argument("--until-done", action="store_true", help="Keep invoking until nothing is left.")
    run_parser.add_argument(
        "--max-invocations",
        type=int,
        default=10_000,
        help="Upper bound on invocations with --until-done.",
    )

    subparsers.add_parser("status", help="Print the progress read model.")
    subparsers.add_parser("pause", help="Pause at the next invocation boundary.")
    for name in ("resume", "force-resume"):
        control_parser = subparsers.add_parser(name, help=f"{name.replace('-', ' ').capitalize()} the job.")
        control_parser.add_argument("--run", action="store_true", help="Then run until done in this process.")
    subparsers.add_parser("reset", help="Delete all progress and migrated startups.")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    if args.command == "run":
        try:
            payload: Any = _run(args.until_done, args.max_invocations)
        except SourceFetchError as exc:
            print(json.dumps({"success": False, "error": str(exc)}, indent=2))
            return 1
    elif args.command == "status":
        payload = _status()
    else:
        service = get_migration_control_service()
        with SessionLocal() as db:
            if args.command == "pause":
                result = service.pause(db)
            elif args.command == "resume":
                result = service.resume(db)
            elif args.command == "force-resume":
                result = service.force_resume(db)
            else:
                try:
                    result = service.reset(db)
                except MigrationInProgressError as exc:
                    print(json.dumps({"success": False, "error": str(exc)}, indent=2))
                    return 1
        payload = _action_payload(result)
        if getattr(args, "run", False):
            payload = {"control": payload, "runs": _run(True, 10_000)}

    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
