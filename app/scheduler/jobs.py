"""
app/scheduler/jobs.py

APScheduler-backed continuation for the import engine.

Self-reschedule
---------------
Every engine invocation that leaves work behind arms exactly one delayed
re-invocation. The continuation is a one-shot ``date`` job registered under
a fixed id with ``replace_existing=True``, so re-arming replaces the pending
job instead of stacking a second one. At most one continuation is ever
pending.

A fired continuation may overlap one invocation that is still running: a
force-resume has to start even while a hung invocation occupies the
previous slot. Otherwise the engine refuses to start while another
invocation holds the running flag, and the dedup gate keeps a forced
overlap from duplicating rows.

Lifecycle
----------
``get_migration_scheduler()`` returns the process-wide instance. The FastAPI
lifespan in main.py starts it on boot and shuts it down on exit. Arming a
continuation before ``start()`` is allowed; APScheduler keeps the job until
the scheduler runs.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from app.connectors.base import SourceFetchError

logger = logging.getLogger(__name__)

CONTINUATION_JOB_ID = "migration_continuation"
# one possibly hung invocation plus the one that recovers it
MAX_CONCURRENT_INVOCATIONS = 2


# ---------------------------------------------------------------------------
# Job: one engine invocation
# ---------------------------------------------------------------------------


def run_migration_invocation() -> None:
    """
    Run one engine invocation from the scheduler thread.

    Failures are logged and never raised into APScheduler; the next manual
    or scheduled trigger retries from the ledger checkpoint.
    """
    from migration.engine import get_migration_engine

    logger.info("Scheduler: migration continuation starting")
    try:
        result = get_migration_engine().run_once()
    except SourceFetchError as exc:
        logger.error("Scheduler: migration continuation fetch failed: %s", exc)
        return
    except Exception as exc:  # noqa: BLE001
        logger.exception("Scheduler: migration continuation failed: %s", exc)
        return

    logger.info(
        "Scheduler: migration continuation finished outcome=%s file=%s rescheduled=%s",
        result.outcome,
        result.file_name,
        result.rescheduled,
    )


# ---------------------------------------------------------------------------
# Scheduler wrapper
# ---------------------------------------------------------------------------


class MigrationScheduler:
    """
    Owns the BackgroundScheduler and the single continuation job.
    """

    def __init__(self, scheduler: BackgroundScheduler | None = None) -> None:
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Migration scheduler started")

    def shutdown(self, wait: bool = True) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Migration scheduler shut down")

    def schedule(self, delay_seconds: float) -> None:
        """
        Arm (or re-arm) the continuation to fire after ``delay_seconds``.
        """
        run_date = datetime.now(tz=timezone.utc) + timedelta(seconds=max(0.0, delay_seconds))
        if not self._scheduler.running:
            # Pending jobs of a stopped scheduler are not replaced by id.
            while self._remove_quietly():
                pass
        self._scheduler.add_job(
            run_migration_invocation,
            trigger="date",
            run_date=run_date,
            id=CONTINUATION_JOB_ID,
            name="Migration continuation",
            replace_existing=True,
            misfire_grace_time=300,
            coalesce=True,
            max_instances=MAX_CONCURRENT_INVOCATIONS,
        )
        logger.info("Migration continuation armed delay_seconds=%.2f", delay_seconds)

    def cancel(self) -> bool:
        """
        Drop a pending continuation. Returns True when one was removed.
        """
        removed = False
        while self._remove_quietly():
            removed = True
        if removed:
            logger.info("Migration continuation cancelled")
        return removed

    def has_pending(self) -> bool:
        return self._scheduler.get_job(CONTINUATION_JOB_ID) is not None

    def _remove_quietly(self) -> bool:
        try:
            self._scheduler.remove_job(CONTINUATION_JOB_ID)
        except JobLookupError:
            return False
        return True


@lru_cache(maxsize=1)
def get_migration_scheduler() -> MigrationScheduler:
    """
    Return the process-wide continuation scheduler (not started).
    """
    return MigrationScheduler()
