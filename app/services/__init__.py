"""
app/services package marker.
"""

from app.services.entity_writer import (
    DuplicateRecordError,
    EntityWriter,
    RecordTimeoutError,
    RecordWriteError,
)
from app.services.migration_control_service import (
    MigrationControlService,
    MigrationInProgressError,
    UnknownSourceFileError,
    get_migration_control_service,
)
from app.services.progress_report_service import (
    ProgressReport,
    ProgressReportService,
    get_progress_report_service,
)

__all__ = [
    "DuplicateRecordError",
    "EntityWriter",
    "RecordTimeoutError",
    "RecordWriteError",
    "MigrationControlService",
    "MigrationInProgressError",
    "UnknownSourceFileError",
    "get_migration_control_service",
    "ProgressReport",
    "ProgressReportService",
    "get_progress_report_service",
]
