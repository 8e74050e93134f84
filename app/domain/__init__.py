"""
app/domain package marker.
"""

from app.domain.migration import (
    Checkpoint,
    ControlActionResult,
    JobState,
    MigrationRunResult,
    RunOutcome,
    StatusCounts,
    WriteReceipt,
)
from app.domain.startup_record import RecordParseError, StartupRecord, TeamMemberInput, TopicInput

__all__ = [
    "Checkpoint",
    "ControlActionResult",
    "JobState",
    "MigrationRunResult",
    "RecordParseError",
    "RunOutcome",
    "StartupRecord",
    "StatusCounts",
    "TeamMemberInput",
    "TopicInput",
    "WriteReceipt",
]
