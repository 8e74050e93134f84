"""
app/schemas package marker.
"""

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

__all__ = [
    "ControlActionResponse",
    "ControlStateResponse",
    "MarkFileFailedRequest",
    "MigrationErrorResponse",
    "MigrationProgressResponse",
    "MigrationRunResponse",
    "ProgressEntryResponse",
    "StatusCountsResponse",
]
