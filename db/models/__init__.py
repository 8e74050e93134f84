"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.migration_control import CONTROL_ROW_ID, MigrationControl
from db.models.migration_progress import MigrationFileStatus, MigrationProgress
from db.models.startup import Startup
from db.models.startup_relations import (
    StartupExternalUrls,
    StartupTag,
    StartupTeamMember,
    StartupTopic,
    TopicType,
)

__all__ = [
    "CONTROL_ROW_ID",
    "MigrationControl",
    "MigrationFileStatus",
    "MigrationProgress",
    "Startup",
    "StartupExternalUrls",
    "StartupTag",
    "StartupTeamMember",
    "StartupTopic",
    "TopicType",
]
