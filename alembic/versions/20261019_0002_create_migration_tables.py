"""create migration_progress and migration_control tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "migration_progress",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column(
            "batch_number",
            sa.Integer(),
            nullable=False,
            comment="Position of the file in the source catalog",
        ),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("processed_count", sa.Integer(), nullable=False),
        sa.Column(
            "total_count",
            sa.Integer(),
            nullable=False,
            comment="Admissible records in the file after placeholder filtering",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("processed_count >= 0", name="ck_migration_progress_processed_non_negative"),
        sa.CheckConstraint("processed_count <= total_count", name="ck_migration_progress_processed_le_total"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("file_name"),
    )
    op.create_index("ix_migration_progress_status", "migration_progress", ["status"], unique=False)

    op.create_table(
        "migration_control",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("is_paused", sa.Boolean(), nullable=False),
        sa.Column("is_running", sa.Boolean(), nullable=False),
        sa.Column(
            "last_checkpoint",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Checkpoint of the most recent batch start",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.execute(
        "INSERT INTO migration_control (id, is_paused, is_running) VALUES (1, false, false)"
    )


def downgrade() -> None:
    op.drop_table("migration_control")
    op.drop_index("ix_migration_progress_status", table_name="migration_progress")
    op.drop_table("migration_progress")
