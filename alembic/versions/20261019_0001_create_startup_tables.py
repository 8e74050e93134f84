"""create startup destination tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _startup_fk() -> sa.Column:
    return sa.Column(
        "startup_id",
        sa.Uuid(),
        sa.ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "startups",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("province", sa.String(length=255), nullable=True),
        sa.Column("country", sa.String(length=255), nullable=True),
        sa.Column("industry", sa.String(length=255), nullable=True),
        sa.Column("funding_tier", sa.String(length=100), nullable=True),
        sa.Column("elevator_pitch", sa.Text(), nullable=False),
        sa.Column("exhibition_date", sa.String(length=64), nullable=True),
        sa.Column("fundraising", sa.Boolean(), nullable=False),
        sa.Column("meet_investors", sa.Boolean(), nullable=False),
        sa.Column("startup_women_founder", sa.Boolean(), nullable=False),
        sa.Column("startup_black_founder", sa.Boolean(), nullable=False),
        sa.Column("startup_indigenous_founder", sa.Boolean(), nullable=False),
        sa.Column("endorsed_by", sa.String(length=255), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("show_in_kanban", sa.Boolean(), nullable=False),
        sa.Column("kanban_column", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id"),
    )
    op.create_index("ix_startups_country", "startups", ["country"], unique=False)
    op.create_index("ix_startups_industry", "startups", ["industry"], unique=False)

    op.create_table(
        "startup_external_urls",
        sa.Column("id", sa.Uuid(), nullable=False),
        _startup_fk(),
        sa.Column("homepage", sa.Text(), nullable=True),
        sa.Column("angellist", sa.Text(), nullable=True),
        sa.Column("crunchbase", sa.Text(), nullable=True),
        sa.Column("instagram", sa.Text(), nullable=True),
        sa.Column("twitter", sa.Text(), nullable=True),
        sa.Column("facebook", sa.Text(), nullable=True),
        sa.Column("linkedin", sa.Text(), nullable=True),
        sa.Column("youtube", sa.Text(), nullable=True),
        sa.Column("alternative_website", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("startup_id"),
    )

    op.create_table(
        "startup_tags",
        sa.Column("id", sa.Uuid(), nullable=False),
        _startup_fk(),
        sa.Column("tag_name", sa.String(length=255), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("startup_id", "tag_name", name="uq_startup_tags_startup_tag"),
    )

    op.create_table(
        "startup_team_members",
        sa.Column("id", sa.Uuid(), nullable=False),
        _startup_fk(),
        sa.Column("member_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("job_title", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("twitter_url", sa.Text(), nullable=True),
        sa.Column("github_url", sa.Text(), nullable=True),
        sa.Column("facebook_url", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("country_name", sa.String(length=255), nullable=True),
        sa.Column("industry_name", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("startup_id", "member_id", name="uq_startup_team_members_startup_member"),
    )

    op.create_table(
        "startup_topics",
        sa.Column("id", sa.Uuid(), nullable=False),
        _startup_fk(),
        sa.Column("topic_id", sa.String(length=255), nullable=False),
        sa.Column("topic_name", sa.String(length=255), nullable=False),
        sa.Column("topic_type", sa.String(length=16), nullable=False, comment="offering or seeking"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "startup_id",
            "topic_id",
            "topic_type",
            name="uq_startup_topics_startup_topic_type",
        ),
    )
    op.create_index("ix_startup_topics_topic_name", "startup_topics", ["topic_name"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_startup_topics_topic_name", table_name="startup_topics")
    op.drop_table("startup_topics")
    op.drop_table("startup_team_members")
    op.drop_table("startup_tags")
    op.drop_table("startup_external_urls")
    op.drop_index("ix_startups_industry", table_name="startups")
    op.drop_index("ix_startups_country", table_name="startups")
    op.drop_table("startups")
