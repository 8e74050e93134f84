"""
db/models/startup_relations.py

Nested sub-entities written alongside a startup: contact URLs, tags,
team members and topics.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.startup import Startup


class TopicType:
    OFFERING = "offering"
    SEEKING = "seeking"


class StartupExternalUrls(Base, TimestampMixin):
    __tablename__ = "startup_external_urls"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    homepage: Mapped[str | None] = mapped_column(Text, nullable=True)
    angellist: Mapped[str | None] = mapped_column(Text, nullable=True)
    crunchbase: Mapped[str | None] = mapped_column(Text, nullable=True)
    instagram: Mapped[str | None] = mapped_column(Text, nullable=True)
    twitter: Mapped[str | None] = mapped_column(Text, nullable=True)
    facebook: Mapped[str | None] = mapped_column(Text, nullable=True)
    linkedin: Mapped[str | None] = mapped_column(Text, nullable=True)
    youtube: Mapped[str | None] = mapped_column(Text, nullable=True)
    alternative_website: Mapped[str | None] = mapped_column(Text, nullable=True)

    startup: Mapped["Startup"] = relationship("Startup", back_populates="external_urls")


class StartupTag(Base, TimestampMixin):
    __tablename__ = "startup_tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
    )
    tag_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="migration")

    startup: Mapped["Startup"] = relationship("Startup", back_populates="tags")

    __table_args__ = (
        UniqueConstraint("startup_id", "tag_name", name="uq_startup_tags_startup_tag"),
    )


class StartupTeamMember(Base, TimestampMixin):
    __tablename__ = "startup_team_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    twitter_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    github_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    facebook_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    industry_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    startup: Mapped["Startup"] = relationship("Startup", back_populates="team_members")

    __table_args__ = (
        UniqueConstraint("startup_id", "member_id", name="uq_startup_team_members_startup_member"),
    )


class StartupTopic(Base, TimestampMixin):
    __tablename__ = "startup_topics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
    )
    topic_id: Mapped[str] = mapped_column(String(255), nullable=False)
    topic_name: Mapped[str] = mapped_column(String(255), nullable=False)
    topic_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="offering or seeking",
    )

    startup: Mapped["Startup"] = relationship("Startup", back_populates="topics")

    __table_args__ = (
        UniqueConstraint(
            "startup_id",
            "topic_id",
            "topic_type",
            name="uq_startup_topics_startup_topic_type",
        ),
        Index("ix_startup_topics_topic_name", "topic_name"),
    )
