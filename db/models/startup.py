"""
db/models/startup.py

Destination entities for migrated startup records.

A startup is keyed by its external ``company_id`` (the natural key of the
source records). Nested rows hang off the startup's surrogate id.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.startup_relations import (
        StartupExternalUrls,
        StartupTag,
        StartupTeamMember,
        StartupTopic,
    )


class Startup(Base, TimestampMixin):
    __tablename__ = "startups"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    company_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Natural key carried over from the source catalog",
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    province: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(255), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(255), nullable=True)
    funding_tier: Mapped[str | None] = mapped_column(String(100), nullable=True)
    elevator_pitch: Mapped[str] = mapped_column(Text, nullable=False, default="")
    exhibition_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fundraising: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    meet_investors: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    startup_women_founder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    startup_black_founder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    startup_indigenous_founder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    endorsed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    show_in_kanban: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    kanban_column: Mapped[str] = mapped_column(String(64), nullable=False, default="backlog")

    # ── Relationships ──────────────────────────────────────────────────────────

    external_urls: Mapped["StartupExternalUrls | None"] = relationship(
        "StartupExternalUrls",
        back_populates="startup",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    team_members: Mapped[list["StartupTeamMember"]] = relationship(
        "StartupTeamMember",
        back_populates="startup",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    topics: Mapped[list["StartupTopic"]] = relationship(
        "StartupTopic",
        back_populates="startup",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags: Mapped[list["StartupTag"]] = relationship(
        "StartupTag",
        back_populates="startup",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_startups_country", "country"),
        Index("ix_startups_industry", "industry"),
    )

    def __repr__(self) -> str:
        return f"<Startup company_id={self.company_id!r} name={self.name!r}>"
