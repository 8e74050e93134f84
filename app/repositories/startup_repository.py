"""
app/repositories/startup_repository.py

DB persistence for migrated startups and their nested sub-entities.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.domain.startup_record import StartupRecord, TeamMemberInput, TopicInput
from db.models.startup import Startup
from db.models.startup_relations import (
    StartupExternalUrls,
    StartupTag,
    StartupTeamMember,
    StartupTopic,
)


class StartupRepository:
    """
    Repository for destination entities. Operates within the caller's
    transaction; no commits are issued here.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def exists(self, company_id: str) -> bool:
        """
        Natural-key lookup used as the dedup gate before every write.
        """

        stmt = select(Startup.id).where(Startup.company_id == company_id).limit(1)
        return self._session.scalars(stmt).first() is not None

    def count(self) -> int:
        return int(self._session.scalar(select(func.count()).select_from(Startup)) or 0)

    def insert_startup(self, record: StartupRecord) -> Startup:
        startup = Startup(
            company_id=record.company_id,
            name=record.name,
            city=record.city,
            province=record.province,
            country=record.country,
            industry=record.industry,
            funding_tier=record.funding_tier,
            elevator_pitch=record.elevator_pitch,
            exhibition_date=record.exhibition_date,
            fundraising=record.fundraising,
            meet_investors=record.meet_investors,
            startup_women_founder=record.startup_women_founder,
            startup_black_founder=record.startup_black_founder,
            startup_indigenous_founder=record.startup_indigenous_founder,
            endorsed_by=record.endorsed_by,
            logo_url=record.logo_url,
            show_in_kanban=False,
            kanban_column="backlog",
        )
        self._session.add(startup)
        self._session.flush()
        return startup

    def insert_external_urls(self, startup_id: uuid.UUID, urls: dict[str, str | None]) -> int:
        self._session.add(StartupExternalUrls(startup_id=startup_id, **urls))
        self._session.flush()
        return 1

    def insert_tags(self, startup_id: uuid.UUID, tags: Sequence[str]) -> int:
        if not tags:
            return 0
        self._session.add_all(
            [StartupTag(startup_id=startup_id, tag_name=tag, created_by="migration") for tag in tags]
        )
        self._session.flush()
        return len(tags)

    def insert_team_members(self, startup_id: uuid.UUID, members: Sequence[TeamMemberInput]) -> int:
        if not members:
            return 0
        self._session.add_all(
            [
                StartupTeamMember(
                    startup_id=startup_id,
                    member_id=member.member_id,
                    name=member.name,
                    job_title=member.job_title,
                    bio=member.bio,
                    avatar_url=member.avatar_url,
                    first_name=member.first_name,
                    last_name=member.last_name,
                    email=member.email,
                    twitter_url=member.twitter_url,
                    github_url=member.github_url,
                    facebook_url=member.facebook_url,
                    city=member.city,
                    country_name=member.country_name,
                    industry_name=member.industry_name,
                )
                for member in members
            ]
        )
        self._session.flush()
        return len(members)

    def insert_topics(self, startup_id: uuid.UUID, topics: Sequence[TopicInput]) -> int:
        if not topics:
            return 0
        self._session.add_all(
            [
                StartupTopic(
                    startup_id=startup_id,
                    topic_id=topic.topic_id,
                    topic_name=topic.topic_name,
                    topic_type=topic.topic_type,
                )
                for topic in topics
            ]
        )
        self._session.flush()
        return len(topics)

    def delete_all(self) -> int:
        """
        Remove every destination row, children first. Returns startups removed.
        """

        for model in (StartupTopic, StartupTeamMember, StartupTag, StartupExternalUrls):
            self._session.execute(delete(model))
        result = self._session.execute(delete(Startup))
        return int(result.rowcount or 0)
