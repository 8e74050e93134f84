"""
app/domain/startup_record.py

Typed view over one raw startup record from the source catalog.

Raw records are loosely structured JSON; parsing tolerates missing and
null sections and only requires the natural key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

EXTERNAL_URL_FIELDS: tuple[str, ...] = (
    "homepage",
    "angellist",
    "crunchbase",
    "instagram",
    "twitter",
    "facebook",
    "linkedin",
    "youtube",
    "alternative_website",
)

_LOGO_PREFERENCE: tuple[str, ...] = ("medium", "large", "original")


class RecordParseError(ValueError):
    """Raised when a raw record cannot be turned into a StartupRecord."""


@dataclass(frozen=True)
class TeamMemberInput:
    member_id: str
    name: str
    job_title: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    twitter_url: str | None = None
    github_url: str | None = None
    facebook_url: str | None = None
    city: str | None = None
    country_name: str | None = None
    industry_name: str | None = None


@dataclass(frozen=True)
class TopicInput:
    topic_id: str
    topic_name: str
    topic_type: str


@dataclass(frozen=True)
class StartupRecord:
    company_id: str
    name: str
    city: str | None = None
    province: str | None = None
    country: str | None = None
    industry: str | None = None
    funding_tier: str | None = None
    elevator_pitch: str = ""
    exhibition_date: str | None = None
    fundraising: bool = False
    meet_investors: bool = False
    startup_women_founder: bool = False
    startup_black_founder: bool = False
    startup_indigenous_founder: bool = False
    endorsed_by: str | None = None
    logo_url: str | None = None
    external_urls: dict[str, str | None] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    team_members: list[TeamMemberInput] = field(default_factory=list)
    offering_topics: list[TopicInput] = field(default_factory=list)
    seeking_topics: list[TopicInput] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "StartupRecord":
        if not isinstance(raw, Mapping):
            raise RecordParseError(f"Record must be an object, got {type(raw).__name__}.")
        company_id = _text(raw.get("company_id"))
        if not company_id:
            raise RecordParseError("Record has no company_id.")

        attendances = _attendances(raw.get("attendance_ids"))

        return cls(
            company_id=company_id,
            name=_text(raw.get("name")) or "",
            city=_text(raw.get("city")),
            province=_text(raw.get("province")),
            country=_text(raw.get("country")),
            industry=_text(raw.get("industry")),
            funding_tier=_text(raw.get("funding_tier")),
            elevator_pitch=_text(raw.get("elevator_pitch")) or "",
            exhibition_date=_text(raw.get("exhibition_date")),
            fundraising=bool(raw.get("fundraising")),
            meet_investors=bool(raw.get("meet_investors")),
            startup_women_founder=bool(raw.get("startup_women_founder")),
            startup_black_founder=bool(raw.get("startup_black_founder")),
            startup_indigenous_founder=bool(raw.get("startup_indigenous_founder")),
            endorsed_by=_text(raw.get("endorsed_by")),
            logo_url=_logo_url(raw.get("logo_urls")),
            external_urls=_external_urls(raw.get("external_urls")),
            tags=_tags(raw.get("tags")),
            team_members=_team_members(attendances),
            offering_topics=_topics(attendances, "offeringTopics", "offering"),
            seeking_topics=_topics(attendances, "seekingTopics", "seeking"),
        )

    @property
    def has_external_urls(self) -> bool:
        return any(self.external_urls.values())


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _edges(connection: Any) -> list[Mapping[str, Any]]:
    edges = _mapping(connection).get("edges")
    if not isinstance(edges, list):
        return []
    nodes: list[Mapping[str, Any]] = []
    for edge in edges:
        node = _mapping(edge).get("node")
        if isinstance(node, Mapping):
            nodes.append(node)
    return nodes


def _attendances(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    found: list[Mapping[str, Any]] = []
    for item in value:
        attendance = _mapping(_mapping(_mapping(item).get("data")).get("attendance"))
        if attendance:
            found.append(attendance)
    return found


def _logo_url(value: Any) -> str | None:
    logos = _mapping(value)
    for size in _LOGO_PREFERENCE:
        url = _text(logos.get(size))
        if url:
            return url
    return None


def _external_urls(value: Any) -> dict[str, str | None]:
    urls = _mapping(value)
    return {name: _text(urls.get(name)) for name in EXTERNAL_URL_FIELDS}


def _tags(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: dict[str, None] = {}
    for tag in value:
        text = _text(tag)
        if text:
            seen.setdefault(text, None)
    return list(seen)


def _team_members(attendances: list[Mapping[str, Any]]) -> list[TeamMemberInput]:
    members: dict[str, TeamMemberInput] = {}
    position = 0
    for attendance in attendances:
        exhibitor = _mapping(attendance.get("exhibitor"))
        for node in _edges(exhibitor.get("team")):
            member_id = _text(node.get("id")) or f"generated-{position}"
            position += 1
            if member_id in members:
                continue
            members[member_id] = TeamMemberInput(
                member_id=member_id,
                name=_text(node.get("name")) or "",
                job_title=_text(node.get("jobTitle")) or _text(node.get("role")),
                bio=_text(node.get("bio")),
                avatar_url=_text(node.get("avatarUrl")),
                first_name=_text(node.get("firstName")),
                last_name=_text(node.get("lastName")),
                email=_text(node.get("email")),
                twitter_url=_text(node.get("twitterUrl")),
                github_url=_text(node.get("githubUrl")),
                facebook_url=_text(node.get("facebookUrl")),
                city=_text(node.get("city")),
                country_name=_text(_mapping(node.get("country")).get("name")),
                industry_name=_text(_mapping(node.get("industry")).get("name")),
            )
    return list(members.values())


def _topics(attendances: list[Mapping[str, Any]], key: str, topic_type: str) -> list[TopicInput]:
    topics: dict[str, TopicInput] = {}
    position = 0
    for attendance in attendances:
        for node in _edges(attendance.get(key)):
            name = _text(node.get("name"))
            if not name:
                continue
            topic_id = _text(node.get("id")) or f"generated-{topic_type}-{position}"
            position += 1
            topics.setdefault(
                topic_id,
                TopicInput(topic_id=topic_id, topic_name=name, topic_type=topic_type),
            )
    return list(topics.values())
