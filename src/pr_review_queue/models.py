"""Typed records for pull requests, tickets, dependencies and priorities."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping

TICKET_KEY_RE = re.compile(r"([A-Z]+-\d+)")


class MalformedRecordError(ValueError):
    """Raised when a PR or ticket record is missing a required field."""


class PriorityReason(str, Enum):
    NO_TICKET = "No ticket found"
    NO_FIX_VERSION = "No fix version assigned"
    MISSING_RELEASE_DATE = "Fix version missing release date"
    SCHEDULED = "Scheduled release"


EXCEPTION_REASONS = (
    PriorityReason.NO_TICKET,
    PriorityReason.NO_FIX_VERSION,
    PriorityReason.MISSING_RELEASE_DATE,
)


def extract_ticket_key(*texts: str | None) -> str | None:
    """Return the first ``ABC-123`` style key found across ``texts``."""
    joined = " ".join(text for text in texts if text)
    match = TICKET_KEY_RE.search(joined)
    return match.group(1) if match else None


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"not a timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Release dates come as "2025-01-01" but tolerate full timestamps too.
    return date.fromisoformat(str(value).strip()[:10])


def _require(record: Mapping[str, Any], *keys: str, kind: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    raise MalformedRecordError(f"{kind} record is missing required field '{keys[0]}'")


def _person_name(value: Any) -> str:
    if isinstance(value, Mapping):
        for key in ("display_name", "name", "login", "nickname"):
            if value.get(key):
                return str(value[key])
        return ""
    return str(value) if value else ""


@dataclass(frozen=True)
class Participant:
    name: str
    is_reviewer: bool
    approved: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Participant":
        if "reviewerName" in record:
            name = str(record["reviewerName"])
            is_reviewer = bool(record.get("isApprovingRole", False))
        else:
            name = _person_name(record.get("user")) or _person_name(
                record.get("display_name") or record.get("name")
            )
            is_reviewer = str(record.get("role", "")).upper() == "REVIEWER"
        return cls(name=name, is_reviewer=is_reviewer, approved=bool(record.get("approved", False)))


@dataclass(frozen=True)
class PullRequest:
    id: int
    title: str
    author: str
    source_branch: str
    target_branch: str
    created_at: datetime
    draft: bool = False
    participants: tuple[Participant, ...] = ()

    @property
    def ticket_key(self) -> str | None:
        return extract_ticket_key(self.title, self.source_branch)

    @property
    def label(self) -> str:
        """Ticket key when one is linked, otherwise ``PR#<id>``."""
        return self.ticket_key or f"PR#{self.id}"

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PullRequest":
        """Build a PR from either the snake_case or the GitHub ingest shape."""
        if not isinstance(record, Mapping):
            raise MalformedRecordError(f"PR record must be a mapping, got {type(record).__name__}")

        raw_id = _require(record, "id", "number", kind="PR")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise MalformedRecordError(f"PR id must be an integer, got {raw_id!r}")

        title = _require(record, "title", kind="PR")
        source = _require(record, "source_branch", "headRefName", kind="PR")
        target = _require(record, "target_branch", "baseRefName", kind="PR")
        created_raw = _require(record, "created_at", "createdAt", kind="PR")
        try:
            created_at = parse_timestamp(created_raw)
        except ValueError as exc:
            raise MalformedRecordError(f"PR #{raw_id} has an invalid created_at: {exc}") from exc

        participants = tuple(
            Participant.from_record(p)
            for p in record.get("participants") or []
            if isinstance(p, Mapping)
        )
        return cls(
            id=raw_id,
            title=str(title),
            author=_person_name(record.get("author")),
            source_branch=str(source),
            target_branch=str(target),
            created_at=created_at,
            draft=bool(record.get("draft", record.get("isDraft", False))),
            participants=participants,
        )


@dataclass(frozen=True)
class FixVersion:
    name: str
    released: bool = False
    release_date: date | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "FixVersion":
        name = _require(record, "name", kind="fix version")
        try:
            release_date = parse_date(record.get("release_date", record.get("releaseDate")))
        except ValueError as exc:
            raise MalformedRecordError(f"fix version {name!r} has an invalid release date") from exc
        return cls(name=str(name), released=bool(record.get("released", False)), release_date=release_date)


@dataclass(frozen=True)
class Ticket:
    key: str
    summary: str = ""
    status: str = "Unknown"
    fix_versions: tuple[FixVersion, ...] = ()
    issue_type: str | None = None

    @property
    def unreleased_versions(self) -> list[FixVersion]:
        return [v for v in self.fix_versions if not v.released]

    @property
    def has_version_without_date(self) -> bool:
        return any(v.release_date is None for v in self.unreleased_versions)

    @property
    def earliest_release(self) -> FixVersion | None:
        """Unreleased, dated fix version shipping first (list order breaks ties)."""
        dated = [v for v in self.unreleased_versions if v.release_date is not None]
        if not dated:
            return None
        return min(dated, key=lambda v: v.release_date)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Ticket":
        """Accept the flat shape or the raw tracker ``{"key", "fields": {...}}`` shape."""
        if not isinstance(record, Mapping):
            raise MalformedRecordError(f"ticket record must be a mapping, got {type(record).__name__}")
        key = _require(record, "key", kind="ticket")
        fields = record.get("fields") if isinstance(record.get("fields"), Mapping) else record

        status = fields.get("status")
        if isinstance(status, Mapping):
            status = status.get("name")
        issue_type = fields.get("issue_type", fields.get("issuetype"))
        if isinstance(issue_type, Mapping):
            issue_type = issue_type.get("name")

        versions = fields.get("fix_versions", fields.get("fixVersions")) or []
        return cls(
            key=str(key),
            summary=str(fields.get("summary") or ""),
            status=str(status or "Unknown"),
            fix_versions=tuple(FixVersion.from_record(v) for v in versions if isinstance(v, Mapping)),
            issue_type=str(issue_type) if issue_type else None,
        )


@dataclass
class DependencyRecord:
    pr: PullRequest
    depends_on: list[int] = field(default_factory=list)
    blocked_by: list[int] = field(default_factory=list)
    review_order: int = 0
    is_blocked: bool = False


@dataclass(frozen=True)
class PriorityScore:
    score: int
    reason: PriorityReason
    pr_age_days: int
    release_date: date | None = None
    days_until_release: int | None = None
    fix_version: str | None = None


@dataclass
class ReviewQueueEntry:
    pr: PullRequest
    priority: PriorityScore
    ticket: Ticket | None = None
    dependency: DependencyRecord | None = None
