"""Knowledge item models.

Four variants share one base shape. Each variant names its own body fields,
status vocabulary, bundle content and embedding text.
"""

import json
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from enum import StrEnum
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field, field_validator


class ItemType(StrEnum):
    """Closed set of knowledge item kinds."""

    DECISION = "decision"
    INCIDENT = "incident"
    MEETING = "meeting"
    SNAPSHOT = "snapshot"

    @property
    def prefix(self) -> str:
        """ID prefix used for this type (``ADR``, ``FAIL``, ...)."""
        return _PREFIXES[self]

    @classmethod
    def from_prefix(cls, prefix: str) -> "ItemType":
        """Map an ID prefix back to its item type."""
        for item_type, known in _PREFIXES.items():
            if known == prefix.upper():
                return item_type
        raise ValueError(f"Unknown item prefix: {prefix}")

    @classmethod
    def from_id(cls, item_id: str) -> "ItemType":
        """Infer the item type from an ID such as ``FAIL-042``."""
        match = ITEM_ID_RE.fullmatch(item_id)
        if match is None:
            raise ValueError(f"Malformed item id: {item_id}")
        return cls.from_prefix(match.group(1))


_PREFIXES: dict[ItemType, str] = {
    ItemType.DECISION: "ADR",
    ItemType.INCIDENT: "FAIL",
    ItemType.MEETING: "MEET",
    ItemType.SNAPSHOT: "SNAP",
}

# Matches any known item id, e.g. ADR-001 or SNAP-1234. No leading word
# boundary: "XADR-4" still mentions ADR-4.
ITEM_ID_RE = re.compile(r"(ADR|FAIL|MEET|SNAP)-(\d+)\b")

ARCHIVED = "archived"


def format_item_id(item_type: ItemType, seq: int) -> str:
    """Format an item id with a zero-padded sequence number."""
    return f"{item_type.prefix}-{seq:03d}"


class KnowledgeItem(BaseModel, ABC):
    """Common shape of every knowledge item.

    Abstract: only the four variants below are ever instantiated.
    """

    STATUSES: ClassVar[tuple[str, ...]] = ()
    BODY_FIELDS: ClassVar[tuple[str, ...]] = ()

    id: str
    item_type: ItemType
    title: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)
    status: str
    item_date: date | None = None
    access_count_30d: int = Field(default=0, ge=0)
    reference_count: int = Field(default=0, ge=0)
    has_embedding: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status")
    @classmethod
    def _check_status(cls, value: str) -> str:
        if cls.STATUSES and value not in cls.STATUSES:
            allowed = ", ".join(cls.STATUSES)
            raise ValueError(f"invalid status '{value}' (expected one of: {allowed})")
        return value

    @property
    def is_archived(self) -> bool:
        """True once the decay worker has archived the item."""
        return self.status == ARCHIVED

    @property
    @abstractmethod
    def content(self) -> str:
        """Text returned to callers in bundles and search results."""

    @property
    @abstractmethod
    def embedding_text(self) -> str:
        """Text used for generating embeddings."""

    def body(self) -> dict[str, Any]:
        """Type-specific fields, JSON-ready."""
        return self.model_dump(mode="json", include=set(self.BODY_FIELDS))


class Decision(KnowledgeItem):
    """An architecture decision record (ADR)."""

    STATUSES: ClassVar[tuple[str, ...]] = ("proposed", "active", "superseded", ARCHIVED)
    BODY_FIELDS: ClassVar[tuple[str, ...]] = (
        "decision",
        "context",
        "options_considered",
        "outcome",
        "supersedes",
        "superseded_by",
        "author",
        "stakeholders",
    )

    item_type: Literal[ItemType.DECISION] = ItemType.DECISION
    status: str = "active"
    decision: str = Field(min_length=1)
    context: str | None = None
    options_considered: dict[str, Any] | None = None
    outcome: str | None = None
    supersedes: list[str] = Field(default_factory=list)
    superseded_by: str | None = None
    author: str | None = None
    stakeholders: list[str] = Field(default_factory=list)

    @property
    def content(self) -> str:
        """The decision text."""
        return self.decision

    @property
    def embedding_text(self) -> str:
        """Title, decision and context."""
        return f"{self.title} {self.decision} {self.context or ''}".strip()


class Incident(KnowledgeItem):
    """A failure record: outage, bug or post-mortem."""

    STATUSES: ClassVar[tuple[str, ...]] = ("investigating", "resolved", "recurring", ARCHIVED)
    SEVERITIES: ClassVar[tuple[str, ...]] = ("low", "medium", "high", "critical")
    BODY_FIELDS: ClassVar[tuple[str, ...]] = (
        "severity",
        "root_cause",
        "symptoms",
        "impact",
        "resolution",
        "prevention",
        "pattern",
        "lessons_learned",
        "author",
    )

    item_type: Literal[ItemType.INCIDENT] = ItemType.INCIDENT
    status: str = "resolved"
    severity: str | None = None
    root_cause: str = Field(min_length=1)
    symptoms: str | None = None
    impact: str | None = None
    resolution: str | None = None
    prevention: list[str] = Field(default_factory=list)
    pattern: str | None = None
    lessons_learned: str | None = None
    author: str | None = None

    @field_validator("severity")
    @classmethod
    def _check_severity(cls, value: str | None) -> str | None:
        if value is not None and value not in cls.SEVERITIES:
            raise ValueError(f"invalid severity '{value}'")
        return value

    @property
    def content(self) -> str:
        """The root cause."""
        return self.root_cause

    @property
    def embedding_text(self) -> str:
        """Title, root cause, symptoms and resolution."""
        parts = [self.title, self.root_cause, self.symptoms or "", self.resolution or ""]
        return " ".join(p for p in parts if p)


class MeetingRecord(KnowledgeItem):
    """Outcome of a meeting as a structured set of decisions."""

    STATUSES: ClassVar[tuple[str, ...]] = ("active", "completed", "cancelled", ARCHIVED)
    BODY_FIELDS: ClassVar[tuple[str, ...]] = ("decisions", "attendees")

    item_type: Literal[ItemType.MEETING] = ItemType.MEETING
    status: str = "active"
    decisions: dict[str, Any] | list[Any]
    attendees: list[str] = Field(default_factory=list)

    @property
    def content(self) -> str:
        """Decisions serialized as JSON."""
        return json.dumps(self.decisions)

    @property
    def embedding_text(self) -> str:
        """Meeting title and serialized decisions."""
        return f"{self.title} {self.content}"


class Snapshot(KnowledgeItem):
    """A code-change snapshot taken from a git commit."""

    STATUSES: ClassVar[tuple[str, ...]] = ("active", ARCHIVED)
    BODY_FIELDS: ClassVar[tuple[str, ...]] = ("commit_hash", "author", "message")

    item_type: Literal[ItemType.SNAPSHOT] = ItemType.SNAPSHOT
    status: str = "active"
    commit_hash: str = Field(min_length=1)
    author: str | None = None
    message: str = Field(min_length=1)

    @property
    def content(self) -> str:
        """The commit message."""
        return self.message

    @property
    def embedding_text(self) -> str:
        """Commit message and hash."""
        return f"{self.message} {self.commit_hash}"


AnyItem = Decision | Incident | MeetingRecord | Snapshot

ITEM_MODELS: dict[ItemType, type[KnowledgeItem]] = {
    ItemType.DECISION: Decision,
    ItemType.INCIDENT: Incident,
    ItemType.MEETING: MeetingRecord,
    ItemType.SNAPSHOT: Snapshot,
}
