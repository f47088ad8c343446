"""Typed persistence for knowledge items."""

import asyncio
import logging
from datetime import UTC, date, datetime
from typing import Any, cast

import pydantic

from context_engine.db.database import Database
from context_engine.db.queries import (
    get_item,
    increment_access_count,
    increment_reference_count,
    insert_item,
    items_between,
    list_items as select_items,
    next_item_id,
    update_item,
    update_status,
)
from context_engine.errors import ItemNotFound, ValidationError
from context_engine.graph.builder import GraphBuilder
from context_engine.models.item import (
    ITEM_MODELS,
    Decision,
    Incident,
    ItemType,
    KnowledgeItem,
    MeetingRecord,
    Snapshot,
    format_item_id,
)
from context_engine.search.embeddings import EmbeddingProvider
from context_engine.store.tags import auto_tags

logger = logging.getLogger(__name__)

SNAPSHOT_TAG = "git-snapshot"


class KnowledgeStore:
    """Create, fetch and update knowledge items.

    Creation validates the payload, derives tags when none are given, embeds
    the item text, inserts the row and finally auto-links id references. The
    insert and its edges are not atomic as a unit.

    Ids are allocated and inserted under a lock, so concurrent creates of one
    type get distinct sequence numbers.
    """

    def __init__(
        self,
        db: Database,
        embedder: EmbeddingProvider,
        graph_builder: GraphBuilder | None = None,
    ) -> None:
        """Initialize with a database, an embedding provider and a graph builder."""
        self.db = db
        self.embedder = embedder
        self.graph = graph_builder or GraphBuilder(db)
        self._id_lock = asyncio.Lock()

    # -- creation --

    async def create_decision(
        self,
        title: str,
        decision: str,
        *,
        context: str | None = None,
        options_considered: dict[str, Any] | None = None,
        outcome: str | None = None,
        status: str = "active",
        item_date: date | None = None,
        supersedes: list[str] | None = None,
        author: str | None = None,
        stakeholders: list[str] | None = None,
        tags: list[str] | None = None,
    ) -> Decision:
        """Record an architecture decision."""
        item = await self._create(
            ItemType.DECISION,
            tags,
            title=title,
            decision=decision,
            context=context,
            options_considered=options_considered,
            outcome=outcome,
            status=status,
            item_date=item_date,
            supersedes=supersedes or [],
            author=author,
            stakeholders=stakeholders or [],
        )
        return cast(Decision, item)

    async def create_incident(
        self,
        title: str,
        root_cause: str,
        *,
        symptoms: str | None = None,
        resolution: str | None = None,
        severity: str | None = None,
        impact: str | None = None,
        prevention: list[str] | None = None,
        pattern: str | None = None,
        lessons_learned: str | None = None,
        status: str = "resolved",
        item_date: date | None = None,
        author: str | None = None,
        tags: list[str] | None = None,
    ) -> Incident:
        """Record an incident or post-mortem."""
        item = await self._create(
            ItemType.INCIDENT,
            tags,
            title=title,
            root_cause=root_cause,
            symptoms=symptoms,
            resolution=resolution,
            severity=severity,
            impact=impact,
            prevention=prevention or [],
            pattern=pattern,
            lessons_learned=lessons_learned,
            status=status,
            item_date=item_date,
            author=author,
        )
        return cast(Incident, item)

    async def create_meeting(
        self,
        title: str,
        decisions: dict[str, Any] | list[Any],
        *,
        attendees: list[str] | None = None,
        status: str = "active",
        item_date: date | None = None,
        tags: list[str] | None = None,
    ) -> MeetingRecord:
        """Record the decisions taken in a meeting."""
        item = await self._create(
            ItemType.MEETING,
            tags,
            title=title,
            decisions=decisions,
            attendees=attendees or [],
            status=status,
            item_date=item_date,
        )
        return cast(MeetingRecord, item)

    async def create_snapshot(
        self,
        commit_hash: str,
        message: str,
        *,
        author: str | None = None,
        item_date: date | None = None,
        tags: list[str] | None = None,
    ) -> Snapshot:
        """Record a code-change snapshot from a git commit."""
        item = await self._create(
            ItemType.SNAPSHOT,
            tags,
            title=message,
            commit_hash=commit_hash,
            message=message,
            author=author,
            item_date=item_date,
        )
        return cast(Snapshot, item)

    async def _create(
        self, item_type: ItemType, tags: list[str] | None, **fields: Any
    ) -> KnowledgeItem:
        now = datetime.now(UTC)
        if fields.get("item_date") is None:
            fields["item_date"] = now.date()

        # The id is not part of the embedding text, so validate and embed
        # under a placeholder and assign the real id just before the insert.
        item = _validate(
            item_type,
            {
                **fields,
                "id": format_item_id(item_type, 0),
                "item_type": item_type,
                "created_at": now,
                "updated_at": now,
            },
        )
        if tags is None:
            derived = auto_tags(_tag_source(item))
            if item_type is ItemType.SNAPSHOT:
                derived = [SNAPSHOT_TAG, *derived]
            tags = derived
        embedding = await self.embedder.embed(item.embedding_text)

        async with self._id_lock:
            item_id = await next_item_id(self.db, item_type)
            item = item.model_copy(
                update={"id": item_id, "tags": list(tags), "has_embedding": True}
            )
            await insert_item(self.db, item, embedding)
        logger.info("Created %s %s: %s", item_type.value, item.id, item.title)

        await self.graph.auto_link(item.id, item_type, item.embedding_text)
        return item

    # -- reads --

    async def find(self, item_id: str) -> KnowledgeItem | None:
        """Get an item by id, or None."""
        return await get_item(self.db, item_id)

    async def get(self, item_id: str) -> KnowledgeItem:
        """Get an item by id. Raises ItemNotFound."""
        item = await get_item(self.db, item_id)
        if item is None:
            raise ItemNotFound(item_id)
        return item

    async def list_items(
        self, item_type: ItemType | None = None, status: str | None = None
    ) -> list[KnowledgeItem]:
        """List items, newest first, optionally by type and status."""
        return await select_items(self.db, item_type, status)

    async def timeline(self, date_from: date, date_to: date) -> list[KnowledgeItem]:
        """All items dated within the inclusive range, in chronological order."""
        if date_from > date_to:
            raise ValidationError("date_from must not be after date_to")
        return await items_between(self.db, date_from, date_to)

    # -- updates --

    async def update_body(self, item_id: str, **changes: Any) -> KnowledgeItem:
        """Change body fields of an item and regenerate its embedding in full.

        New id references in the changed text are auto-linked.
        """
        existing = await self.get(item_id)
        protected = {"id", "item_type", "access_count_30d", "reference_count", "created_at"}
        bad = protected.intersection(changes)
        if bad:
            raise ValidationError(f"Cannot change {', '.join(sorted(bad))}")

        merged = {**existing.model_dump(), **changes}
        if existing.item_type is ItemType.SNAPSHOT and "message" in changes:
            merged["title"] = changes["message"]
        updated = _validate(existing.item_type, merged)

        embedding = await self.embedder.embed(updated.embedding_text)
        await update_item(self.db, updated, embedding)
        logger.info("Updated %s and re-embedded", item_id)

        await self.graph.auto_link(updated.id, updated.item_type, updated.embedding_text)
        return await self.get(item_id)

    async def update_status(self, item_id: str, status: str) -> KnowledgeItem:
        """Move an item to another status in its own vocabulary."""
        existing = await self.get(item_id)
        model = ITEM_MODELS[existing.item_type]
        if status not in model.STATUSES:
            raise ValidationError(
                f"invalid status '{status}' for {existing.item_type.value}"
                f" (expected one of: {', '.join(model.STATUSES)})"
            )
        await update_status(self.db, item_id, status)
        return existing.model_copy(update={"status": status})

    async def increment_access_count(self, item_id: str) -> None:
        """Count one retrieval of an item."""
        await increment_access_count(self.db, [item_id])

    async def increment_reference_count(self, item_id: str) -> None:
        """Count one inbound reference to an item."""
        await increment_reference_count(self.db, item_id)


def _validate(item_type: ItemType, fields: dict[str, Any]) -> KnowledgeItem:
    """Build the variant model, converting pydantic errors to ValidationError."""
    try:
        return ITEM_MODELS[item_type].model_validate(fields)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid {item_type.value}: {exc}") from exc


def _tag_source(item: KnowledgeItem) -> str:
    # Commit hashes are hex and would trip short keywords like "db"
    if isinstance(item, Snapshot):
        return item.message
    return item.embedding_text
