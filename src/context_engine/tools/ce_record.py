"""ce_record and ce_get MCP tools: capture and read knowledge items."""

import json
import logging
from datetime import date
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_engine.errors import EmbeddingUnavailable, ItemNotFound, ValidationError
from context_engine.models.item import ItemType, KnowledgeItem
from context_engine.store.knowledge_store import KnowledgeStore
from context_engine.tools.ce_bundle import embedding_error
from context_engine.tools.formatters import format_item_full, format_result_list

logger = logging.getLogger(__name__)

_MAX_IDS = 20

# Keyword fields accepted in ``fields`` per item type
_EXTRA_FIELDS: dict[ItemType, set[str]] = {
    ItemType.DECISION: {
        "context",
        "options_considered",
        "outcome",
        "status",
        "supersedes",
        "author",
        "stakeholders",
    },
    ItemType.INCIDENT: {
        "symptoms",
        "resolution",
        "severity",
        "impact",
        "prevention",
        "pattern",
        "lessons_learned",
        "status",
        "author",
    },
    ItemType.MEETING: {"attendees", "status"},
    ItemType.SNAPSHOT: {"commit_hash", "author"},
}


async def run_record(
    store: KnowledgeStore,
    item_type: ItemType,
    title: str,
    body: str,
    fields: dict[str, Any] | None = None,
    tags: list[str] | None = None,
    item_date: date | None = None,
) -> str:
    """Create one item; ``body`` fills the type's main text field."""
    extra = dict(fields or {})
    unknown = set(extra) - _EXTRA_FIELDS[item_type]
    if unknown:
        return f"Error: unsupported field(s) for {item_type.value}: {', '.join(sorted(unknown))}"
    try:
        item: KnowledgeItem
        if item_type is ItemType.DECISION:
            item = await store.create_decision(
                title, body, tags=tags, item_date=item_date, **extra
            )
        elif item_type is ItemType.INCIDENT:
            item = await store.create_incident(
                title, body, tags=tags, item_date=item_date, **extra
            )
        elif item_type is ItemType.MEETING:
            item = await store.create_meeting(
                title, _parse_decisions(body), tags=tags, item_date=item_date, **extra
            )
        else:
            commit_hash = extra.pop("commit_hash", None)
            if not commit_hash:
                return "Error: snapshots require fields.commit_hash"
            item = await store.create_snapshot(
                commit_hash, body, tags=tags, item_date=item_date, **extra
            )
    except ValidationError as exc:
        return f"Error: {exc}"
    except EmbeddingUnavailable as exc:
        return embedding_error(exc)

    return f"Recorded {item.id}\n\n{format_item_full(item)}"


async def run_get(store: KnowledgeStore, ids: list[str]) -> str:
    """Fetch items by id, counting each hit as an access."""
    if len(ids) > _MAX_IDS:
        return f"Error: Maximum {_MAX_IDS} IDs per request (got {len(ids)})."
    formatted: list[str] = []
    for item_id in ids:
        try:
            item = await store.get(item_id)
        except ItemNotFound:
            formatted.append(f"[{item_id}] not found")
            continue
        await store.increment_access_count(item_id)
        formatted.append(format_item_full(item))
    return format_result_list(formatted)


def _parse_decisions(body: str) -> dict[str, Any] | list[Any]:
    """Meeting decisions as JSON when possible, else a single summary entry."""
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return {"summary": body}
    if isinstance(parsed, dict | list):
        return parsed
    return {"summary": body}


def register_ce_record(mcp: FastMCP) -> None:
    """Register the ce_record and ce_get tools with the MCP server."""

    @mcp.tool()
    async def ce_record(
        item_type: Annotated[
            ItemType, Field(description="decision, incident, meeting or snapshot")
        ],
        title: Annotated[
            str, Field(description="Short title (snapshots are titled by their commit message)")
        ],
        body: Annotated[
            str,
            Field(
                description=(
                    "Main text: the decision, the incident root cause, the meeting"
                    " decisions (JSON) or the commit message"
                )
            ),
        ],
        fields: Annotated[
            dict[str, Any] | None,
            Field(
                description=(
                    'Extra type-specific fields, e.g. {"context": "..."} for decisions,'
                    ' {"symptoms": "...", "severity": "high"} for incidents,'
                    ' {"commit_hash": "abc123"} for snapshots'
                )
            ),
        ] = None,
        tags: Annotated[
            list[str] | None, Field(description="Tags; derived from the text when omitted")
        ] = None,
        item_date: Annotated[
            date | None, Field(description="Item date (defaults to today)")
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Record a decision, incident, meeting outcome or code-change snapshot.

        Mentions of other item ids (ADR-001, FAIL-042, ...) in the text are
        linked automatically.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        store: KnowledgeStore = ctx.lifespan_context["store"]
        return await run_record(store, item_type, title, body, fields, tags, item_date)

    @mcp.tool()
    async def ce_get(
        item_id: Annotated[
            str | list[str], Field(description="Single item id or list of ids (max 20)")
        ],
        ctx: Context | None = None,
    ) -> str:
        """Retrieve full details for one or more knowledge items by id."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        ids = [item_id] if isinstance(item_id, str) else list(item_id)
        return await run_get(ctx.lifespan_context["store"], ids)
