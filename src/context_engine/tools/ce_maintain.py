"""ce_maintain MCP tool: decay pass, status changes, timeline and stats."""

import json
import logging
from datetime import date
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_engine.db.queries import get_db_stats
from context_engine.decay.worker import DecayWorker
from context_engine.errors import ItemNotFound, ValidationError
from context_engine.store.knowledge_store import KnowledgeStore
from context_engine.tools.formatters import format_header, format_result_list

logger = logging.getLogger(__name__)

_ACTIONS = {"decay", "set_status", "timeline", "stats"}


async def run_decay(worker: DecayWorker) -> str:
    """Run one decay pass now."""
    report = await worker.run_decay_pass()
    line = f"Decay pass: scanned {report.scanned_count}, archived {report.archived_count}."
    if report.archived_ids:
        line += f" Archived: {', '.join(report.archived_ids)}"
    return line


async def run_set_status(store: KnowledgeStore, item_id: str | None, status: str | None) -> str:
    """Change an item's status."""
    if not item_id or not status:
        return "Error: set_status requires item_id and status."
    try:
        item = await store.update_status(item_id, status)
    except (ItemNotFound, ValidationError) as exc:
        return f"Error: {exc}"
    return f"{item.id} is now {item.status}."


async def run_timeline(store: KnowledgeStore, date_from: date | None, date_to: date | None) -> str:
    """Items in a date range, oldest first."""
    if date_from is None or date_to is None:
        return "Error: timeline requires date_from and date_to."
    try:
        items = await store.timeline(date_from, date_to)
    except ValidationError as exc:
        return f"Error: {exc}"
    lines = [
        f"{i.item_date} {format_header(i.id, i.item_type.value, i.title)} [{i.status}]"
        for i in items
    ]
    return format_result_list(lines)


def register_ce_maintain(mcp: FastMCP) -> None:
    """Register the ce_maintain tool with the MCP server."""

    @mcp.tool()
    async def ce_maintain(
        action: Annotated[
            str, Field(description="Action: decay, set_status, timeline, stats")
        ],
        item_id: Annotated[str | None, Field(description="For set_status")] = None,
        status: Annotated[str | None, Field(description="For set_status")] = None,
        date_from: Annotated[date | None, Field(description="For timeline")] = None,
        date_to: Annotated[date | None, Field(description="For timeline")] = None,
        ctx: Context | None = None,
    ) -> str:
        """Maintenance operations for the knowledge store.

        Actions:
        - decay: Run the archival pass now (it also runs on a daily schedule)
        - set_status: Move an item to another status (requires item_id, status)
        - timeline: Items dated between date_from and date_to
        - stats: Item counts by type/status and edge counts by type
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        if action not in _ACTIONS:
            return f"Unknown action '{action}'. Use: {', '.join(sorted(_ACTIONS))}"

        lifespan = ctx.lifespan_context
        if action == "decay":
            return await run_decay(lifespan["decay_worker"])
        elif action == "set_status":
            return await run_set_status(lifespan["store"], item_id, status)
        elif action == "timeline":
            return await run_timeline(lifespan["store"], date_from, date_to)
        return json.dumps(await get_db_stats(lifespan["db"]), indent=2)
