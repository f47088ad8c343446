"""ce_related, ce_graph and ce_link MCP tools: relationship graph access."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_engine.db.database import Database
from context_engine.db.queries import get_item
from context_engine.graph.builder import GraphBuilder
from context_engine.graph.queries import export_graph, find_related
from context_engine.models.item import ItemType
from context_engine.tools.formatters import format_related

logger = logging.getLogger(__name__)


async def run_related(db: Database, item_id: str, depth: int = 2) -> str:
    """Traverse the graph from an item id and format the neighbours."""
    try:
        item_type = ItemType.from_id(item_id)
    except ValueError as exc:
        return f"Error: {exc}"
    related = await find_related(db, item_id, item_type, depth=depth)
    return format_related(item_id, related)


async def run_link(
    db: Database,
    from_id: str,
    to_id: str,
    relationship_type: str,
    strength: float = 1.0,
) -> str:
    """Create an explicit edge between two existing items."""
    for item_id in (from_id, to_id):
        if await get_item(db, item_id) is None:
            return f"Error: item {item_id} not found"
    created = await GraphBuilder(db).create_relationship(
        from_id,
        ItemType.from_id(from_id),
        to_id,
        ItemType.from_id(to_id),
        relationship_type,
        strength,
    )
    if not created:
        return f"Edge {from_id} -[{relationship_type}]-> {to_id} already exists."
    return f"Linked {from_id} -[{relationship_type}]-> {to_id}."


def register_ce_graph(mcp: FastMCP) -> None:
    """Register the graph tools with the MCP server."""

    @mcp.tool()
    async def ce_related(
        item_id: Annotated[str, Field(description="Starting item id, e.g. ADR-001")],
        depth: Annotated[int, Field(description="Maximum hops (1-4)", ge=1, le=4)] = 2,
        ctx: Context | None = None,
    ) -> str:
        """List items connected to an item through the relationship graph."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        return await run_related(ctx.lifespan_context["db"], item_id, depth)

    @mcp.tool()
    async def ce_graph(
        include_archived: Annotated[bool, Field(description="Include archived items")] = False,
        max_nodes: Annotated[
            int, Field(description="Maximum nodes to export", ge=1, le=10000)
        ] = 1000,
        ctx: Context | None = None,
    ) -> str:
        """Export the knowledge graph as JSON nodes and edges for visualization."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        graph = await export_graph(
            ctx.lifespan_context["db"], include_archived=include_archived, max_nodes=max_nodes
        )
        return graph.model_dump_json()

    @mcp.tool()
    async def ce_link(
        from_id: Annotated[str, Field(description="Source item id")],
        to_id: Annotated[str, Field(description="Target item id")],
        relationship_type: Annotated[
            str,
            Field(description="Edge type: references, caused_by, supersedes, related_to, ..."),
        ] = "related_to",
        strength: Annotated[float, Field(description="Edge weight", ge=0.0, le=1.0)] = 1.0,
        ctx: Context | None = None,
    ) -> str:
        """Create a directed relationship between two knowledge items."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        return await run_link(
            ctx.lifespan_context["db"], from_id, to_id, relationship_type, strength
        )
