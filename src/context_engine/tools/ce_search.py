"""ce_search MCP tool: filtered semantic search."""

import logging
from datetime import date
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_engine.db.database import Database
from context_engine.errors import EmbeddingUnavailable
from context_engine.models.item import ItemType
from context_engine.models.search import SearchFilters
from context_engine.search.embeddings import EmbeddingProvider
from context_engine.search.semantic import filtered_search
from context_engine.tools.ce_bundle import embedding_error
from context_engine.tools.formatters import format_result_list, format_scored_item

logger = logging.getLogger(__name__)


async def run_search(
    db: Database,
    embedder: EmbeddingProvider,
    query: str,
    filters: SearchFilters,
) -> str:
    """Run a filtered search and format the hits."""
    try:
        results = await filtered_search(db, embedder, query, filters)
    except EmbeddingUnavailable as exc:
        return embedding_error(exc)
    return format_result_list([format_scored_item(r) for r in results])


def register_ce_search(mcp: FastMCP) -> None:
    """Register the ce_search tool with the MCP server."""

    @mcp.tool()
    async def ce_search(
        query: Annotated[str, Field(description="Search query (natural language)")],
        tags: Annotated[
            list[str] | None, Field(description="Keep items with any of these tags")
        ] = None,
        date_from: Annotated[
            date | None, Field(description="Earliest item date (inclusive)")
        ] = None,
        date_to: Annotated[date | None, Field(description="Latest item date (inclusive)")] = None,
        types: Annotated[
            list[ItemType] | None,
            Field(description="Item types to search: decision, incident, meeting, snapshot"),
        ] = None,
        top_k: Annotated[int, Field(description="Maximum results (1-200)", ge=1, le=200)] = 20,
        ctx: Context | None = None,
    ) -> str:
        """Search knowledge items by semantic similarity.

        Filters only remove results; ordering stays by similarity. Archived
        items are never returned. For a ranked, budgeted bundle use ce_bundle.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        filters = SearchFilters(
            tags=tags or [], date_from=date_from, date_to=date_to, types=types, top_k=top_k
        )
        lifespan = ctx.lifespan_context
        return await run_search(lifespan["db"], lifespan["embedder"], query, filters)
