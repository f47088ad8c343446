"""ce_bundle MCP tool: token-budgeted context bundles."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_engine.bundle.bundler import bundle_context
from context_engine.db.database import Database
from context_engine.errors import EmbeddingUnavailable
from context_engine.search.embeddings import EmbeddingProvider
from context_engine.tools.formatters import format_bundle

logger = logging.getLogger(__name__)


def embedding_error(exc: EmbeddingUnavailable) -> str:
    """Tool-facing message for an embedding failure."""
    return f"Error: embedding model unavailable ({exc}). Retry once the model has loaded."


async def run_bundle(
    db: Database,
    embedder: EmbeddingProvider,
    query: str,
    max_tokens: int = 4000,
    domains: list[str] | None = None,
    as_json: bool = False,
) -> str:
    """Build a bundle and render it as text or JSON."""
    try:
        bundle = await bundle_context(db, embedder, query, max_tokens=max_tokens, domains=domains)
    except EmbeddingUnavailable as exc:
        logger.warning("Bundle aborted: %s", exc)
        return embedding_error(exc)
    if as_json:
        return bundle.model_dump_json()
    return format_bundle(bundle)


def register_ce_bundle(mcp: FastMCP) -> None:
    """Register the ce_bundle tool with the MCP server."""

    @mcp.tool()
    async def ce_bundle(
        query: Annotated[str, Field(description="What you are working on, in natural language")],
        max_tokens: Annotated[
            int, Field(description="Approximate token budget for the bundle", ge=0)
        ] = 4000,
        domains: Annotated[
            list[str] | None,
            Field(description="Only include items tagged with one of these domains"),
        ] = None,
        as_json: Annotated[bool, Field(description="Return the bundle as JSON")] = False,
        ctx: Context | None = None,
    ) -> str:
        """Get the most relevant organizational context for a task.

        Combines semantic search with one-hop graph expansion, ranks by
        relevance, recency and importance, and packs the result into the token
        budget as key decisions, known issues and recent changes.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        return await run_bundle(
            lifespan["db"], lifespan["embedder"], query, max_tokens, domains, as_json
        )
