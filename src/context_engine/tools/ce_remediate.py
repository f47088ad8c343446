"""ce_remediate MCP tool: fixes for an error from past incidents."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from context_engine.db.database import Database
from context_engine.errors import EmbeddingUnavailable
from context_engine.remediation.advisor import DEFAULT_TOP_K, suggest_remediation
from context_engine.search.embeddings import EmbeddingProvider
from context_engine.tools.ce_bundle import embedding_error
from context_engine.tools.formatters import format_remediation

logger = logging.getLogger(__name__)


async def run_remediate(
    db: Database,
    embedder: EmbeddingProvider,
    error_message: str,
    stack_trace: str | None = None,
    pattern: str | None = None,
    top_k: int = DEFAULT_TOP_K,
    as_json: bool = False,
) -> str:
    """Suggest a remediation and render it as text or JSON."""
    if not error_message.strip():
        return "Error: error_message is required."
    try:
        remediation = await suggest_remediation(
            db, embedder, error_message, stack_trace, pattern, top_k
        )
    except EmbeddingUnavailable as exc:
        logger.warning("Remediation aborted: %s", exc)
        return embedding_error(exc)
    if as_json:
        return remediation.model_dump_json()
    return format_remediation(remediation)


def register_ce_remediate(mcp: FastMCP) -> None:
    """Register the ce_remediate tool with the MCP server."""

    @mcp.tool()
    async def ce_remediate(
        error_message: Annotated[str, Field(description="The error message to remediate")],
        stack_trace: Annotated[str | None, Field(description="Optional stack trace")] = None,
        pattern: Annotated[
            str | None,
            Field(description="Override the detected pattern, e.g. database_error"),
        ] = None,
        top_k: Annotated[
            int, Field(description="Max similar incidents to return", ge=0, le=50)
        ] = DEFAULT_TOP_K,
        as_json: Annotated[bool, Field(description="Return the result as JSON")] = False,
        ctx: Context | None = None,
    ) -> str:
        """Find resolved incidents similar to an error and suggest next steps.

        The error is classified into a failure pattern (database_error,
        connection_error, ...) that sets its severity and the suggested
        actions. Resolved incidents with the same pattern are ranked by
        similarity and returned with their root cause and resolution.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        lifespan = ctx.lifespan_context
        return await run_remediate(
            lifespan["db"],
            lifespan["embedder"],
            error_message,
            stack_trace,
            pattern,
            top_k,
            as_json,
        )
