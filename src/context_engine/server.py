"""FastMCP server with lifespan management and tool registration."""

import asyncio
import contextlib
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from context_engine.config import get_db_path, get_decay_interval_hours, get_log_level
from context_engine.db.connection import create_connection
from context_engine.decay.worker import DecayWorker
from context_engine.events.processor import EventProcessor
from context_engine.graph.builder import GraphBuilder
from context_engine.search.embeddings import OllamaEmbedder
from context_engine.store.knowledge_store import KnowledgeStore
from context_engine.tools.ce_bundle import register_ce_bundle
from context_engine.tools.ce_event import register_ce_event
from context_engine.tools.ce_graph import register_ce_graph
from context_engine.tools.ce_maintain import register_ce_maintain
from context_engine.tools.ce_record import register_ce_record
from context_engine.tools.ce_remediate import register_ce_remediate
from context_engine.tools.ce_search import register_ce_search


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage the database, the shared embedder and the decay schedule."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path)

    embedder = OllamaEmbedder()
    graph_builder = GraphBuilder(db)
    store = KnowledgeStore(db, embedder, graph_builder)
    decay_worker = DecayWorker(db)

    # Readiness check only logs; requests fail with EmbeddingUnavailable until ready
    if await embedder.is_available():
        logger.info("Embedding model %s available", embedder.model)
    else:
        logger.warning(
            "Embedding model %s unavailable, search and capture will fail until it is pulled",
            embedder.model,
        )

    decay_task: asyncio.Task[None] | None = None
    interval = get_decay_interval_hours()
    if interval > 0:
        decay_task = asyncio.create_task(decay_worker.run_forever(interval))
        logger.info("Decay pass scheduled every %.1f hours", interval)

    try:
        yield {
            "db": db,
            "store": store,
            "embedder": embedder,
            "graph_builder": graph_builder,
            "decay_worker": decay_worker,
            "events": EventProcessor(store),
        }
    finally:
        if decay_task is not None:
            decay_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await decay_task
        await embedder.close()
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
This server holds organizational memory: architecture decisions (ADR-xxx), \
incidents (FAIL-xxx), meeting outcomes (MEET-xxx) and code-change snapshots \
(SNAP-xxx). It returns small, ranked context bundles.

QUERYING:
- ce_bundle: Start here. Ranked, token-budgeted context for a task, split \
into key decisions, known issues and recent changes.
- ce_search: Similarity search with tag, date and type filters.
- ce_related: Items connected to a given item through the graph.
- ce_get: Full details by id.
- ce_graph: Whole graph as JSON for visualization.

CAPTURING:
- ce_record: Record a decision, incident, meeting or snapshot. Mention other \
ids in the text (e.g. "caused by FAIL-003") and they are linked automatically.
- ce_link: Add an explicit typed edge (caused_by, supersedes, related_to).
- ce_event: Capture an error, deploy, metric breach or a batch of error \
logs from another application.

TROUBLESHOOTING:
- ce_remediate: Classify an error and list similar resolved incidents with \
their fixes, plus suggested next steps.

MAINTENANCE:
- ce_maintain: Run the decay pass, change status, list a timeline, show stats.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "context-engine",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_ce_bundle(mcp)
    register_ce_search(mcp)
    register_ce_graph(mcp)
    register_ce_record(mcp)
    register_ce_maintain(mcp)
    register_ce_event(mcp)
    register_ce_remediate(mcp)

    return mcp
