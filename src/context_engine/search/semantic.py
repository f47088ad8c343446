"""Semantic similarity search across item types."""

import logging

from context_engine.db.database import Database
from context_engine.db.queries import nearest_items
from context_engine.models.item import ItemType
from context_engine.models.search import ScoredItem, SearchFilters
from context_engine.search.embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 20


async def semantic_search(
    db: Database,
    embedder: EmbeddingProvider,
    query: str,
    top_k: int = DEFAULT_TOP_K,
    types: list[ItemType] | None = None,
) -> list[ScoredItem]:
    """Find the items most similar to ``query``.

    Each requested type contributes its ``top_k`` nearest non-archived items;
    the merged list is sorted by similarity (stable, so ties keep per-type
    order) and truncated to ``top_k``. Raises ``EmbeddingUnavailable`` if the
    query cannot be embedded.
    """
    if top_k <= 0:
        return []
    search_types = types if types else list(ItemType)

    query_embedding = await embedder.embed(query)

    results: list[ScoredItem] = []
    for item_type in search_types:
        for item, distance in await nearest_items(db, query_embedding, item_type, limit=top_k):
            results.append(
                ScoredItem(
                    id=item.id,
                    item_type=item.item_type,
                    title=item.title,
                    content=item.content,
                    tags=item.tags,
                    item_date=item.item_date,
                    similarity=1.0 - distance,
                )
            )

    results.sort(key=lambda r: r.similarity, reverse=True)
    logger.debug("Semantic search %r matched %d items", query, len(results))
    return results[:top_k]


async def filtered_search(
    db: Database,
    embedder: EmbeddingProvider,
    query: str,
    filters: SearchFilters | None = None,
) -> list[ScoredItem]:
    """Semantic search followed by tag and date post-filters.

    Filtering only removes results; it never re-ranks them.
    """
    filters = filters or SearchFilters()
    results = await semantic_search(
        db, embedder, query, top_k=filters.top_k, types=filters.types
    )

    if filters.tags:
        wanted = set(filters.tags)
        results = [r for r in results if wanted.intersection(r.tags)]

    if filters.date_from is not None or filters.date_to is not None:
        results = [r for r in results if _in_range(r, filters)]

    return results


def _in_range(result: ScoredItem, filters: SearchFilters) -> bool:
    """Inclusive date range check; undated items never match a range."""
    if result.item_date is None:
        return False
    if filters.date_from is not None and result.item_date < filters.date_from:
        return False
    if filters.date_to is not None and result.item_date > filters.date_to:
        return False
    return True
