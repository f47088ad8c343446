"""Context bundler: search, graph expansion, ranking and token budgeting."""

import logging
import uuid
from datetime import date

from context_engine.bundle.ranking import rank_items
from context_engine.db.database import Database
from context_engine.db.queries import get_item, increment_access_count
from context_engine.errors import ItemNotFound
from context_engine.graph.queries import find_related
from context_engine.models.bundle import Bundle, BundleItem
from context_engine.models.item import ItemType
from context_engine.search.embeddings import EmbeddingProvider
from context_engine.search.semantic import semantic_search

logger = logging.getLogger(__name__)

SEARCH_TOP_K = 20
GRAPH_SIMILARITY = 0.5
CHARS_PER_TOKEN = 4

# Each bucket's share of the *whole* character budget. The shares add up to
# 110%: buckets are cut independently, not from a running remainder.
BUCKET_SHARES: dict[ItemType, float] = {
    ItemType.DECISION: 0.4,
    ItemType.INCIDENT: 0.3,
    ItemType.MEETING: 0.2,
    ItemType.SNAPSHOT: 0.2,
}


async def bundle_context(
    db: Database,
    embedder: EmbeddingProvider,
    query: str,
    max_tokens: int = 4000,
    domains: list[str] | None = None,
    today: date | None = None,
) -> Bundle:
    """Build a ranked, token-budgeted context bundle for ``query``.

    Raises ``EmbeddingUnavailable`` if the query cannot be embedded; missing
    graph neighbours are skipped.
    """
    query_id = str(uuid.uuid4())

    hits = await semantic_search(db, embedder, query, top_k=SEARCH_TOP_K)
    candidates = [
        BundleItem(
            id=h.id,
            item_type=h.item_type,
            title=h.title,
            content=h.content,
            tags=h.tags,
            item_date=h.item_date,
            similarity=h.similarity,
        )
        for h in hits
    ]

    expanded = await expand_with_graph(db, candidates)
    filtered = filter_domains(expanded, domains or [])
    ranked = rank_items(filtered, today)
    bundle = build_token_limited_bundle(ranked, max_tokens, query_id=query_id)

    await increment_access_count(db, [item.id for item in bundle.all_items()])
    logger.info(
        "Bundle %s: %d candidates, %d after expansion, %d returned",
        query_id,
        len(candidates),
        len(expanded),
        bundle.total_items,
    )
    return bundle


async def expand_with_graph(db: Database, items: list[BundleItem]) -> list[BundleItem]:
    """Add one-hop graph neighbours of every item, de-duplicated by id.

    Neighbours get a placeholder similarity since they were not scored
    against the query. Archived or missing neighbours are dropped.
    """
    seen = {item.id for item in items}
    expanded: list[BundleItem] = []

    for item in items:
        expanded.append(item)
        for rel in await find_related(db, item.id, item.item_type, depth=1):
            if rel.id in seen:
                continue
            try:
                neighbor = await hydrate_item(db, rel.id)
            except ItemNotFound:
                logger.warning("Skipping dangling edge %s -> %s", item.id, rel.id)
                continue
            seen.add(rel.id)
            if neighbor is not None:
                expanded.append(neighbor)

    return expanded


async def hydrate_item(db: Database, item_id: str) -> BundleItem | None:
    """Load an item into bundle shape with the graph placeholder similarity.

    Returns None for archived items; raises ItemNotFound for unknown ids.
    """
    item = await get_item(db, item_id)
    if item is None:
        raise ItemNotFound(item_id)
    if item.is_archived:
        return None
    return BundleItem(
        id=item.id,
        item_type=item.item_type,
        title=item.title,
        content=item.content,
        tags=item.tags,
        item_date=item.item_date,
        similarity=GRAPH_SIMILARITY,
        via_graph=True,
    )


def filter_domains(items: list[BundleItem], domains: list[str]) -> list[BundleItem]:
    """Keep items tagged with at least one domain; no domains keeps everything."""
    if not domains:
        return items
    wanted = set(domains)
    return [item for item in items if wanted.intersection(item.tags)]


def take_items_by_type(
    ranked: list[BundleItem], item_type: ItemType, max_chars: float
) -> list[BundleItem]:
    """Greedily take items of one type in rank order while content fits.

    The first item that would overflow the remaining budget ends the bucket;
    later, smaller items are not tried.
    """
    if max_chars <= 0:
        return []
    taken: list[BundleItem] = []
    remaining = max_chars
    for item in ranked:
        if item.item_type is not item_type:
            continue
        size = len(item.content)
        if size > remaining:
            break
        taken.append(item)
        remaining -= size
    return taken


def build_token_limited_bundle(
    ranked: list[BundleItem], max_tokens: int, *, query_id: str | None = None
) -> Bundle:
    """Split ranked items into buckets, each within its share of the budget."""
    max_chars = max(max_tokens, 0) * CHARS_PER_TOKEN

    taken = {
        item_type: take_items_by_type(ranked, item_type, max_chars * share)
        for item_type, share in BUCKET_SHARES.items()
    }
    key_decisions = taken[ItemType.DECISION]
    known_issues = taken[ItemType.INCIDENT]
    recent_changes = taken[ItemType.MEETING] + taken[ItemType.SNAPSHOT]

    return Bundle(
        query_id=query_id or str(uuid.uuid4()),
        key_decisions=key_decisions,
        known_issues=known_issues,
        recent_changes=recent_changes,
        total_items=len(key_decisions) + len(known_issues) + len(recent_changes),
    )
