"""Graph traversal and export queries."""

import logging
from collections import deque

from context_engine.db.database import Database
from context_engine.db.queries import ITEM_COLUMNS, row_to_item
from context_engine.models.graph import GraphExport, GraphNode, RelatedItem, Relationship
from context_engine.models.item import ARCHIVED, ItemType

logger = logging.getLogger(__name__)


async def get_neighbors(
    db: Database,
    item_id: str,
    item_type: ItemType,
) -> list[tuple[str, ItemType, str, str, float]]:
    """Get neighbours of an item over the undirected view of the edge set.

    Returns (neighbor_id, neighbor_type, relationship_type, direction, strength)
    tuples; direction is "outgoing" or "incoming" relative to ``item_id``.
    """
    results: list[tuple[str, ItemType, str, str, float]] = []

    outgoing = await db.fetchall(
        "SELECT to_id, to_type, relationship_type, strength FROM relationships"
        " WHERE from_id = ? AND from_type = ? ORDER BY id",
        (item_id, ItemType(item_type).value),
    )
    for row in outgoing:
        results.append((row[0], ItemType(row[1]), row[2], "outgoing", row[3]))

    incoming = await db.fetchall(
        "SELECT from_id, from_type, relationship_type, strength FROM relationships"
        " WHERE to_id = ? AND to_type = ? ORDER BY id",
        (item_id, ItemType(item_type).value),
    )
    for row in incoming:
        results.append((row[0], ItemType(row[1]), row[2], "incoming", row[3]))

    return results


async def find_related(
    db: Database,
    item_id: str,
    item_type: ItemType,
    depth: int = 2,
) -> list[RelatedItem]:
    """BFS from an item, returning every item reached within ``depth`` hops.

    Edges are traversable in both directions. Each neighbour appears once,
    with its hop distance and the edge that connected it to its BFS parent.
    The start item is never included.
    """
    start = (item_id, ItemType(item_type))
    visited: set[tuple[str, ItemType]] = {start}
    queue: deque[tuple[str, ItemType, int]] = deque([(item_id, ItemType(item_type), 0)])
    results: list[RelatedItem] = []

    while queue:
        node_id, node_type, hops = queue.popleft()
        if hops >= depth:
            continue

        for neighbor_id, neighbor_type, rel_type, direction, strength in await get_neighbors(
            db, node_id, node_type
        ):
            key = (neighbor_id, neighbor_type)
            if key in visited:
                continue
            visited.add(key)
            results.append(
                RelatedItem(
                    id=neighbor_id,
                    item_type=neighbor_type,
                    depth=hops + 1,
                    relationship_type=rel_type,
                    direction=direction,
                    strength=strength,
                )
            )
            queue.append((neighbor_id, neighbor_type, hops + 1))

    return results


async def list_relationships(db: Database) -> list[Relationship]:
    """Every edge in insertion order."""
    rows = await db.fetchall(
        "SELECT from_id, from_type, to_id, to_type, relationship_type, strength"
        " FROM relationships ORDER BY id"
    )
    return [
        Relationship(
            from_id=row[0],
            from_type=ItemType(row[1]),
            to_id=row[2],
            to_type=ItemType(row[3]),
            relationship_type=row[4],
            strength=row[5],
        )
        for row in rows
    ]


async def export_graph(
    db: Database,
    include_archived: bool = False,
    max_nodes: int = 1000,
) -> GraphExport:
    """Export nodes and edges for visualization.

    Nodes are capped at ``max_nodes``, most-referenced first. Only edges whose
    endpoints are both exported are included.
    """
    sql = f"SELECT {ITEM_COLUMNS} FROM knowledge_items"  # noqa: S608
    params: list[object] = []
    if not include_archived:
        sql += " WHERE status != ?"
        params.append(ARCHIVED)
    sql += " ORDER BY reference_count DESC, id LIMIT ?"
    params.append(max_nodes)

    nodes: list[GraphNode] = []
    for row in await db.fetchall(sql, params):
        item = row_to_item(row)
        nodes.append(
            GraphNode(
                id=item.id,
                item_type=item.item_type,
                title=item.title,
                status=item.status,
                tags=item.tags,
                item_date=item.item_date,
                reference_count=item.reference_count,
            )
        )

    node_ids = {n.id for n in nodes}
    edges = [
        e
        for e in await list_relationships(db)
        if e.from_id in node_ids and e.to_id in node_ids
    ]
    logger.debug("Exported graph: %d nodes, %d edges", len(nodes), len(edges))
    return GraphExport(nodes=nodes, edges=edges)
