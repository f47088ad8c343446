"""Query helpers for knowledge item persistence and similarity search."""

import json
import struct
from datetime import UTC, date, datetime
from typing import Any

import aiosqlite

from context_engine.db.database import Database
from context_engine.models.item import (
    ARCHIVED,
    ITEM_MODELS,
    ItemType,
    KnowledgeItem,
    format_item_id,
)

# Every item column except the raw embedding blob
ITEM_COLUMNS = (
    "id, item_type, title, body, tags, status, item_date,"
    " access_count_30d, reference_count, created_at, updated_at,"
    " (embedding IS NOT NULL) AS has_embedding"
)


async def next_item_id(db: Database, item_type: ItemType) -> str:
    """Return the next sequential id for a type, e.g. ``ADR-004`` after ``ADR-003``."""
    row = await db.fetchone(
        "SELECT MAX(CAST(SUBSTR(id, ?) AS INTEGER)) FROM knowledge_items WHERE item_type = ?",
        (len(item_type.prefix) + 2, item_type.value),
    )
    last = row[0] if row is not None and row[0] is not None else 0
    return format_item_id(item_type, last + 1)


def row_to_item(row: aiosqlite.Row) -> KnowledgeItem:
    """Convert a database row to the matching item variant."""
    item_type = ItemType(row["item_type"])
    model = ITEM_MODELS[item_type]
    fields: dict[str, Any] = json.loads(row["body"])
    fields.update(
        id=row["id"],
        item_type=item_type,
        title=row["title"],
        tags=json.loads(row["tags"]),
        status=row["status"],
        item_date=date.fromisoformat(row["item_date"]) if row["item_date"] else None,
        access_count_30d=row["access_count_30d"],
        reference_count=row["reference_count"],
        has_embedding=bool(row["has_embedding"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
    return model.model_validate(fields)


async def insert_item(
    db: Database, item: KnowledgeItem, embedding: list[float] | None = None
) -> None:
    """Insert a new item together with its full embedding."""
    await db.execute(
        """INSERT INTO knowledge_items
        (id, item_type, title, body, tags, status, item_date, embedding,
         access_count_30d, reference_count, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            item.id,
            item.item_type.value,
            item.title,
            json.dumps(item.body()),
            json.dumps(item.tags),
            item.status,
            item.item_date.isoformat() if item.item_date else None,
            serialize_f32(embedding) if embedding is not None else None,
            item.access_count_30d,
            item.reference_count,
            item.created_at.isoformat() if item.created_at else _now_iso(),
            item.updated_at.isoformat() if item.updated_at else _now_iso(),
        ),
    )
    await db.commit()


async def update_item(db: Database, item: KnowledgeItem, embedding: list[float]) -> None:
    """Rewrite an item's body, tags and date, replacing its embedding whole."""
    await db.execute(
        """UPDATE knowledge_items SET
        title=?, body=?, tags=?, status=?, item_date=?, embedding=?, updated_at=?
        WHERE id=?""",
        (
            item.title,
            json.dumps(item.body()),
            json.dumps(item.tags),
            item.status,
            item.item_date.isoformat() if item.item_date else None,
            serialize_f32(embedding),
            _now_iso(),
            item.id,
        ),
    )
    await db.commit()


async def get_item(db: Database, item_id: str) -> KnowledgeItem | None:
    """Get a single item by id, archived or not."""
    row = await db.fetchone(
        f"SELECT {ITEM_COLUMNS} FROM knowledge_items WHERE id = ?",  # noqa: S608
        (item_id,),
    )
    return row_to_item(row) if row else None


async def list_items(
    db: Database,
    item_type: ItemType | None = None,
    status: str | None = None,
    *,
    exclude_status: str | None = None,
) -> list[KnowledgeItem]:
    """List items, newest first, optionally filtered by type and status."""
    sql = f"SELECT {ITEM_COLUMNS} FROM knowledge_items WHERE 1=1"  # noqa: S608
    params: list[object] = []
    if item_type is not None:
        sql += " AND item_type = ?"
        params.append(item_type.value)
    if status is not None:
        sql += " AND status = ?"
        params.append(status)
    if exclude_status is not None:
        sql += " AND status != ?"
        params.append(exclude_status)
    sql += " ORDER BY item_date DESC, id"
    return [row_to_item(row) for row in await db.fetchall(sql, params)]


async def items_between(db: Database, date_from: date, date_to: date) -> list[KnowledgeItem]:
    """All items dated within ``[date_from, date_to]``, oldest first."""
    rows = await db.fetchall(
        f"SELECT {ITEM_COLUMNS} FROM knowledge_items"  # noqa: S608
        " WHERE item_date >= ? AND item_date <= ? ORDER BY item_date, id",
        (date_from.isoformat(), date_to.isoformat()),
    )
    return [row_to_item(row) for row in rows]


async def update_status(db: Database, item_id: str, status: str) -> bool:
    """Set an item's status. Returns False if the item does not exist."""
    changed = await db.execute(
        "UPDATE knowledge_items SET status = ?, updated_at = ? WHERE id = ?",
        (status, _now_iso(), item_id),
    )
    await db.commit()
    return changed > 0


async def increment_access_count(db: Database, item_ids: list[str]) -> None:
    """Batch-increment access_count_30d for the given item ids."""
    if not item_ids:
        return
    placeholders = ",".join("?" for _ in item_ids)
    await db.execute(
        "UPDATE knowledge_items SET access_count_30d = access_count_30d + 1"  # noqa: S608
        " WHERE id IN (" + placeholders + ")",
        list(item_ids),
    )
    await db.commit()


async def increment_reference_count(db: Database, item_id: str) -> None:
    """Increment reference_count for one item (no-op if it does not exist)."""
    await db.execute(
        "UPDATE knowledge_items SET reference_count = reference_count + 1 WHERE id = ?",
        (item_id,),
    )
    await db.commit()


async def nearest_items(
    db: Database,
    embedding: list[float],
    item_type: ItemType,
    limit: int = 20,
    *,
    status: str | None = None,
    pattern: str | None = None,
) -> list[tuple[KnowledgeItem, float]]:
    """Nearest non-archived items of one type by cosine distance, closest first.

    ``status`` and ``pattern`` narrow the candidates before the limit applies.
    Returns (item, distance) pairs. Ties keep insertion order.
    """
    sql = (
        f"SELECT {ITEM_COLUMNS}, vec_distance_cosine(embedding, ?) AS distance"  # noqa: S608
        " FROM knowledge_items"
        " WHERE item_type = ? AND status != ? AND embedding IS NOT NULL"
    )
    params: list[object] = [serialize_f32(embedding), item_type.value, ARCHIVED]
    if status is not None:
        sql += " AND status = ?"
        params.append(status)
    if pattern is not None:
        sql += " AND json_extract(body, '$.pattern') = ?"
        params.append(pattern)
    sql += " ORDER BY distance, rowid LIMIT ?"
    params.append(limit)
    rows = await db.fetchall(sql, params)
    return [(row_to_item(row), row["distance"]) for row in rows]


async def get_db_stats(db: Database) -> dict[str, Any]:
    """Return item counts by type and status, and edge counts by type."""
    stats: dict[str, Any] = {}

    rows = await db.fetchall(
        "SELECT item_type, status, COUNT(*) AS cnt FROM knowledge_items"
        " GROUP BY item_type, status ORDER BY item_type, status"
    )
    by_type: dict[str, dict[str, int]] = {}
    for row in rows:
        by_type.setdefault(row["item_type"], {})[row["status"]] = row["cnt"]
    stats["items"] = by_type

    rows = await db.fetchall(
        "SELECT relationship_type, COUNT(*) AS cnt FROM relationships"
        " GROUP BY relationship_type ORDER BY relationship_type"
    )
    stats["edges"] = {row["relationship_type"]: row["cnt"] for row in rows}
    return stats


def serialize_f32(vec: list[float]) -> bytes:
    """Serialize a list of floats to the float32 blob format sqlite-vec reads."""
    return struct.pack(f"{len(vec)}f", *vec)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()
