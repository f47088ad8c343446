"""Create relationship edges explicitly or from item id references in text."""

import logging
from datetime import UTC, datetime

from context_engine.db.database import Database
from context_engine.db.queries import increment_reference_count
from context_engine.models.item import ITEM_ID_RE, ItemType

logger = logging.getLogger(__name__)

REFERENCES = "references"


class GraphBuilder:
    """Writes directed, typed edges into the relationship table.

    Edges are append-only. An identical ``(from, to, type)`` edge is stored at
    most once, so repeated auto-linking of the same text is harmless.
    """

    def __init__(self, db: Database) -> None:
        """Initialize with a database connection."""
        self._db = db

    async def create_relationship(
        self,
        from_id: str,
        from_type: ItemType,
        to_id: str,
        to_type: ItemType,
        relationship_type: str,
        strength: float = 1.0,
    ) -> bool:
        """Insert an edge. Returns True if it was new.

        A new edge counts as an inbound reference on its target.
        """
        now = datetime.now(UTC).isoformat()
        changed = await self._db.execute(
            """INSERT OR IGNORE INTO relationships
               (from_id, from_type, to_id, to_type, relationship_type, strength, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                from_id,
                ItemType(from_type).value,
                to_id,
                ItemType(to_type).value,
                relationship_type,
                strength,
                now,
            ),
        )
        created = changed > 0
        await self._db.commit()
        if created:
            await increment_reference_count(self._db, to_id)
            logger.debug("Edge %s -[%s]-> %s", from_id, relationship_type, to_id)
        return created

    async def auto_link(self, item_id: str, item_type: ItemType, text: str) -> list[str]:
        """Create a ``references`` edge for every other item id mentioned in ``text``.

        Returns the ids that were linked in this call.
        """
        linked: list[str] = []
        seen: set[str] = set()
        for match in ITEM_ID_RE.finditer(text):
            ref_id = match.group(0)
            if ref_id == item_id or ref_id in seen:
                continue
            seen.add(ref_id)
            ref_type = ItemType.from_prefix(match.group(1))
            if await self.create_relationship(item_id, item_type, ref_id, ref_type, REFERENCES):
                linked.append(ref_id)
        if linked:
            logger.info("Auto-linked %s to %s", item_id, ", ".join(linked))
        return linked
