"""Open and prepare the knowledge database."""

import logging
from pathlib import Path

import aiosqlite

from context_engine.config import get_db_path
from context_engine.db.database import Database
from context_engine.db.schema import apply_schema

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path | str | None = None) -> Database:
    """Open the database with WAL, sqlite-vec and the current schema.

    For in-memory databases, pass ":memory:".
    """
    db_path = str(db_path or get_db_path())

    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    db = Database(await aiosqlite.connect(db_path))
    await db.enable_wal()
    await db.load_vector_extension()
    await apply_schema(db)
    logger.debug("Opened knowledge database at %s", db_path)
    return db
