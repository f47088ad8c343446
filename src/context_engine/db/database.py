"""Async SQLite handle for the knowledge store.

Reads go through ``fetchone``/``fetchall``, which close their cursor before
returning. Writes go through ``execute``, which reports the number of rows
changed. Callers commit explicitly.
"""

import logging
from typing import Any

import aiosqlite
import sqlite_vec

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | list[Any]


class Database:
    """One aiosqlite connection with rows addressable by column name.

    ``vector_enabled`` is True once the sqlite-vec functions that similarity
    search relies on (``vec_distance_cosine``) are registered.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        """Wrap an open aiosqlite connection."""
        conn.row_factory = aiosqlite.Row
        self._conn = conn
        self.vector_enabled = False

    async def fetchone(self, sql: str, params: Params = ()) -> aiosqlite.Row | None:
        """First row of a query, or None."""
        async with self._conn.execute(sql, params) as cursor:
            return await cursor.fetchone()

    async def fetchall(self, sql: str, params: Params = ()) -> list[aiosqlite.Row]:
        """Every row of a query."""
        async with self._conn.execute(sql, params) as cursor:
            return list(await cursor.fetchall())

    async def execute(self, sql: str, params: Params = ()) -> int:
        """Run one write statement and return the number of rows it changed."""
        async with self._conn.execute(sql, params) as cursor:
            return max(cursor.rowcount, 0)

    async def executescript(self, sql: str) -> None:
        """Run several statements at once (DDL)."""
        await self._conn.executescript(sql)

    async def commit(self) -> None:
        await self._conn.commit()

    async def close(self) -> None:
        await self._conn.close()

    async def enable_wal(self) -> None:
        """Let readers proceed while the decay pass writes."""
        await self._conn.execute("PRAGMA journal_mode=WAL")

    async def load_vector_extension(self) -> bool:
        """Register sqlite-vec on the connection's worker thread.

        Failure leaves the database usable for everything but similarity
        search and is logged rather than raised.
        """
        raw = self._conn

        def _load_vec() -> None:
            raw._conn.enable_load_extension(True)
            sqlite_vec.load(raw._conn)
            raw._conn.enable_load_extension(False)

        try:
            await raw._execute(_load_vec)  # type: ignore[no-untyped-call]
        except Exception:
            logger.warning("sqlite-vec extension not available, similarity search disabled")
            return False
        self.vector_enabled = True
        logger.debug("sqlite-vec extension loaded")
        return True
