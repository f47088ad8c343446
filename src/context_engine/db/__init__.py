"""Database connection and schema management."""

from context_engine.db.connection import create_connection
from context_engine.db.database import Database

__all__ = ["Database", "create_connection"]
