"""
SQLite key-value store using aiosqlite.

One table, ``kv(key TEXT PRIMARY KEY, value TEXT)``, in a database file that
is created on first connect.
"""

import logging
from pathlib import Path
from typing import Optional

import aiosqlite

from taskfiles.storage.interface import KeyValueStore

logger = logging.getLogger(__name__)


class SQLiteKeyValueStore(KeyValueStore):
    """
    Key-value store persisted in a local SQLite file.

    Automatically creates the database file and parent directories.
    """

    def __init__(self, db_path: str = "~/.taskfiles/local.db"):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file.
                    Supports ~ expansion for home directory.
        """
        self.db_path = Path(db_path).expanduser()
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Open the database and create the table if needed."""
        if self._conn is not None:
            return

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Connect (creates file if doesn't exist)
        self._conn = await aiosqlite.connect(str(self.db_path))

        # Use WAL mode for better concurrent access
        await self._conn.execute("PRAGMA journal_mode = WAL")

        await self._conn.execute(
            "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
        )
        await self._conn.commit()

        logger.info(f"SQLite store connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite store closed")

    async def _get_conn(self) -> aiosqlite.Connection:
        """Get or create connection."""
        if self._conn is None:
            await self.connect()
        return self._conn

    async def get(self, key: str) -> Optional[str]:
        conn = await self._get_conn()
        cursor = await conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        conn = await self._get_conn()
        await conn.execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )
        await conn.commit()

    async def remove(self, key: str) -> None:
        conn = await self._get_conn()
        await conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        await conn.commit()
