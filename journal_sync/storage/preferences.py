"""
Native preference store backend.

Stores key/value pairs in a single SQLite table, the way a native app
shell persists its preferences. Used when the platform probe reports a
native platform.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any

import aiosqlite

from ..exceptions import StorageIOError
from .base import KeyValueBackend

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS preferences (
    key TEXT NOT NULL PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class PreferencesBackend(KeyValueBackend):
    """SQLite-backed preference store.

    The connection is opened lazily on first use and kept open until
    close() is called.
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize the preference store.

        Args:
            db_path: SQLite database file, or ":memory:"
        """
        self.db_path = db_path
        self.conn: Any = None  # aiosqlite.Connection
        self._initialized = False

    async def initialize(self) -> None:
        """Open the connection and create the schema."""
        if self._initialized:
            return

        try:
            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = await aiosqlite.connect(str(self.db_path))
            await self.conn.execute(_CREATE_TABLE_SQL)
            await self.conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StorageIOError("open", str(self.db_path), e) from e

        self._initialized = True
        logger.info(f"Preference store opened at {self.db_path}")

    async def set(self, key: str, value: str) -> None:
        await self.initialize()
        try:
            await self.conn.execute(
                "INSERT INTO preferences (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            await self.conn.commit()
        except sqlite3.Error as e:
            raise StorageIOError("set", key, e) from e
        logger.debug(f"Saved to preference store: {key}")

    async def get(self, key: str) -> str | None:
        await self.initialize()
        try:
            async with self.conn.execute(
                "SELECT value FROM preferences WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageIOError("get", key, e) from e
        return row[0] if row else None

    async def remove(self, key: str) -> None:
        await self.initialize()
        try:
            await self.conn.execute("DELETE FROM preferences WHERE key = ?", (key,))
            await self.conn.commit()
        except sqlite3.Error as e:
            raise StorageIOError("remove", key, e) from e
        logger.debug(f"Removed from preference store: {key}")

    async def list_keys(self) -> set[str]:
        await self.initialize()
        try:
            async with self.conn.execute("SELECT key FROM preferences") as cursor:
                rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise StorageIOError("list_keys", None, e) from e
        return {row[0] for row in rows}

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self.conn is not None:
            await self.conn.close()
            self.conn = None
        self._initialized = False
