"""SQLite-backed durable key-value storage.

Provides the app-scoped storage the client keeps across restarts:
- Upsert/get/remove on a single `kv_store` table
- Schema applied from the packaged `schema.sql`
- Blocking sqlite3 calls run in a worker thread so the event loop never blocks
"""

import asyncio
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from chatcore.errors import StorageError
from chatcore.storage.base import KeyValueStore
from chatcore.utils.logger import LoggerManager


class SqliteKeyValueStore(KeyValueStore):
    """SQLite-backed key-value store.

    Attributes:
        db_path: Path to SQLite database file
        _conn: SQLite connection (lazy-loaded)
    """

    def __init__(self, db_path: Path):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database (created if not exists)
        """
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        # One connection is shared by worker threads; calls are serialized.
        self._lock = threading.Lock()
        self.logger = LoggerManager.get_logger(__name__)
        self._ensure_schema()

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        return self._conn

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path) as f:
            schema = f.read()

        try:
            conn = self._get_connection()
            conn.executescript(schema)
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StorageError.from_exception("initialization", e) from e
        self.logger.debug(
            "Key-value schema initialized", extra={"db_path": str(self.db_path)}
        )

    async def get_item(self, key: str) -> Optional[str]:
        return await self._run("read", self._get_sync, key)

    async def set_item(self, key: str, value: str) -> None:
        await self._run("write", self._set_sync, key, value)

    async def remove_item(self, key: str) -> None:
        await self._run("remove", self._remove_sync, [key])

    async def multi_remove(self, keys: Iterable[str]) -> None:
        await self._run("remove", self._remove_sync, list(keys))

    async def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except (sqlite3.Error, OSError) as e:
            self.logger.error(
                f"Key-value {operation} failed: {e}", extra={"db_path": str(self.db_path)}
            )
            raise StorageError.from_exception(operation, e) from e

    def _get_sync(self, key: str) -> Optional[str]:
        with self._lock:
            cursor = self._get_connection().execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            )
            row = cursor.fetchone()
        return row[0] if row else None

    def _set_sync(self, key: str, value: str) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()

    def _remove_sync(self, keys: List[str]) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.executemany("DELETE FROM kv_store WHERE key = ?", [(k,) for k in keys])
            conn.commit()
