"""Async key/value stores for per-artist scan data."""

import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import aiosqlite

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable key/value storage. Values are JSON-compatible."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def is_available(self) -> bool: ...


class MemoryStore:
    """Process-local store. Values are JSON round-tripped like the SQLite store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def is_available(self) -> bool:
        return True

    def keys(self) -> list[str]:
        return list(self._data)


class SQLiteStore:
    """Key/value store backed by a single ``kv`` table in SQLite."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database, creating the table if needed."""
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self.db_path)
        await self._conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        await self._conn.commit()
        logger.info(f"Connected to SQLite store: {self.db_path}")

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.info("Closed SQLite store")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Store not connected")
        return self._conn

    async def is_available(self) -> bool:
        """Check if the database connection is alive."""
        try:
            if self._conn is None:
                return False
            async with self._conn.execute("SELECT 1") as cursor:
                row = await cursor.fetchone()
                return row is not None
        except Exception:
            return False

    async def get(self, key: str) -> Any | None:
        conn = self._require_conn()
        async with conn.execute("SELECT value FROM kv WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable value stored under {key!r}")
            return None

    async def set(self, key: str, value: Any) -> None:
        conn = self._require_conn()
        await conn.execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, json.dumps(value)),
        )
        await conn.commit()

    async def remove(self, key: str) -> None:
        conn = self._require_conn()
        await conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        await conn.commit()
