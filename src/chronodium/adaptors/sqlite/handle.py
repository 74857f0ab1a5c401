"""
This module provides the SQLite-specific implementation of the `Store`
protocol. Sorted sets are kept as (key, member, score) rows and raw values as
(key, value) rows, so a single database file can hold everything a Redis
deployment would.
"""
from typing import AsyncIterator, List, Tuple
from contextlib import asynccontextmanager
import aiosqlite
import asyncio
import logging

from chronodium.exceptions import KeyNotFoundError, StoreError
from chronodium.protocols import Store


async def create_schema(conn: aiosqlite.Connection):
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS sorted_sets (
            key TEXT NOT NULL,
            member TEXT NOT NULL,
            score REAL NOT NULL,
            PRIMARY KEY (key, member)
        )
    """
    )
    # Index reads always fetch a whole set in score order.
    await conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_sorted_sets_score ON sorted_sets (key, score)
        """
    )
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS blobs (
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL
        )
    """
    )
    await conn.commit()


class SQLiteStore(Store):
    """
    A store that serves reads from a pool of connections and funnels all
    writes through one dedicated, locked write connection.
    """

    def __init__(
        self,
        write_conn: aiosqlite.Connection,
        write_lock: asyncio.Lock,
        read_pool: asyncio.Queue,
    ):
        self.write_conn = write_conn
        self.write_lock = write_lock
        self.read_pool = read_pool

    @asynccontextmanager
    async def _read_conn(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrows a connection from the read pool."""
        conn = await self.read_pool.get()
        try:
            yield conn
        finally:
            await self.read_pool.put(conn)

    async def get_sorted_set_with_scores(self, key: str) -> List[Tuple[str, float]]:
        try:
            async with self._read_conn() as conn:
                async with conn.execute(
                    "SELECT member, score FROM sorted_sets WHERE key = ? ORDER BY score, member",
                    (key,),
                ) as cursor:
                    return [(member, score) async for member, score in cursor]
        except aiosqlite.Error as e:
            logging.error(f"Failed to read sorted set '{key}' from SQLite: {e}")
            raise StoreError(f"Sorted set read failed: {e}") from e

    async def get_bytes(self, key: str) -> bytes:
        try:
            async with self._read_conn() as conn:
                async with conn.execute("SELECT value FROM blobs WHERE key = ?", (key,)) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logging.error(f"Failed to read key '{key}' from SQLite: {e}")
            raise StoreError(f"Value read failed: {e}") from e
        if row is None:
            raise KeyNotFoundError(f"Key not found: {key}")
        return bytes(row[0])

    async def zadd(self, key: str, member: str, score: float):
        """Adds or rescores `member` in the sorted set at `key`."""
        async with self.write_lock:
            try:
                await self.write_conn.execute(
                    "INSERT OR REPLACE INTO sorted_sets (key, member, score) VALUES (?, ?, ?)",
                    (key, member, score),
                )
                await self.write_conn.commit()
            except aiosqlite.Error as e:
                await self.write_conn.rollback()
                logging.error(f"Failed to write sorted set '{key}' to SQLite: {e}")
                raise StoreError(f"Sorted set write failed: {e}") from e

    async def set_bytes(self, key: str, value: bytes):
        async with self.write_lock:
            try:
                await self.write_conn.execute(
                    "INSERT OR REPLACE INTO blobs (key, value) VALUES (?, ?)",
                    (key, value),
                )
                await self.write_conn.commit()
            except aiosqlite.Error as e:
                await self.write_conn.rollback()
                logging.error(f"Failed to write key '{key}' to SQLite: {e}")
                raise StoreError(f"Value write failed: {e}") from e

    async def close(self):
        """
        No-op. The store borrows its connections from `sqlite_store_factory`,
        which closes all of them when its context exits, so the store stays
        usable until then.
        """
