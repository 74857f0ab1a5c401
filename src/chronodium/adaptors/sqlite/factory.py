from typing import AsyncIterator
from contextlib import asynccontextmanager
import aiosqlite
import asyncio
import logging
import uuid

from chronodium.engine import QueryEngine
from chronodium.models import EngineConfig
from chronodium.adaptors.sqlite.handle import SQLiteStore, create_schema


@asynccontextmanager
async def sqlite_store_factory(
    db_path: str,
    *,
    cache_size_kib: int = -16384,
    pool_size: int = 10,
) -> AsyncIterator[SQLiteStore]:
    """
    Opens a SQLite-backed store and closes every connection it created on exit.

    `db_path=":memory:"` gives each factory its own private shared-cache
    in-memory database, reachable from all of the factory's connections.
    """
    if not db_path:
        raise ValueError("`db_path` must be provided.")

    is_memory_db = db_path == ":memory:"
    if is_memory_db:
        db_connect_string = f"file:chronodium_{uuid.uuid4().hex}?mode=memory&cache=shared"
    else:
        db_connect_string = db_path

    connections: list[aiosqlite.Connection] = []
    try:
        write_conn = await aiosqlite.connect(db_connect_string, uri=is_memory_db)
        connections.append(write_conn)
        await write_conn.execute("PRAGMA journal_mode=WAL;")
        await write_conn.execute("PRAGMA synchronous = NORMAL;")
        await write_conn.execute(f"PRAGMA cache_size = {cache_size_kib};")
        await write_conn.execute("PRAGMA busy_timeout = 5000;")
        # The write connection creates the schema before any reader opens.
        await create_schema(write_conn)

        pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        read_connect_string = (
            f"file:{db_connect_string}?mode=ro"
            if not is_memory_db
            else db_connect_string
        )
        for _ in range(pool_size):
            conn = await aiosqlite.connect(read_connect_string, uri=True)
            connections.append(conn)
            await conn.execute(f"PRAGMA cache_size = {cache_size_kib};")
            await conn.execute("PRAGMA busy_timeout = 5000;")
            await pool.put(conn)

        logging.info(f"SQLite store opened on {db_path} with {pool_size} read connections")
        yield SQLiteStore(write_conn=write_conn, write_lock=asyncio.Lock(), read_pool=pool)
    finally:
        await asyncio.gather(*(conn.close() for conn in connections))
        logging.info(f"SQLite store closed on {db_path}")


@asynccontextmanager
async def sqlite_engine_factory(
    db_path: str,
    *,
    config: EngineConfig | None = None,
    cache_size_kib: int = -16384,
    pool_size: int = 10,
) -> AsyncIterator[QueryEngine]:
    """Yields a `QueryEngine` reading from a SQLite store opened for the duration of the context."""
    async with sqlite_store_factory(
        db_path, cache_size_kib=cache_size_kib, pool_size=pool_size
    ) as store:
        yield QueryEngine(store, config)
