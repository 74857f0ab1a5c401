import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from chronodium.engine import QueryEngine
from chronodium.exceptions import StoreError
from chronodium.models import EngineConfig
from chronodium.adaptors.redis.handle import RedisStore


@asynccontextmanager
async def redis_store_factory(
    url: str = "redis://localhost:6379/0",
    *,
    password: str | None = None,
    max_connections: int = 50,
) -> AsyncIterator[RedisStore]:
    """Connects to Redis, checks the connection, and closes the client on exit."""
    client = aioredis.from_url(
        url,
        password=password,
        decode_responses=False,
        max_connections=max_connections,
    )
    store = RedisStore(client)
    try:
        try:
            await client.ping()
        except RedisError as e:
            logging.error(f"Failed to connect to Redis at {url}: {e}")
            raise StoreError(f"Redis connection failed: {e}") from e
        logging.info(f"Connected to Redis at {url}")
        yield store
    finally:
        await store.close()


@asynccontextmanager
async def redis_engine_factory(
    url: str = "redis://localhost:6379/0",
    *,
    config: EngineConfig | None = None,
    password: str | None = None,
    max_connections: int = 50,
) -> AsyncIterator[QueryEngine]:
    """Yields a `QueryEngine` reading from Redis for the duration of the context."""
    async with redis_store_factory(
        url, password=password, max_connections=max_connections
    ) as store:
        yield QueryEngine(store, config)
