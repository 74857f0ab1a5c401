"""
Redis implementation of the `Store` protocol.

This is the layout the write path targets natively: one sorted set per bucket
holding the metadata index, and one plain string key per metadata group
holding the packed point blob.
"""
import logging
from typing import List, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from chronodium.exceptions import KeyNotFoundError, StoreError
from chronodium.protocols import Store


class RedisStore(Store):
    """
    Store backed by a `redis.asyncio.Redis` client.

    The client must be created with `decode_responses=False`; blobs are binary
    and members are decoded here.
    """

    def __init__(self, client: Redis, encoding: str = "utf-8"):
        self.client = client
        self.encoding = encoding

    async def get_sorted_set_with_scores(self, key: str) -> List[Tuple[str, float]]:
        try:
            entries = await self.client.zrange(key, 0, -1, withscores=True)
        except RedisError as e:
            logging.error(f"Failed to read sorted set '{key}' from Redis: {e}")
            raise StoreError(f"Sorted set read failed: {e}") from e

        out = []
        for member, score in entries:
            if isinstance(member, bytes):
                member = member.decode(self.encoding, errors="replace")
            out.append((member, float(score)))
        return out

    async def get_bytes(self, key: str) -> bytes:
        try:
            data = await self.client.get(key)
        except RedisError as e:
            logging.error(f"Failed to get key '{key}' from Redis: {e}")
            raise StoreError(f"Value read failed: {e}") from e
        if data is None:
            raise KeyNotFoundError(f"Key not found: {key}")
        return data

    async def close(self):
        await self.client.aclose()
        logging.info("Redis connection closed")
