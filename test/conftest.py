import asyncio
import json

import pytest
from pytest_asyncio import fixture

from chronodium import EngineConfig, StoreError, sqlite_store_factory
from chronodium.buckets import blob_key, bucket_for, index_key
from chronodium.codec import encode_points

SECOND = 1_000_000_000


class FlakyStore:
    """
    Wraps a store, failing reads of selected keys at once and delaying the rest.
    Tracks how many reads are in flight and which ones completed.
    """

    def __init__(self, inner, failing_keys=(), delay: float = 0.0):
        self.inner = inner
        self.failing_keys = set(failing_keys)
        self.delay = delay
        self.in_flight = 0
        self.peak_in_flight = 0
        self.completed = []

    async def _read(self, key, read):
        if key in self.failing_keys:
            raise StoreError(f"injected failure for {key}")
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            result = await read(key)
        finally:
            self.in_flight -= 1
        self.completed.append(key)
        return result

    async def get_sorted_set_with_scores(self, key):
        return await self._read(key, self.inner.get_sorted_set_with_scores)

    async def get_bytes(self, key):
        return await self._read(key, self.inner.get_bytes)

    async def close(self):
        pass


@pytest.fixture
def config():
    return EngineConfig(bucket_window=60)


@fixture
async def store():
    """Provides a store on a fresh in-memory database for each test function."""
    async with sqlite_store_factory(":memory:", pool_size=2) as store:
        yield store


@pytest.fixture
def seed(store, config):
    """
    Returns a coroutine that writes one metadata group the way the write path
    does: points are split by bucket, each bucket gets an index entry and a blob.
    """

    async def _seed(shard_key, metadata_hash, metadata, points, *, config=config, write_blob=True):
        by_bucket = {}
        for timestamp, value in points:
            by_bucket.setdefault(bucket_for(shard_key, timestamp, config), []).append((timestamp, value))
        for bucket, pairs in by_bucket.items():
            await store.zadd(
                index_key(shard_key, bucket, config),
                f"{metadata_hash}-{json.dumps(metadata)}",
                metadata_hash,
            )
            if write_blob:
                await store.set_bytes(
                    blob_key(shard_key, bucket, metadata_hash, config), encode_points(pairs)
                )
        return sorted(by_bucket)

    return _seed
