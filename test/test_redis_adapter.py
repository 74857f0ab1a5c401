from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from chronodium import EngineConfig, KeyNotFoundError, Query, QueryEngine, StoreError
from chronodium.adaptors.redis import RedisStore, redis_engine_factory, redis_store_factory
from chronodium.buckets import blob_key, index_key
from chronodium.codec import encode_points

SECOND = 1_000_000_000
CONFIG = EngineConfig(bucket_window=60)


def fake_client(index=None, blobs=None):
    """A client whose zrange/get answer from dicts keyed by Redis key."""
    index = index or {}
    blobs = blobs or {}
    client = AsyncMock()
    client.zrange.side_effect = lambda key, start, end, withscores=False: index.get(key, [])
    client.get.side_effect = lambda key: blobs.get(key)
    return client


@pytest.mark.asyncio
async def test_query_through_redis_store():
    client = fake_client(
        index={index_key("cpu", 0, CONFIG): [(b'1-{"host": "a"}', 1.0), (b'2-{"host": "b"}', 2.0)]},
        blobs={
            blob_key("cpu", 0, 1, CONFIG): encode_points([(2000, 2.0), (1000, 1.0)]),
            blob_key("cpu", 0, 2, CONFIG): encode_points([(1500, 3.0)]),
        },
    )
    engine = QueryEngine(RedisStore(client), CONFIG)

    result = await engine.query(Query(start_date=0, end_date=SECOND, shard_key="cpu", filter={"host": "a"}))

    assert [(p.timestamp, p.value) for p in result.points] == [(1000, 1.0), (2000, 2.0)]
    client.zrange.assert_any_await(index_key("cpu", 0, CONFIG), 0, -1, withscores=True)
    client.get.assert_awaited_once_with(blob_key("cpu", 0, 1, CONFIG))


@pytest.mark.asyncio
async def test_members_are_decoded():
    client = fake_client(index={"idx": [(b"x-{}", 7.0)]})
    assert await RedisStore(client).get_sorted_set_with_scores("idx") == [("x-{}", 7.0)]


@pytest.mark.asyncio
async def test_missing_key_raises_key_not_found():
    store = RedisStore(fake_client())
    with pytest.raises(KeyNotFoundError):
        await store.get_bytes("absent")


@pytest.mark.asyncio
async def test_redis_errors_become_store_errors():
    client = AsyncMock()
    client.get.side_effect = RedisConnectionError("connection refused")
    client.zrange.side_effect = RedisConnectionError("connection refused")
    store = RedisStore(client)

    with pytest.raises(StoreError):
        await store.get_bytes("k")
    with pytest.raises(StoreError):
        await store.get_sorted_set_with_scores("k")

    result = await QueryEngine(store, CONFIG).query(Query(start_date=0, end_date=SECOND, shard_key="cpu"))
    assert result.points == []
    assert result.partial


@pytest.mark.asyncio
async def test_factory_closes_client_on_exit():
    client = AsyncMock()
    with patch("chronodium.adaptors.redis.factory.aioredis.from_url", return_value=client) as from_url:
        async with redis_engine_factory("redis://example:6379/0", config=CONFIG) as engine:
            assert engine.config is CONFIG
            assert isinstance(engine.store, RedisStore)
        from_url.assert_called_once()
        assert from_url.call_args.kwargs["decode_responses"] is False
    client.ping.assert_awaited_once()
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_factory_reports_unreachable_server():
    client = AsyncMock()
    client.ping.side_effect = RedisConnectionError("connection refused")
    with patch("chronodium.adaptors.redis.factory.aioredis.from_url", return_value=client):
        with pytest.raises(StoreError, match="Redis connection failed"):
            async with redis_store_factory("redis://example:6379/0"):
                pass
    client.aclose.assert_awaited_once()
