import argparse
import asyncio
import json
import random
import time

from chronodium import EngineConfig, Query, QueryEngine, sqlite_store_factory
from chronodium.buckets import blob_key, bucket_for, index_key
from chronodium.codec import encode_points

SECOND = 1_000_000_000


async def seed(store, config: EngineConfig, shard_key: str, num_points: int, num_groups: int, span_seconds: int):
    groups = {}
    for _ in range(num_points):
        group = random.randrange(num_groups)
        timestamp = random.randrange(span_seconds * SECOND)
        bucket = bucket_for(shard_key, timestamp, config)
        groups.setdefault((bucket, group), []).append((timestamp, random.random()))

    for (bucket, group), pairs in groups.items():
        metadata = {"host": f"host-{group}", "dc": "eu" if group % 2 else "us"}
        metadata_hash = group + 1
        await store.zadd(index_key(shard_key, bucket, config), f"{metadata_hash}-{json.dumps(metadata)}", metadata_hash)
        await store.set_bytes(blob_key(shard_key, bucket, metadata_hash, config), encode_points(pairs))


async def run_benchmark(num_points: int, num_groups: int, span_seconds: int, bucket_window: int):
    config = EngineConfig(bucket_window=bucket_window)
    async with sqlite_store_factory(":memory:") as store:
        start_seed = time.perf_counter()
        await seed(store, config, "bench", num_points, num_groups, span_seconds)
        seed_time = time.perf_counter() - start_seed

        engine = QueryEngine(store, config)
        query = Query(start_date=0, end_date=span_seconds * SECOND, shard_key="bench")
        start_query = time.perf_counter()
        result = await engine.query(query)
        query_time = time.perf_counter() - start_query

        filtered = Query(start_date=0, end_date=span_seconds * SECOND, shard_key="bench", filter={"dc": "eu"})
        start_filtered = time.perf_counter()
        filtered_result = await engine.query(filtered)
        filtered_time = time.perf_counter() - start_filtered

    throughput = len(result.points) / query_time if query_time > 0 else 0
    print(f"\n--- Results for {num_points} points in {num_groups} groups ---")
    print(f"Seed: {seed_time:.4f}s")
    print(f"Full window: {len(result.points)} points in {query_time:.4f}s ({throughput:,.0f} points/s)")
    print(f"Filtered (dc=eu): {len(filtered_result.points)} points in {filtered_time:.4f}s")


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--num-points", type=int, default=100_000)
    parser.add_argument("--num-groups", type=int, default=20)
    parser.add_argument("--span-seconds", type=int, default=86_400)
    parser.add_argument("--bucket-window", type=int, default=3600)
    args = parser.parse_args()
    await run_benchmark(args.num_points, args.num_groups, args.span_seconds, args.bucket_window)


if __name__ == "__main__":
    asyncio.run(main())
