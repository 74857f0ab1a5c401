"""
This module implements the windowed query engine.

`QueryEngine` turns a `Query` into bucket scans against a `Store`, runs those
scans concurrently, and merges their output into a single chronologically
ordered `ResultSet` clipped to the exclusive query window.
"""
import asyncio
import logging
from operator import attrgetter
from typing import Dict, List

from .buckets import enumerate_buckets
from .models import BucketScan, EngineConfig, Point, Query, ResultSet
from .protocols import Engine, Store
from .scanner import scan_bucket


class QueryEngine(Engine):
    def __init__(self, store: Store, config: EngineConfig | None = None):
        self.store = store
        self.config = config or EngineConfig()

    async def query(self, query: Query, timeout: float | None = None) -> ResultSet:
        """
        Runs `query` and returns its points in ascending timestamp order.

        Raises `WindowOrderError` before touching the store if the window is
        inverted. `timeout` (falling back to `config.query_timeout`) bounds the
        whole query; on expiry all in-flight scans are cancelled and
        `asyncio.TimeoutError` is raised.
        """
        buckets = enumerate_buckets(query.start_date, query.end_date, query.shard_key, self.config)
        # Consecutive duplicates are expected from the enumerator.
        buckets = list(dict.fromkeys(buckets))
        logging.debug(f"Query on {query.shard_key} spans {len(buckets)} buckets")

        effective_timeout = timeout if timeout is not None else self.config.query_timeout
        if effective_timeout is None:
            scans = await self._scan_buckets(query.shard_key, buckets, query.filter)
        else:
            scans = await asyncio.wait_for(
                self._scan_buckets(query.shard_key, buckets, query.filter),
                timeout=effective_timeout,
            )

        errors: List[str] = []
        entries: List[Point] = []
        for scan in scans:
            entries.extend(scan.points)
            errors.extend(scan.errors)

        out = [p for p in entries if query.start_date < p.timestamp < query.end_date]
        out.sort(key=attrgetter("timestamp"))
        return ResultSet(points=out, partial=bool(errors), errors=errors)

    async def _scan_buckets(
        self, shard_key: str, buckets: List[int], filter: Dict[str, str]
    ) -> List[BucketScan]:
        """Scans all buckets concurrently; results are returned only once every scan is done."""
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def bounded_scan(bucket: int) -> BucketScan:
            async with semaphore:
                return await scan_bucket(self.store, self.config, shard_key, bucket, filter)

        tasks = [asyncio.create_task(bounded_scan(bucket)) for bucket in buckets]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            # gather leaves siblings running when one fails; a failed or
            # cancelled query must not leave scans behind.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def get_metric_names(self) -> List[str]:
        """
        Always returns an empty list.

        The write path keeps no index of metric names, so there is nothing to
        enumerate without scanning the whole keyspace.
        """
        return []
