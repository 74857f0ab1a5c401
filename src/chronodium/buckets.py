"""
Bucket arithmetic and key layout shared with the write path.

A bucket is a fixed-width slice of time. The index of metadata groups and the
point blobs of a bucket live under keys derived from the shard key, the schema
version, the bucket width and the bucket id; these formats must match the
writer exactly or reads silently come back empty.
"""
from typing import List

from .exceptions import WindowOrderError
from .models import NANOS_PER_SECOND, EngineConfig, MetadataHash


def default_bucket(shard_key: str, timestamp: int, bucket_window: int) -> int:
    return timestamp // (bucket_window * NANOS_PER_SECOND)


def bucket_for(shard_key: str, timestamp: int, config: EngineConfig) -> int:
    bucket_fn = config.bucket_fn or default_bucket
    return bucket_fn(shard_key, timestamp, config.bucket_window)


def enumerate_buckets(start: int, end: int, shard_key: str, config: EngineConfig) -> List[int]:
    """
    Returns the buckets that may hold points in `[start, end]`, in time order.

    The cursor steps by one bucket width from `start` until it passes `end`,
    then the bucket of the final cursor position is appended as well so the
    bucket holding `end` is always covered. The same id can therefore appear
    twice in a row; scanning a bucket twice is harmless, and the engine
    deduplicates before scanning.
    """
    if start > end:
        raise WindowOrderError(
            f"Start time must be smaller than or equal to end time (start={start}, end={end})"
        )

    step = config.bucket_window * NANOS_PER_SECOND
    buckets: List[int] = []
    cursor = start
    while cursor <= end:
        buckets.append(bucket_for(shard_key, cursor, config))
        cursor += step
    buckets.append(bucket_for(shard_key, cursor, config))
    return buckets


def index_key(shard_key: str, bucket: int, config: EngineConfig) -> str:
    return (
        f"chronodium-{config.schema_version}-{{metric-{shard_key}}}"
        f"-{config.bucket_window}-{bucket}-raw"
    )


def blob_key(shard_key: str, bucket: int, metadata_hash: MetadataHash, config: EngineConfig) -> str:
    return f"{index_key(shard_key, bucket, config)}-{metadata_hash}"
