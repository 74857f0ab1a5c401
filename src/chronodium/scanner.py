import logging
from typing import Dict

from .buckets import blob_key
from .codec import decode_points
from .exceptions import CorruptBlobError, StoreError
from .models import BucketScan, EngineConfig
from .protocols import Store
from .resolver import resolve_matching_hashes


async def scan_bucket(
    store: Store,
    config: EngineConfig,
    shard_key: str,
    bucket: int,
    filter: Dict[str, str],
) -> BucketScan:
    """
    Reads every point of `bucket` whose metadata matches `filter`.

    Blobs are fetched one hash at a time in ascending hash order. Unless
    `config.fail_fast` is set, the first store or blob error ends the scan of
    this bucket: it is logged and recorded on the returned `BucketScan`, and the
    points gathered before it are kept.
    """
    scan = BucketScan(bucket=bucket)

    try:
        matches = await resolve_matching_hashes(store, config, shard_key, bucket, filter)
    except StoreError as e:
        if config.fail_fast:
            raise
        logging.error(f"Failed to read metadata index for bucket {bucket} of {shard_key}: {e}")
        scan.errors.append(f"bucket {bucket}: index: {e}")
        return scan

    for metadata_hash in sorted(matches):
        key = blob_key(shard_key, bucket, metadata_hash, config)
        try:
            blob = await store.get_bytes(key)
            points = decode_points(blob, matches[metadata_hash], strict=config.strict_blobs)
        except (StoreError, CorruptBlobError) as e:
            if config.fail_fast:
                raise
            logging.error(f"Error reading {key}: {e}")
            scan.errors.append(f"bucket {bucket}: hash {metadata_hash}: {e}")
            return scan
        scan.points.extend(points)

    return scan
