import json
import logging
from typing import Dict, List, Tuple

from pydantic import TypeAdapter

from .buckets import index_key
from .models import EngineConfig, MetadataHash
from .protocols import Store

_METADATA_ADAPTER = TypeAdapter(Dict[str, str])

MEMBER_DELIMITER = "-"


def parse_index_entry(member: str, score: float) -> Tuple[MetadataHash, Dict[str, str]]:
    """
    Splits one index entry into its hash and metadata.

    The member is `<marker>-<json>`; everything up to and including the first
    delimiter is discarded. A member with no delimiter is decoded whole.
    Raises `ValueError` (a JSON or validation error) or `RecursionError` on a bad payload.
    """
    _, sep, payload = member.partition(MEMBER_DELIMITER)
    if not sep:
        payload = member
    metadata = _METADATA_ADAPTER.validate_python(json.loads(payload))
    return MetadataHash(int(score)), metadata


def metadata_matches(metadata: Dict[str, str], filter: Dict[str, str]) -> bool:
    """True if every filter key is present in `metadata` with an equal value."""
    for key, value in filter.items():
        if key not in metadata or metadata[key] != value:
            return False
    return True


async def resolve_matching_hashes(
    store: Store,
    config: EngineConfig,
    shard_key: str,
    bucket: int,
    filter: Dict[str, str],
) -> Dict[MetadataHash, Dict[str, str]]:
    """
    Returns the metadata groups of `bucket` that satisfy `filter`, keyed by hash.
    Store failures propagate; undecodable entries are logged and skipped.
    """
    entries: List[Tuple[str, float]] = await store.get_sorted_set_with_scores(
        index_key(shard_key, bucket, config)
    )

    matches: Dict[MetadataHash, Dict[str, str]] = {}
    for member, score in entries:
        try:
            metadata_hash, metadata = parse_index_entry(member, score)
        except (ValueError, OverflowError, RecursionError) as e:
            logging.warning(f"Skipping invalid metadata entry in bucket {bucket} of {shard_key}: {e}")
            continue
        if metadata_matches(metadata, filter):
            matches[metadata_hash] = metadata
    return matches
