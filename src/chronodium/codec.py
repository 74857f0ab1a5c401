"""
Binary layout of a point blob.

A blob is a flat run of 16-byte records with no header or separators:
a little-endian signed 64-bit nanosecond timestamp followed by a little-endian
IEEE-754 double. Records are in write order, not time order.
"""
import logging
import struct
from typing import Dict, Iterable, List, Tuple

from .exceptions import CorruptBlobError
from .models import Point

RECORD = struct.Struct("<qd")
RECORD_SIZE = RECORD.size  # 16


def decode_points(blob: bytes, metadata: Dict[str, str], *, strict: bool = True) -> List[Point]:
    """
    Decodes every record of `blob` into a Point carrying `metadata`.

    All points of one blob share the very same metadata dict. A blob whose
    length is not a multiple of the record size raises `CorruptBlobError` when
    `strict`, otherwise the trailing partial record is dropped with a warning.
    """
    remainder = len(blob) % RECORD_SIZE
    if remainder:
        if strict:
            raise CorruptBlobError(
                f"Blob of {len(blob)} bytes is not a multiple of {RECORD_SIZE}-byte records"
            )
        logging.warning(f"Dropping {remainder} trailing bytes of a truncated point blob")
        blob = blob[: len(blob) - remainder]

    # Values come straight off the wire in a known layout, so skip revalidation.
    return [
        Point.model_construct(timestamp=timestamp, value=value, metadata=metadata)
        for timestamp, value in RECORD.iter_unpack(blob)
    ]


def encode_points(pairs: Iterable[Tuple[int, float]]) -> bytes:
    return b"".join(RECORD.pack(timestamp, value) for timestamp, value in pairs)
