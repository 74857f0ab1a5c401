"""
This module defines the core data models for the read path using Pydantic.
Queries and configuration are validated on construction; points are frozen
and serialize to the flat JSON shape consumers of the query API expect.
"""
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, List, NewType

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_serializer

NANOS_PER_SECOND = 1_000_000_000
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Supplied by the write path as the index score; never recomputed here.
MetadataHash = NewType("MetadataHash", int)


def to_unix_nanos(value: datetime) -> int:
    """Converts a datetime to integer nanoseconds since the epoch. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - EPOCH
    return (delta.days * 86_400 + delta.seconds) * NANOS_PER_SECOND + delta.microseconds * 1_000


def format_rfc3339_nano(timestamp: int) -> str:
    seconds, nanos = divmod(timestamp, NANOS_PER_SECOND)
    text = (EPOCH + timedelta(seconds=seconds)).strftime("%Y-%m-%dT%H:%M:%S")
    if nanos:
        text += "." + f"{nanos:09d}".rstrip("0")
    return text + "Z"


def format_float(value: float) -> str:
    """Shortest round-trip decimal representation, without exponent notation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int  # nanoseconds since the epoch
    value: float
    metadata: Dict[str, str]

    @model_serializer
    def serialize_flat(self) -> Dict[str, str]:
        out = dict(self.metadata)
        out["_date"] = format_rfc3339_nano(self.timestamp)
        out["_value"] = format_float(self.value)
        return out


_POINTS_ADAPTER = TypeAdapter(List[Point])


class Query(BaseModel):
    """
    A windowed query. Dates may be given as integer nanoseconds or as datetimes;
    both are normalized to nanoseconds. Ordering of the window is checked by
    the bucket enumerator, not here, so that it is reported as a query error.
    """
    model_config = ConfigDict(frozen=True)

    start_date: int
    end_date: int
    shard_key: str
    filter: Dict[str, str] = Field(default_factory=dict)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        if isinstance(value, datetime):
            return to_unix_nanos(value)
        return value


class BucketScan(BaseModel):
    bucket: int
    points: List[Point] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.errors


class ResultSet(BaseModel):
    points: List[Point] = Field(default_factory=list)
    # True when at least one bucket could not be read in full.
    partial: bool = False
    errors: List[str] = Field(default_factory=list)

    def points_json(self) -> str:
        return _POINTS_ADAPTER.dump_json(self.points).decode("utf-8")


class EngineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_version: int = 1
    bucket_window: int = Field(default=3600, gt=0)  # seconds
    fail_fast: bool = False
    strict_blobs: bool = True
    max_concurrency: int = Field(default=8, gt=0)
    query_timeout: float | None = None
    # (shard_key, timestamp_ns, bucket_window) -> bucket id
    bucket_fn: Callable[[str, int, int], int] | None = None
