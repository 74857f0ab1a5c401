"""
This module exports the query engine, its data models, and the SQLite store factories.
The Redis adapter lives in `chronodium.adaptors.redis`.
"""
from .models import BucketScan, EngineConfig, MetadataHash, Point, Query, ResultSet
from .exceptions import (
    ChronodiumError,
    CorruptBlobError,
    KeyNotFoundError,
    StoreError,
    WindowOrderError,
)
from .engine import QueryEngine
from .adaptors.sqlite import sqlite_engine_factory, sqlite_store_factory

__all__ = [
    "BucketScan",
    "EngineConfig",
    "MetadataHash",
    "Point",
    "Query",
    "ResultSet",
    "ChronodiumError",
    "CorruptBlobError",
    "KeyNotFoundError",
    "StoreError",
    "WindowOrderError",
    "QueryEngine",
    "sqlite_engine_factory",
    "sqlite_store_factory",
]
