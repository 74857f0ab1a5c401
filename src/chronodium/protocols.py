"""
This module defines the abstract protocols for the storage backend and the
query engine.

The engine only ever talks to a `Store`, so the same bucket scanning logic runs
against SQLite, Redis, or anything else that can serve a sorted set with scores
and a raw byte value per key.
"""
from typing import List, Protocol, Tuple

from .models import Query, ResultSet


class Store(Protocol):
    """
    Defines the contract that all storage adapters must implement.
    Implementations must be safe for concurrent use by simultaneous queries.
    """

    async def get_sorted_set_with_scores(self, key: str) -> List[Tuple[str, float]]:
        """Returns every (member, score) of the sorted set at `key`; empty if absent."""
        ...

    async def get_bytes(self, key: str) -> bytes:
        """Returns the raw value at `key`. Raises `KeyNotFoundError` if it does not exist."""
        ...

    async def close(self):
        ...


class Engine(Protocol):
    """
    Defines the public query surface.
    This allows factories to hand out an engine without coupling callers
    to a specific implementation class.
    """

    async def query(self, query: Query, timeout: float | None = None) -> ResultSet:
        ...

    async def get_metric_names(self) -> List[str]:
        ...
