from .factory import sqlite_engine_factory, sqlite_store_factory
from .handle import SQLiteStore

__all__ = ["sqlite_engine_factory", "sqlite_store_factory", "SQLiteStore"]
