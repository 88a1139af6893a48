"""Key-value store adapters shared by both caches."""

from .memory_store import InMemoryKeyValueStore
from .sql_store import SQLAlchemyKeyValueStore

__all__ = ["InMemoryKeyValueStore", "SQLAlchemyKeyValueStore"]
