"""Database engine, sessions and schema for the SQL key-value store."""

from .db_connection import create_db_engine, create_session_factory, get_session
from .db_models import DBCacheEntry, TunematchDBBase, init_db

__all__ = [
    "DBCacheEntry",
    "TunematchDBBase",
    "create_db_engine",
    "create_session_factory",
    "get_session",
    "init_db",
]
