"""SQL key-value store over async SQLAlchemy.

Keys live in the ``cache_entries`` table. Writes are upserts using the
dialect's ``ON CONFLICT DO UPDATE`` so concurrent writers end up
last-write-wins. Expired rows are hidden from reads; ``purge_expired()``
reclaims them.
"""

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tunematch.config import get_logger
from tunematch.domain.entities import ensure_utc, utc_now
from tunematch.infrastructure.persistence.database import (
    DBCacheEntry,
    create_session_factory,
    get_session,
)
from tunematch.infrastructure.persistence.repo_decorator import db_operation

logger = get_logger(__name__)


class SQLAlchemyKeyValueStore:
    """KeyValueStoreProtocol over a relational database."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)
        self.clock = clock

    def _insert(self):
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(DBCacheEntry)
        return sqlite.insert(DBCacheEntry)

    @db_operation("kv_get")
    async def get(self, key: str) -> bytes | None:
        stmt = select(DBCacheEntry.value).where(
            DBCacheEntry.key == key,
            DBCacheEntry.expires_at > self.clock(),
        )
        async with get_session(self.session_factory) as session:
            return (await session.execute(stmt)).scalar_one_or_none()

    @db_operation("kv_set")
    async def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        now = self.clock()
        expires_at = now + timedelta(seconds=ttl_seconds)
        stmt = self._insert().values(
            key=key,
            value=value,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DBCacheEntry.key],
            set_={
                "value": stmt.excluded.value,
                "expires_at": stmt.excluded.expires_at,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        async with get_session(self.session_factory) as session:
            await session.execute(stmt)

    @db_operation("kv_delete")
    async def delete(self, key: str) -> bool:
        async with get_session(self.session_factory) as session:
            result = await session.execute(
                delete(DBCacheEntry).where(DBCacheEntry.key == key)
            )
            return result.rowcount > 0

    @db_operation("kv_delete_many")
    async def delete_many(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        async with get_session(self.session_factory) as session:
            result = await session.execute(
                delete(DBCacheEntry).where(DBCacheEntry.key.in_(list(keys)))
            )
            return result.rowcount

    @db_operation("kv_keys_by_prefix")
    async def keys_by_prefix(self, prefix: str) -> list[str]:
        stmt = (
            select(DBCacheEntry.key)
            .where(
                DBCacheEntry.key.startswith(prefix, autoescape=True),
                DBCacheEntry.expires_at > self.clock(),
            )
            .order_by(DBCacheEntry.key)
        )
        async with get_session(self.session_factory) as session:
            return list((await session.execute(stmt)).scalars())

    @db_operation("kv_ttl_remaining")
    async def ttl_remaining(self, key: str) -> float | None:
        now = self.clock()
        stmt = select(DBCacheEntry.expires_at).where(
            DBCacheEntry.key == key,
            DBCacheEntry.expires_at > now,
        )
        async with get_session(self.session_factory) as session:
            expires_at = (await session.execute(stmt)).scalar_one_or_none()
        if expires_at is None:
            return None
        return (ensure_utc(expires_at) - now).total_seconds()

    @db_operation("kv_purge_expired")
    async def purge_expired(self) -> int:
        """Physically delete rows whose TTL has elapsed."""
        async with get_session(self.session_factory) as session:
            result = await session.execute(
                delete(DBCacheEntry).where(DBCacheEntry.expires_at <= self.clock())
            )
            removed = result.rowcount
        logger.info(f"Purged {removed} expired key-value rows")
        return removed

    async def close(self) -> None:
        await self.engine.dispose()
