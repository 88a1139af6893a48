"""SQLAlchemy models backing the SQL key-value store."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, LargeBinary, MetaData, String
from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tunematch.config import get_logger

logger = get_logger(__name__)

# Define naming convention for constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class TunematchDBBase(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""

    metadata = metadata

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


class DBCacheEntry(TunematchDBBase):
    """One key of the shared key-value store.

    Both caches live in this table, separated by key prefix.
    """

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables that don't exist yet. Existing data is untouched."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(TunematchDBBase.metadata.create_all)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    logger.info("Database schema initialization complete")
