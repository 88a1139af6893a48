"""Cache of song records fetched from an external feature source.

Entries are keyed by ``(platform, song_id)`` and live for 30 days. Expiry is
checked lazily on read; ``sweep()`` bulk-removes expired entries and is meant
to be triggered by an external scheduler (the CLI exposes it).

Entries are written to the store with a TTL slightly longer than their logical
lifetime so that expired entries stay visible to ``sweep()`` and ``stats()``
for a grace window, while stores that expire keys themselves still reclaim
the space.
"""

from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta

from tunematch.config import get_logger
from tunematch.domain.entities import (
    CacheEntry,
    FeatureVector,
    SearchPage,
    SongRecord,
    SourceCacheStats,
    utc_now,
)
from tunematch.domain.errors import CacheStoreError
from tunematch.domain.repositories import FeatureSourceProtocol, KeyValueStoreProtocol

from .codecs import CacheDecodeError, decode_song_entry, encode_entry

logger = get_logger(__name__)

DEFAULT_SOURCE_TTL = timedelta(days=30)
DEFAULT_RETENTION_GRACE = timedelta(hours=24)


class SourceCache:
    """Read-through cache of song records in front of a FeatureSource."""

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        source: FeatureSourceProtocol,
        *,
        ttl: timedelta = DEFAULT_SOURCE_TTL,
        retention_grace: timedelta = DEFAULT_RETENTION_GRACE,
        prefix: str = "song:",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.source = source
        self.ttl = ttl
        self.retention_grace = retention_grace
        self.prefix = prefix
        self.clock = clock

    def key_for(self, platform: str, song_id: str) -> str:
        return f"{self.prefix}{platform}:{song_id}"

    def _platform_of(self, key: str) -> str:
        return key[len(self.prefix) :].split(":", 1)[0]

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    async def get_song(self, platform: str, song_id: str) -> SongRecord:
        """Return the cached record, fetching and caching it on a miss.

        Upstream errors from the feature source propagate unchanged.
        """
        key = self.key_for(platform, song_id)

        cached = await self._read_live(key)
        if cached is not None:
            logger.debug("Song cache hit", key=key)
            return cached

        logger.debug("Song cache miss, fetching from source", key=key)
        record = await self.source.fetch_by_id(platform, song_id)
        await self._store(record)
        return record

    async def get_features(self, platform: str, song_id: str) -> FeatureVector:
        record = await self.get_song(platform, song_id)
        return record.features

    async def _read_live(self, key: str) -> SongRecord | None:
        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.warning(f"Song cache read failed, treating as miss: {e}")
            return None

        if raw is None:
            return None

        try:
            entry = decode_song_entry(raw)
        except CacheDecodeError as e:
            logger.warning(f"Discarding unreadable song cache entry {key}: {e}")
            return None

        if entry.is_expired(self.clock()):
            logger.debug("Song cache entry expired, evicting", key=key)
            await self._evict(key)
            return None

        return entry.value

    async def _evict(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except Exception as e:
            logger.warning(f"Failed to evict expired song cache entry {key}: {e}")

    async def _store(self, record: SongRecord) -> bool:
        """Store or refresh a record. Failures are logged and dropped."""
        key = self.key_for(record.platform, record.song_id)
        now = self.clock()
        entry = CacheEntry(key=key, value=record, cached_at=now, expires_at=now + self.ttl)
        store_ttl = int((self.ttl + self.retention_grace).total_seconds())
        try:
            await self.store.set_with_ttl(key, encode_entry(entry), store_ttl)
        except Exception as e:
            logger.error(f"Failed to cache song {key}: {e}")
            return False
        logger.debug("Cached song", key=key)
        return True

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search(self, query: str, limit: int = 20, offset: int = 0) -> SearchPage:
        """Delegate a search to the source, caching every record it returns.

        The result set itself is not cached.
        """
        page = await self.source.search(query, limit=limit, offset=offset)

        stored = 0
        for record in page.songs:
            stored += await self._store(record)

        logger.debug(
            f"Search '{query}' returned {len(page.songs)} songs, cached {stored}"
        )
        return page

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    async def invalidate(self, platform: str, song_id: str) -> bool:
        key = self.key_for(platform, song_id)
        try:
            removed = await self.store.delete(key)
        except Exception as e:
            logger.error(f"Failed to invalidate song cache entry {key}: {e}")
            raise CacheStoreError(f"Could not invalidate {key}") from e
        logger.debug("Invalidated song cache entry", key=key, removed=removed)
        return removed

    async def _scan(self) -> tuple[list[str], list[str]]:
        """Return present keys and the keys whose entries are expired or unreadable."""
        now = self.clock()
        present, expired = [], []
        for key in await self.store.keys_by_prefix(self.prefix):
            raw = await self.store.get(key)
            if raw is None:
                continue
            present.append(key)
            try:
                entry = decode_song_entry(raw)
            except CacheDecodeError:
                expired.append(key)
                continue
            if entry.expires_at < now:
                expired.append(key)
        return present, expired

    async def sweep(self) -> int:
        """Bulk-delete expired entries. Returns the number removed."""
        try:
            _, expired = await self._scan()
            removed = await self.store.delete_many(expired) if expired else 0
        except Exception as e:
            logger.error(f"Song cache sweep failed: {e}")
            raise CacheStoreError("Could not sweep song cache") from e
        logger.info(f"Swept {removed} expired song cache entries")
        return removed

    async def clear_all(self) -> int:
        try:
            keys = await self.store.keys_by_prefix(self.prefix)
            removed = await self.store.delete_many(keys) if keys else 0
        except Exception as e:
            logger.error(f"Failed to clear song cache: {e}")
            raise CacheStoreError("Could not clear song cache") from e
        logger.warning(f"Cleared {removed} song cache entries")
        return removed

    async def stats(self) -> SourceCacheStats:
        """Exact totals, computed by reading every entry under the prefix."""
        try:
            keys, expired = await self._scan()
        except Exception as e:
            logger.error(f"Failed to collect song cache stats: {e}")
            raise CacheStoreError("Could not collect song cache stats") from e

        return SourceCacheStats(
            total=len(keys),
            expired=len(expired),
            by_platform=dict(Counter(self._platform_of(key) for key in keys)),
        )
