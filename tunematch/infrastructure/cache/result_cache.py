"""Pair-keyed cache of match results.

The cache sits in front of the score engine. A store outage only costs
performance: lookups that fail are misses and writes that fail are dropped
with an error log. Writes are fire-and-forget tasks so the caller never waits
on, or fails because of, the store.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta

from tunematch.config import get_logger
from tunematch.domain.entities import CacheEntry, FeatureVector, ResultCacheStats, utc_now
from tunematch.domain.errors import CacheStoreError
from tunematch.domain.matching import MatchResult, ScoreEngine
from tunematch.domain.repositories import KeyValueStoreProtocol

from .codecs import CacheDecodeError, decode_match_entry, encode_entry

logger = get_logger(__name__)

DEFAULT_RESULT_TTL = timedelta(days=7)


def pair_key(id_a: str, id_b: str) -> str:
    """Order-independent key for a pair of song ids."""
    return ":".join(sorted((id_a, id_b)))


class ResultCache:
    """Caches ScoreEngine results keyed by the unordered song-id pair."""

    def __init__(
        self,
        store: KeyValueStoreProtocol,
        engine: ScoreEngine,
        *,
        ttl: timedelta = DEFAULT_RESULT_TTL,
        prefix: str = "match:",
        size_sample: int = 10,
        ttl_sample: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.engine = engine
        self.ttl = ttl
        self.prefix = prefix
        self.size_sample = size_sample
        self.ttl_sample = ttl_sample
        self.clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    def key_for(self, id_a: str, id_b: str) -> str:
        return f"{self.prefix}{pair_key(id_a, id_b)}"

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def get_or_compute(
        self,
        id_a: str,
        id_b: str,
        features_a: FeatureVector,
        features_b: FeatureVector,
        bypass: bool = False,
    ) -> MatchResult:
        """Return the cached result for the pair, or score it and cache it.

        With ``bypass`` the lookup is skipped but the fresh result is still
        written back.
        """
        key = self.key_for(id_a, id_b)

        if not bypass:
            cached = await self.lookup(key)
            if cached is not None:
                return cached

        result = self.engine.score(features_a, features_b)
        self._schedule_write(key, result)
        return result

    async def lookup(self, key: str) -> MatchResult | None:
        """Read a live entry. Store and decode failures count as a miss."""
        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.warning(f"Match cache read failed, treating as miss: {e}")
            return None

        if raw is None:
            logger.debug("Match cache miss", key=key)
            return None

        try:
            entry = decode_match_entry(raw)
        except CacheDecodeError as e:
            logger.warning(f"Discarding unreadable match cache entry {key}: {e}")
            return None

        if entry.is_expired(self.clock()):
            logger.debug("Match cache entry expired", key=key)
            return None

        logger.debug("Match cache hit", key=key)
        return entry.value

    def _schedule_write(self, key: str, result: MatchResult) -> None:
        task = asyncio.create_task(self._write(key, result))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, key: str, result: MatchResult) -> None:
        now = self.clock()
        entry = CacheEntry(key=key, value=result, cached_at=now, expires_at=now + self.ttl)
        try:
            await self.store.set_with_ttl(
                key, encode_entry(entry), int(self.ttl.total_seconds())
            )
        except Exception as e:
            logger.error(f"Failed to cache match result {key}: {e}")
            return
        logger.debug("Cached match result", key=key)

    async def drain(self) -> None:
        """Wait for all pending cache writes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def invalidate(self, id_a: str, id_b: str) -> bool:
        key = self.key_for(id_a, id_b)
        try:
            removed = await self.store.delete(key)
        except Exception as e:
            logger.error(f"Failed to invalidate match cache entry {key}: {e}")
            raise CacheStoreError(f"Could not invalidate {key}") from e
        logger.debug("Invalidated match cache entry", key=key, removed=removed)
        return removed

    async def clear_all(self) -> int:
        """Delete every match result. Returns the number of entries removed."""
        try:
            keys = await self.store.keys_by_prefix(self.prefix)
            removed = await self.store.delete_many(keys) if keys else 0
        except Exception as e:
            logger.error(f"Failed to clear match cache: {e}")
            raise CacheStoreError("Could not clear match cache") from e
        logger.warning(f"Cleared {removed} match cache entries")
        return removed

    async def stats(self) -> ResultCacheStats:
        """Approximate entry count, byte size and oldest key.

        Size is the mean length of a small sample of values extrapolated to
        all keys. The oldest key is the sampled key with the least remaining
        TTL, since every entry is written with the same TTL.
        """
        try:
            keys = await self.store.keys_by_prefix(self.prefix)

            sizes = []
            for key in keys[: self.size_sample]:
                raw = await self.store.get(key)
                if raw is not None:
                    sizes.append(len(raw))
            estimated_size = int(sum(sizes) / len(sizes) * len(keys)) if sizes else 0

            oldest_key = None
            least_remaining = None
            for key in keys[: self.ttl_sample]:
                remaining = await self.store.ttl_remaining(key)
                if remaining is None:
                    continue
                if least_remaining is None or remaining < least_remaining:
                    least_remaining = remaining
                    oldest_key = key
        except Exception as e:
            logger.error(f"Failed to collect match cache stats: {e}")
            raise CacheStoreError("Could not collect match cache stats") from e

        return ResultCacheStats(
            total_keys=len(keys),
            estimated_size_bytes=estimated_size,
            oldest_key=oldest_key,
        )
