"""Redis-backed key-value store using ``redis.asyncio``.

Redis expires keys on its own; ``SET ... EX`` carries the TTL and ``SCAN`` is
used for prefix listings so large keyspaces are not blocked by ``KEYS``.
"""

from collections.abc import Sequence

from redis.asyncio import Redis

from tunematch.config import get_logger

logger = get_logger(__name__)

SCAN_BATCH_SIZE = 500


class RedisKeyValueStore:
    """KeyValueStoreProtocol over a Redis server."""

    def __init__(self, client: Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        """Create a store from a Redis connection URL (redis://host:port/db)."""
        logger.info(f"Redis key-value store initialized: {url}")
        return cls(Redis.from_url(url))

    async def get(self, key: str) -> bytes | None:
        return await self.client.get(key)

    async def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        await self.client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> bool:
        return bool(await self.client.delete(key))

    async def delete_many(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        return int(await self.client.delete(*keys))

    async def keys_by_prefix(self, prefix: str) -> list[str]:
        keys = []
        async for key in self.client.scan_iter(match=f"{prefix}*", count=SCAN_BATCH_SIZE):
            keys.append(key.decode("utf-8") if isinstance(key, bytes) else key)
        return keys

    async def ttl_remaining(self, key: str) -> float | None:
        ttl = await self.client.ttl(key)
        # -2: key does not exist, -1: key has no expiry
        if ttl == -2:
            return None
        if ttl == -1:
            return float("inf")
        return float(ttl)

    async def close(self) -> None:
        await self.client.aclose()
