"""Cache bookkeeping entities shared by the result and source caches."""

from datetime import datetime
from typing import Generic, TypeVar

from attrs import define, field

from .shared import ensure_utc

T = TypeVar("T")


@define(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value together with its lifecycle timestamps.

    Entries are owned by the cache that wrote them; callers of a cache only
    ever see ``value``.
    """

    key: str
    value: T
    cached_at: datetime = field(converter=ensure_utc)
    expires_at: datetime = field(converter=ensure_utc)

    def is_expired(self, now: datetime) -> bool:
        """Whether the entry's logical lifetime has elapsed at ``now``."""
        return self.expires_at <= ensure_utc(now)


@define(frozen=True, slots=True)
class ResultCacheStats:
    """Approximate size information for the match result cache.

    Both the byte size and the oldest key are estimates derived from samples.
    """

    total_keys: int
    estimated_size_bytes: int
    oldest_key: str | None = None


@define(frozen=True, slots=True)
class SourceCacheStats:
    """Exact entry counts for the song feature cache."""

    total: int
    expired: int
    by_platform: dict[str, int] = field(factory=dict)

    @property
    def active(self) -> int:
        return self.total - self.expired
