"""Domain interfaces for the collaborators the caches depend on.

These protocols define the contracts for storage and feature lookup without
depending on infrastructure implementations, following the dependency
inversion principle.
"""

from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tunematch.domain.entities import SearchPage, SongRecord


class KeyValueStoreProtocol(Protocol):
    """Byte-oriented key-value store shared by both caches under key prefixes.

    Stores are assumed last-write-wins. A store may expire keys on its own
    once their TTL elapses.
    """

    def get(self, key: str) -> Awaitable[bytes | None]:
        """Return the stored bytes, or None when absent or expired."""
        ...

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> Awaitable[None]:
        """Create or overwrite a key with a time-to-live in seconds."""
        ...

    def delete(self, key: str) -> Awaitable[bool]:
        """Delete one key. Returns whether it existed."""
        ...

    def delete_many(self, keys: Sequence[str]) -> Awaitable[int]:
        """Delete several keys. Returns how many existed."""
        ...

    def keys_by_prefix(self, prefix: str) -> Awaitable[list[str]]:
        """List live keys starting with ``prefix``."""
        ...

    def ttl_remaining(self, key: str) -> Awaitable[float | None]:
        """Seconds until the key expires, or None when it is absent."""
        ...

    def close(self) -> Awaitable[None]:
        """Release connections held by the store."""
        ...


class FeatureSourceProtocol(Protocol):
    """External platform that can produce song records with audio features.

    Implementations raise ``UpstreamError`` subclasses when a record cannot be
    produced.
    """

    def fetch_by_id(self, platform: str, song_id: str) -> Awaitable["SongRecord"]:
        """Fetch one song with its features."""
        ...

    def search(
        self, query: str, limit: int = 20, offset: int = 0
    ) -> Awaitable["SearchPage"]:
        """Search the platform catalogue."""
        ...
