"""Dict-backed key-value store.

Used by tests and by the ``memory`` cache backend. Nothing survives the
process. Expiry is checked lazily against an injectable clock.
"""

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from attrs import define

from tunematch.domain.entities import utc_now


@define(slots=True)
class _StoredValue:
    value: bytes
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class InMemoryKeyValueStore:
    """In-process implementation of KeyValueStoreProtocol."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._data: dict[str, _StoredValue] = {}
        self.clock = clock

    def _live(self, key: str) -> _StoredValue | None:
        stored = self._data.get(key)
        if stored is None:
            return None
        if stored.is_expired(self.clock()):
            del self._data[key]
            return None
        return stored

    async def get(self, key: str) -> bytes | None:
        stored = self._live(key)
        return stored.value if stored else None

    async def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        expires_at = self.clock() + timedelta(seconds=ttl_seconds)
        self._data[key] = _StoredValue(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def delete_many(self, keys: Sequence[str]) -> int:
        return sum(self._data.pop(key, None) is not None for key in keys)

    async def keys_by_prefix(self, prefix: str) -> list[str]:
        candidates = [key for key in self._data if key.startswith(prefix)]
        return [key for key in candidates if self._live(key) is not None]

    async def ttl_remaining(self, key: str) -> float | None:
        stored = self._live(key)
        if stored is None:
            return None
        return (stored.expires_at - self.clock()).total_seconds()

    async def close(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
