"""Tests for the in-memory key-value store."""

import pytest


class TestInMemoryKeyValueStore:
    @pytest.mark.asyncio
    async def test_set_and_get(self, memory_store):
        await memory_store.set_with_ttl("k", b"value", 60)
        assert await memory_store.get("k") == b"value"

    @pytest.mark.asyncio
    async def test_missing_key(self, memory_store):
        assert await memory_store.get("nope") is None
        assert await memory_store.ttl_remaining("nope") is None

    @pytest.mark.asyncio
    async def test_overwrite_resets_ttl(self, memory_store, clock):
        await memory_store.set_with_ttl("k", b"one", 60)
        clock.advance(seconds=30)
        await memory_store.set_with_ttl("k", b"two", 60)

        assert await memory_store.get("k") == b"two"
        assert await memory_store.ttl_remaining("k") == 60

    @pytest.mark.asyncio
    async def test_expiry(self, memory_store, clock):
        await memory_store.set_with_ttl("k", b"value", 60)
        clock.advance(seconds=59)
        assert await memory_store.ttl_remaining("k") == 1

        clock.advance(seconds=1)
        assert await memory_store.get("k") is None
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_delete(self, memory_store):
        await memory_store.set_with_ttl("k", b"value", 60)

        assert await memory_store.delete("k") is True
        assert await memory_store.delete("k") is False

    @pytest.mark.asyncio
    async def test_delete_many(self, memory_store):
        for key in ("a", "b", "c"):
            await memory_store.set_with_ttl(key, b"x", 60)

        assert await memory_store.delete_many(["a", "c", "missing"]) == 2
        assert await memory_store.get("b") == b"x"

    @pytest.mark.asyncio
    async def test_keys_by_prefix_skips_expired(self, memory_store, clock):
        await memory_store.set_with_ttl("match:a:b", b"x", 10)
        await memory_store.set_with_ttl("match:c:d", b"x", 100)
        await memory_store.set_with_ttl("song:spotify:1", b"x", 100)
        clock.advance(seconds=20)

        assert await memory_store.keys_by_prefix("match:") == ["match:c:d"]

    @pytest.mark.parametrize("prefix", ["", "song:"])
    @pytest.mark.asyncio
    async def test_keys_by_prefix_matching(self, memory_store, prefix):
        await memory_store.set_with_ttl("song:spotify:1", b"x", 100)
        assert await memory_store.keys_by_prefix(prefix) == ["song:spotify:1"]

    @pytest.mark.asyncio
    async def test_close_clears(self, memory_store):
        await memory_store.set_with_ttl("k", b"value", 60)
        await memory_store.close()
        assert len(memory_store) == 0
