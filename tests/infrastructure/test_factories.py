"""Tests for wiring the service graph from settings."""

from datetime import timedelta

import pytest

from tunematch.config import Settings
from tunematch.infrastructure.factories import (
    build_match_services,
    create_key_value_store,
)
from tunematch.infrastructure.persistence.stores import (
    InMemoryKeyValueStore,
    SQLAlchemyKeyValueStore,
)


class TestCreateKeyValueStore:
    @pytest.mark.asyncio
    async def test_memory_backend(self):
        store = await create_key_value_store(Settings(_env_file=None, cache_backend="memory"))
        assert isinstance(store, InMemoryKeyValueStore)

    @pytest.mark.asyncio
    async def test_database_backend_creates_schema(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path}/nested/dir/kv.db"
        store = await create_key_value_store(Settings(_env_file=None, database_url=url))
        try:
            assert isinstance(store, SQLAlchemyKeyValueStore)
            await store.set_with_ttl("k", b"v", 60)
            assert await store.get("k") == b"v"
        finally:
            await store.close()
        assert (tmp_path / "nested" / "dir" / "kv.db").exists()


class TestBuildMatchServices:
    @pytest.mark.asyncio
    async def test_caches_share_one_store(self, memory_store, fake_source):
        services = await build_match_services(store=memory_store, source=fake_source)

        assert services.result_cache.store is services.source_cache.store is memory_store
        assert services.matching_service.result_cache is services.result_cache
        assert services.match_songs.source_cache is services.source_cache

    @pytest.mark.asyncio
    async def test_settings_flow_into_caches(self, memory_store, fake_source):
        config = Settings(
            _env_file=None,
            cache={"result_ttl_days": 1, "source_prefix": "track:", "result_prefix": "pair:"},
            matching={"algorithm_version": "1.1"},
        )

        services = await build_match_services(config, store=memory_store, source=fake_source)

        assert services.result_cache.ttl == timedelta(days=1)
        assert services.result_cache.prefix == "pair:"
        assert services.source_cache.prefix == "track:"
        assert services.engine.algorithm_version == "1.1"

    @pytest.mark.asyncio
    async def test_aclose_drains_and_closes(self, memory_store, fake_source, catalogue):
        services = await build_match_services(store=memory_store, source=fake_source)
        a = catalogue["song-a"].features
        await services.matching_service.score_cached("song-a", a, "song-b", a)

        await services.aclose()

        assert services.result_cache.pending_writes == 0
        assert len(memory_store) == 0
