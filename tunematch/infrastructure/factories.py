"""Composition root.

Builds the score engine, both caches and the application services with their
dependencies passed explicitly. The key-value store is created once here and
shared by both caches; whoever builds the services owns closing them.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from attrs import define

from tunematch.application.services import MatchingService
from tunematch.application.use_cases import MatchSongsUseCase
from tunematch.config import Settings, get_logger, settings as default_settings
from tunematch.domain.entities import utc_now
from tunematch.domain.matching import ScoreEngine
from tunematch.domain.repositories import FeatureSourceProtocol, KeyValueStoreProtocol
from tunematch.infrastructure.cache import ResultCache, SourceCache
from tunematch.infrastructure.connectors import SpotifyFeatureSource
from tunematch.infrastructure.persistence.database import create_db_engine, init_db
from tunematch.infrastructure.persistence.stores import (
    InMemoryKeyValueStore,
    SQLAlchemyKeyValueStore,
)
from tunematch.infrastructure.persistence.stores.redis_store import RedisKeyValueStore

logger = get_logger(__name__)


def _ensure_sqlite_directory(url: str) -> None:
    prefix = "sqlite+aiosqlite:///"
    if url.startswith(prefix) and ":memory:" not in url:
        Path(url[len(prefix) :].split("?", 1)[0]).parent.mkdir(parents=True, exist_ok=True)


async def create_key_value_store(
    config: Settings | None = None,
) -> KeyValueStoreProtocol:
    """Create the configured store backend, initializing its schema if needed."""
    config = config or default_settings
    backend = config.cache.backend

    if backend == "memory":
        store: KeyValueStoreProtocol = InMemoryKeyValueStore()
    elif backend == "redis":
        store = RedisKeyValueStore.from_url(config.cache.redis_url)
    else:
        _ensure_sqlite_directory(config.database.url)
        engine = create_db_engine(config.database)
        await init_db(engine)
        store = SQLAlchemyKeyValueStore(engine)

    logger.debug(f"Using {backend} key-value store")
    return store


def create_feature_source(config: Settings | None = None) -> SpotifyFeatureSource:
    config = config or default_settings
    return SpotifyFeatureSource(credentials=config.credentials, api=config.api)


@define(slots=True)
class MatchServices:
    """Everything the entry points need, sharing one store."""

    store: KeyValueStoreProtocol
    engine: ScoreEngine
    result_cache: ResultCache
    source_cache: SourceCache
    matching_service: MatchingService
    match_songs: MatchSongsUseCase

    async def aclose(self) -> None:
        """Flush pending cache writes, then release the store."""
        await self.result_cache.drain()
        await self.store.close()


async def build_match_services(
    config: Settings | None = None,
    *,
    store: KeyValueStoreProtocol | None = None,
    source: FeatureSourceProtocol | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> MatchServices:
    """Wire the full service graph from settings.

    ``store`` and ``source`` override the configured collaborators, which is
    how tests run the graph against in-memory fakes.
    """
    config = config or default_settings
    cache_config = config.cache

    store = store or await create_key_value_store(config)
    source = source or create_feature_source(config)

    engine = ScoreEngine(algorithm_version=config.matching.algorithm_version)
    result_cache = ResultCache(
        store,
        engine,
        ttl=timedelta(days=cache_config.result_ttl_days),
        prefix=cache_config.result_prefix,
        size_sample=cache_config.stats_size_sample,
        ttl_sample=cache_config.stats_ttl_sample,
        clock=clock,
    )
    source_cache = SourceCache(
        store,
        source,
        ttl=timedelta(days=cache_config.source_ttl_days),
        retention_grace=timedelta(hours=cache_config.source_retention_grace_hours),
        prefix=cache_config.source_prefix,
        clock=clock,
    )
    matching_service = MatchingService(engine, result_cache)

    return MatchServices(
        store=store,
        engine=engine,
        result_cache=result_cache,
        source_cache=source_cache,
        matching_service=matching_service,
        match_songs=MatchSongsUseCase(source_cache, matching_service),
    )
