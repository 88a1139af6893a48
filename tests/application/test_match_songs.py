"""Tests for the match-songs use case."""

import pytest

from tunematch.application.services import MatchingService
from tunematch.application.use_cases import MatchSongsCommand, MatchSongsUseCase
from tunematch.domain.errors import SongNotFoundError
from tunematch.domain.matching import ScoreEngine
from tunematch.infrastructure.cache import ResultCache, SourceCache


@pytest.fixture
def result_cache(memory_store, clock):
    return ResultCache(memory_store, ScoreEngine(), clock=clock)


@pytest.fixture
def use_case(memory_store, fake_source, result_cache, clock):
    source_cache = SourceCache(memory_store, fake_source, clock=clock)
    service = MatchingService(result_cache.engine, result_cache)
    return MatchSongsUseCase(source_cache, service)


class TestMatchSongsCommand:
    @pytest.mark.parametrize("ids", [("", "b"), ("a", "")])
    def test_empty_ids_rejected(self, ids):
        with pytest.raises(ValueError):
            MatchSongsCommand(song_a=ids[0], song_b=ids[1])

    def test_defaults(self):
        command = MatchSongsCommand(song_a="a", song_b="b")

        assert command.platform == "spotify"
        assert command.bypass_cache is False
        assert command.include_explanation is True


class TestMatchSongsUseCase:
    @pytest.mark.asyncio
    async def test_execute(self, use_case, catalogue, result_cache):
        result = await use_case.execute(MatchSongsCommand(song_a="song-a", song_b="song-b"))
        await result_cache.drain()

        assert result.song_a == catalogue["song-a"]
        assert result.song_b == catalogue["song-b"]
        assert result.match.overall_score == 100
        assert result.match.explanation is not None

    @pytest.mark.asyncio
    async def test_songs_and_result_are_cached(self, use_case, fake_source, memory_store, result_cache):
        command = MatchSongsCommand(song_a="song-a", song_b="song-b")
        await use_case.execute(command)
        await result_cache.drain()
        await use_case.execute(command)

        assert fake_source.fetch_by_id.await_count == 2
        assert sorted(await memory_store.keys_by_prefix("")) == [
            "match:song-a:song-b",
            "song:spotify:song-a",
            "song:spotify:song-b",
        ]

    @pytest.mark.asyncio
    async def test_without_explanation(self, use_case):
        result = await use_case.execute(
            MatchSongsCommand(song_a="song-a", song_b="song-b", include_explanation=False)
        )

        assert result.match.explanation is None

    @pytest.mark.asyncio
    async def test_cached_result_keeps_explanation(self, use_case, result_cache):
        """Stripping the explanation for one caller must not affect the cache."""
        await use_case.execute(
            MatchSongsCommand(song_a="song-a", song_b="song-b", include_explanation=False)
        )
        await result_cache.drain()

        cached = await result_cache.lookup(result_cache.key_for("song-a", "song-b"))

        assert cached.explanation is not None

    @pytest.mark.asyncio
    async def test_unknown_song_propagates(self, use_case, result_cache):
        with pytest.raises(SongNotFoundError):
            await use_case.execute(MatchSongsCommand(song_a="song-a", song_b="missing"))

        assert result_cache.pending_writes == 0
