"""Match two songs by id.

Resolves both songs through the source cache, then scores them through the
result cache. Upstream errors from the feature source propagate unchanged.
"""

import asyncio

from attrs import define, field, validators

from tunematch.application.services import MatchingService
from tunematch.config import get_logger
from tunematch.domain.entities import SongRecord
from tunematch.domain.matching import MatchResult
from tunematch.infrastructure.cache import SourceCache

logger = get_logger(__name__)

_non_empty = validators.min_len(1)


@define(frozen=True, slots=True)
class MatchSongsCommand:
    """Command for matching two songs on one platform."""

    song_a: str = field(validator=_non_empty)
    song_b: str = field(validator=_non_empty)
    platform: str = "spotify"
    bypass_cache: bool = False
    include_explanation: bool = True


@define(frozen=True, slots=True)
class MatchSongsResult:
    song_a: SongRecord
    song_b: SongRecord
    match: MatchResult


@define(slots=True)
class MatchSongsUseCase:
    """Use case resolving two song ids and scoring the pair."""

    source_cache: SourceCache
    matching_service: MatchingService

    async def execute(self, command: MatchSongsCommand) -> MatchSongsResult:
        logger.debug(
            f"Matching {command.platform} songs {command.song_a} and {command.song_b}"
        )

        song_a, song_b = await asyncio.gather(
            self.source_cache.get_song(command.platform, command.song_a),
            self.source_cache.get_song(command.platform, command.song_b),
        )

        match = await self.matching_service.score_cached(
            command.song_a,
            song_a.features,
            command.song_b,
            song_b.features,
            bypass_cache=command.bypass_cache,
        )

        if not command.include_explanation:
            match = match.without_explanation()

        logger.info(
            f"Matched {command.song_a} and {command.song_b}: {match.overall_score}"
        )
        return MatchSongsResult(song_a=song_a, song_b=song_b, match=match)
