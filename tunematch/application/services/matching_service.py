"""Public scoring entry point.

``score`` is the uncached path; ``score_cached`` goes through the result
cache. Callers resolve song ids to feature vectors themselves, typically via
the source cache.
"""

from tunematch.domain.entities import FeatureVector
from tunematch.domain.matching import MatchResult, ScoreEngine
from tunematch.infrastructure.cache import ResultCache


class MatchingService:
    """Scores feature vector pairs, optionally through the result cache."""

    def __init__(self, engine: ScoreEngine, result_cache: ResultCache) -> None:
        self.engine = engine
        self.result_cache = result_cache

    def score(self, a: FeatureVector, b: FeatureVector) -> MatchResult:
        return self.engine.score(a, b)

    async def score_cached(
        self,
        id_a: str,
        a: FeatureVector,
        id_b: str,
        b: FeatureVector,
        bypass_cache: bool = False,
    ) -> MatchResult:
        """Score through the result cache.

        Never fails because of the cache: store errors degrade to a fresh
        computation.
        """
        return await self.result_cache.get_or_compute(id_a, id_b, a, b, bypass=bypass_cache)
