"""Score engine combining layer scores into a 0-100 match result."""

import math
import time

from tunematch.domain.entities.song import FeatureVector

from .explanation import ExplanationGenerator
from .layers import LayerAggregator
from .types import MatchResult

ALGORITHM_VERSION = "1.0"

MANDATORY_SIGNALS = 9
OPTIONAL_SIGNALS = 3


def round_half_up(value: float) -> int:
    """Round .5 upwards, ignoring float noise below 1e-6."""
    return math.floor(round(value, 6) + 0.5)


def calculate_confidence(a: FeatureVector, b: FeatureVector) -> float:
    """Share of tracked signals available on both sides.

    The nine mandatory features always count; genres, artist and release year
    each count only when present on both vectors.
    """
    available = MANDATORY_SIGNALS
    available += a.has_genres and b.has_genres
    available += bool(a.artist and b.artist)
    available += bool(a.release_year and b.release_year)
    return available / (MANDATORY_SIGNALS + OPTIONAL_SIGNALS)


class ScoreEngine:
    """Pure, synchronous scorer. Safe to share between concurrent callers."""

    def __init__(
        self,
        aggregator: LayerAggregator | None = None,
        explainer: ExplanationGenerator | None = None,
        algorithm_version: str = ALGORITHM_VERSION,
    ) -> None:
        self.aggregator = aggregator or LayerAggregator()
        self.explainer = explainer or ExplanationGenerator()
        self.algorithm_version = algorithm_version

    def score(self, a: FeatureVector, b: FeatureVector) -> MatchResult:
        """Score two feature vectors, with explanation and timing."""
        started = time.perf_counter()

        breakdown = self.aggregator.aggregate(a, b)
        total = self.aggregator.weighted_total(breakdown)
        overall_score = min(100, max(0, round_half_up(total * 100)))

        confidence = calculate_confidence(a, b)
        explanation = self.explainer.generate(a, b, breakdown, overall_score)

        elapsed_ms = (time.perf_counter() - started) * 1000
        return MatchResult(
            overall_score=overall_score,
            confidence=confidence,
            breakdown=breakdown,
            explanation=explanation,
            processing_time_ms=round(elapsed_ms, 2),
            algorithm_version=self.algorithm_version,
        )
