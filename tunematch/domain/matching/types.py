"""Pure domain types for song similarity scoring.

These types represent the core concepts in the scoring domain with zero
external dependencies beyond attrs.
"""

from typing import Any

import attrs
from attrs import define, field


def _to_pair(value: Any) -> tuple[float, float]:
    first, second = value
    return (first, second)


@define(frozen=True, slots=True)
class ScoreComponent:
    """Similarity of one feature between two songs.

    ``values`` holds numeric projections of the two raw inputs so a breakdown
    can be displayed without the original vectors.
    """

    similarity: float
    weight: float
    values: tuple[float, float] = field(converter=_to_pair)
    label: str | None = None


@define(frozen=True, slots=True)
class LayerResult:
    """Normalized score of one layer plus the components that produced it."""

    score: float
    components: dict[str, ScoreComponent] = field(factory=dict)

    def similarity(self, name: str) -> float:
        """Similarity of a named component."""
        return self.components[name].similarity


@define(frozen=True, slots=True)
class MatchBreakdown:
    layer1: LayerResult
    layer2: LayerResult
    layer3: LayerResult


@define(frozen=True, slots=True)
class ExplanationDetails:
    """Descriptive sentences about a single song."""

    mood: str
    rhythm: str
    harmony: str
    style: str


@define(frozen=True, slots=True)
class MatchExplanation:
    summary: str
    strengths: tuple[str, ...] = field(factory=tuple, converter=tuple)
    weaknesses: tuple[str, ...] = field(factory=tuple, converter=tuple)
    details: ExplanationDetails | None = None


@define(frozen=True, slots=True)
class MatchResult:
    """Outcome of scoring two feature vectors.

    Created once per scoring call and stored verbatim by the result cache.
    """

    overall_score: int
    confidence: float
    breakdown: MatchBreakdown
    explanation: MatchExplanation | None
    processing_time_ms: float
    algorithm_version: str

    def without_explanation(self) -> "MatchResult":
        """Create a copy with the explanation removed."""
        return attrs.evolve(self, explanation=None)
