"""Song similarity scoring: primitives, layers, engine and explanations."""

from .algorithms import CIRCLE_DISTANCE_MATRIX, CIRCLE_OF_FIFTHS, SIMILARITY_CONFIG
from .engine import ALGORITHM_VERSION, ScoreEngine, calculate_confidence
from .explanation import ExplanationGenerator
from .layers import LAYERS, LayerAggregator
from .types import (
    ExplanationDetails,
    LayerResult,
    MatchBreakdown,
    MatchExplanation,
    MatchResult,
    ScoreComponent,
)

__all__ = [
    "ALGORITHM_VERSION",
    "CIRCLE_DISTANCE_MATRIX",
    "CIRCLE_OF_FIFTHS",
    "LAYERS",
    "SIMILARITY_CONFIG",
    "ExplanationDetails",
    "ExplanationGenerator",
    "LayerAggregator",
    "LayerResult",
    "MatchBreakdown",
    "MatchExplanation",
    "MatchResult",
    "ScoreComponent",
    "ScoreEngine",
    "calculate_confidence",
]
