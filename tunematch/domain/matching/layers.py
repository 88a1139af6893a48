"""Three fixed-weight similarity layers.

Layer 1 covers high-level perceptual features, layer 2 musical structure and
layer 3 genre and metadata. Each layer's weighted sum is normalized by the
layer's total weight, so every layer score lands in [0, 1].
"""

from collections.abc import Callable
import math

from attrs import define

from tunematch.domain.entities.song import FeatureVector

from . import algorithms
from .types import LayerResult, MatchBreakdown, ScoreComponent

SimilarityFn = Callable[[FeatureVector, FeatureVector], float]
ProjectionFn = Callable[[FeatureVector], float]


@define(frozen=True, slots=True)
class ComponentSpec:
    """How one named component is measured and displayed."""

    name: str
    weight: float
    label: str
    similarity: SimilarityFn
    project: ProjectionFn


@define(frozen=True, slots=True)
class LayerSpec:
    name: str
    total_weight: float
    components: tuple[ComponentSpec, ...]

    def validate(self) -> None:
        """Raise ValueError when sub-weights do not add up to the layer total."""
        weight_sum = sum(component.weight for component in self.components)
        if not math.isclose(weight_sum, self.total_weight, abs_tol=1e-9):
            raise ValueError(
                f"{self.name} sub-weights sum to {weight_sum}, expected {self.total_weight}"
            )


HIGH_LEVEL_LAYER = LayerSpec(
    name="layer1",
    total_weight=0.60,
    components=(
        ComponentSpec(
            "valence",
            0.15,
            "Mood/Positivity",
            lambda a, b: algorithms.continuous_similarity(a.valence, b.valence),
            lambda f: f.valence,
        ),
        ComponentSpec(
            "energy",
            0.15,
            "Energy Level",
            lambda a, b: algorithms.continuous_similarity(a.energy, b.energy),
            lambda f: f.energy,
        ),
        ComponentSpec(
            "danceability",
            0.12,
            "Danceability",
            lambda a, b: algorithms.continuous_similarity(
                a.danceability, b.danceability
            ),
            lambda f: f.danceability,
        ),
        ComponentSpec(
            "tempo",
            0.10,
            "Tempo (BPM)",
            lambda a, b: algorithms.tempo_similarity(a.tempo, b.tempo),
            lambda f: f.tempo,
        ),
        ComponentSpec(
            "acousticness",
            0.08,
            "Acousticness",
            lambda a, b: algorithms.continuous_similarity(
                a.acousticness, b.acousticness
            ),
            lambda f: f.acousticness,
        ),
    ),
)

STRUCTURE_LAYER = LayerSpec(
    name="layer2",
    total_weight=0.25,
    components=(
        ComponentSpec(
            "key_mode",
            0.10,
            "Key & Mode",
            lambda a, b: algorithms.key_similarity(a.key, a.mode, b.key, b.mode),
            lambda f: f.key + f.mode / 10,
        ),
        ComponentSpec(
            "time_signature",
            0.05,
            "Time Signature",
            lambda a, b: algorithms.time_signature_similarity(
                a.time_signature, b.time_signature
            ),
            lambda f: f.time_signature,
        ),
        ComponentSpec(
            "loudness",
            0.05,
            "Loudness",
            lambda a, b: algorithms.loudness_similarity(a.loudness, b.loudness),
            lambda f: f.loudness,
        ),
        ComponentSpec(
            "duration",
            0.05,
            "Duration",
            lambda a, b: algorithms.duration_similarity(a.duration_ms, b.duration_ms),
            lambda f: f.duration_ms,
        ),
    ),
)

METADATA_LAYER = LayerSpec(
    name="layer3",
    total_weight=0.15,
    components=(
        ComponentSpec(
            "genre",
            0.08,
            "Genre Overlap",
            lambda a, b: algorithms.genre_similarity(a.genres, b.genres),
            lambda f: len(f.genres or ()),
        ),
        ComponentSpec(
            "artist",
            0.04,
            "Artist Match",
            lambda a, b: algorithms.artist_similarity(a.artist, b.artist),
            lambda f: 1.0 if f.artist else 0.0,
        ),
        ComponentSpec(
            "era",
            0.03,
            "Era/Decade",
            lambda a, b: algorithms.era_similarity(a.release_year, b.release_year),
            lambda f: f.release_year or 0,
        ),
    ),
)

LAYERS = (HIGH_LEVEL_LAYER, STRUCTURE_LAYER, METADATA_LAYER)

for _layer in LAYERS:
    _layer.validate()

if not math.isclose(sum(layer.total_weight for layer in LAYERS), 1.0):
    raise ValueError("Layer weights must sum to 1.0")


class LayerAggregator:
    """Scores feature vector pairs layer by layer."""

    def __init__(self, layers: tuple[LayerSpec, ...] = LAYERS) -> None:
        if len(layers) != 3:
            raise ValueError("Exactly three layers are required")
        for layer in layers:
            layer.validate()
        self.layers = layers

    def score_layer(
        self, layer: LayerSpec, a: FeatureVector, b: FeatureVector
    ) -> LayerResult:
        components: dict[str, ScoreComponent] = {}
        weighted_sum = 0.0

        for spec in layer.components:
            similarity = spec.similarity(a, b)
            weighted_sum += similarity * spec.weight
            components[spec.name] = ScoreComponent(
                similarity=similarity,
                weight=spec.weight,
                values=(spec.project(a), spec.project(b)),
                label=spec.label,
            )

        score = min(1.0, max(0.0, weighted_sum / layer.total_weight))
        return LayerResult(score=score, components=components)

    def aggregate(self, a: FeatureVector, b: FeatureVector) -> MatchBreakdown:
        layer1, layer2, layer3 = (
            self.score_layer(layer, a, b) for layer in self.layers
        )
        return MatchBreakdown(layer1=layer1, layer2=layer2, layer3=layer3)

    def weighted_total(self, breakdown: MatchBreakdown) -> float:
        """Combine layer scores with their layer weights into [0, 1]."""
        scores = (breakdown.layer1.score, breakdown.layer2.score, breakdown.layer3.score)
        return sum(
            score * layer.total_weight
            for score, layer in zip(scores, self.layers, strict=True)
        )
