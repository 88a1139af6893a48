"""Rule-based natural-language explanations for match results.

Explanations are a pure function of the two feature vectors, the layer
breakdown and the overall score. Strengths and weaknesses come from a fixed
rule table evaluated in order; the descriptive details describe the first
song only.
"""

from collections.abc import Callable

from attrs import define

from tunematch.domain.entities.song import FeatureVector

from .types import ExplanationDetails, MatchBreakdown, MatchExplanation

KEY_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# (minimum overall score, summary sentence), checked top-down
SUMMARY_BUCKETS = (
    (80, "These songs are very similar and would pair well together!"),
    (60, "These songs share some similarities but have notable differences."),
    (40, "These songs have some common elements but differ in key aspects."),
    (0, "These songs don't match well - they're quite different."),
)

SentenceFn = Callable[[FeatureVector, FeatureVector], str]


def key_name(key: int, mode: int) -> str:
    """Human-readable key, e.g. ``C Major`` or ``F# Minor``."""
    return f"{KEY_NAMES[key]} {'Major' if mode == 1 else 'Minor'}"


def speed_label(tempo: float) -> str:
    if tempo < 90:
        return "slow"
    if tempo < 120:
        return "moderate"
    return "fast"


def _mood_label(valence: float) -> str:
    return "happy" if valence >= 0.5 else "sad"


def _energy_label(energy: float) -> str:
    return "energetic" if energy >= 0.5 else "mellow"


def _shared_genres(a: FeatureVector, b: FeatureVector) -> str:
    other = {genre.casefold() for genre in b.genres or ()}
    shared = [genre for genre in a.genres or () if genre.casefold() in other]
    return ", ".join(shared[:3])


def _both_have_genres(a: FeatureVector, b: FeatureVector) -> bool:
    return a.has_genres and b.has_genres


@define(frozen=True, slots=True)
class ExplanationRule:
    """One row of the strengths/weaknesses table.

    A strength is reported when the component's similarity is above
    ``strength_above``; a weakness when it is below ``weakness_below``.
    """

    component: str
    layer: str
    strength_above: float
    weakness_below: float
    strength: SentenceFn
    weakness: SentenceFn
    applies: Callable[[FeatureVector, FeatureVector], bool] = lambda a, b: True


EXPLANATION_RULES = (
    ExplanationRule(
        component="valence",
        layer="layer1",
        strength_above=0.8,
        weakness_below=0.5,
        strength=lambda a, b: (
            f"Very similar mood and emotional tone "
            f"(valence {a.valence:.2f} vs {b.valence:.2f})"
        ),
        weakness=lambda a, b: (
            f"Different emotional vibes: {_mood_label(a.valence)} "
            f"vs {_mood_label(b.valence)}"
        ),
    ),
    ExplanationRule(
        component="energy",
        layer="layer1",
        strength_above=0.8,
        weakness_below=0.5,
        strength=lambda a, b: (
            f"Matching energy levels ({a.energy:.2f} vs {b.energy:.2f})"
        ),
        weakness=lambda a, b: (
            f"Contrasting energy: {_energy_label(a.energy)} "
            f"vs {_energy_label(b.energy)}"
        ),
    ),
    ExplanationRule(
        component="tempo",
        layer="layer1",
        strength_above=0.7,
        weakness_below=0.5,
        strength=lambda a, b: (
            f"Similar tempo and rhythm ({round(a.tempo)} vs {round(b.tempo)} BPM)"
        ),
        weakness=lambda a, b: (
            f"Different tempo/speed: {round(a.tempo)} vs {round(b.tempo)} BPM"
        ),
    ),
    ExplanationRule(
        component="key_mode",
        layer="layer2",
        strength_above=0.8,
        weakness_below=0.5,
        strength=lambda a, b: (
            f"Harmonically compatible ({key_name(a.key, a.mode)} "
            f"and {key_name(b.key, b.mode)})"
        ),
        weakness=lambda a, b: (
            f"Different harmonic structure: {key_name(a.key, a.mode)} "
            f"vs {key_name(b.key, b.mode)}"
        ),
    ),
    ExplanationRule(
        component="genre",
        layer="layer3",
        strength_above=0.5,
        weakness_below=0.2,
        strength=lambda a, b: f"Shared musical genres ({_shared_genres(a, b)})",
        weakness=lambda a, b: (
            f"Different genres: {a.genres[0]} vs {b.genres[0]}"  # type: ignore[index]
        ),
        applies=_both_have_genres,
    ),
)


def describe_mood(valence: float, energy: float) -> str:
    if valence > 0.7 and energy > 0.7:
        return "Upbeat and energetic"
    if valence > 0.7 and energy < 0.4:
        return "Happy but calm"
    if valence < 0.4 and energy > 0.7:
        return "Intense and dark"
    if valence < 0.4 and energy < 0.4:
        return "Melancholic and subdued"
    return "Moderate mood and energy"


def describe_rhythm(tempo: float, danceability: float) -> str:
    if danceability > 0.7:
        dance = "very danceable"
    elif danceability > 0.4:
        dance = "somewhat danceable"
    else:
        dance = "not very danceable"
    return f"{speed_label(tempo)} tempo ({round(tempo)} BPM), {dance}"


def describe_style(genres: tuple[str, ...] | None, artist: str | None) -> str:
    if not genres:
        return artist or "Unknown style"
    style = ", ".join(genres[:2])
    return f"{style} by {artist}" if artist else style


def summarize(overall_score: int) -> str:
    for minimum, sentence in SUMMARY_BUCKETS:
        if overall_score >= minimum:
            return sentence
    return SUMMARY_BUCKETS[-1][1]


class ExplanationGenerator:
    """Derives a deterministic explanation from a scored pair."""

    def __init__(self, rules: tuple[ExplanationRule, ...] = EXPLANATION_RULES) -> None:
        self.rules = rules

    def generate(
        self,
        a: FeatureVector,
        b: FeatureVector,
        breakdown: MatchBreakdown,
        overall_score: int,
    ) -> MatchExplanation:
        strengths: list[str] = []
        weaknesses: list[str] = []

        for rule in self.rules:
            if not rule.applies(a, b):
                continue
            layer = getattr(breakdown, rule.layer)
            similarity = layer.similarity(rule.component)
            if similarity > rule.strength_above:
                strengths.append(rule.strength(a, b))
            elif similarity < rule.weakness_below:
                weaknesses.append(rule.weakness(a, b))

        return MatchExplanation(
            summary=summarize(overall_score),
            strengths=strengths,
            weaknesses=weaknesses,
            details=self.describe(a),
        )

    def describe(self, song: FeatureVector) -> ExplanationDetails:
        return ExplanationDetails(
            mood=describe_mood(song.valence, song.energy),
            rhythm=describe_rhythm(song.tempo, song.danceability),
            harmony=key_name(song.key, song.mode),
            style=describe_style(song.genres, song.artist),
        )
