"""Pure similarity primitives for song matching.

Every function compares one feature of two songs and returns a similarity in
[0, 1]. These functions contain no external dependencies and hold no state
beyond the precomputed circle-of-fifths distance table.
"""

from collections.abc import Iterable

# Similarity scoring configuration
SIMILARITY_CONFIG = {
    # Tempo
    "tempo_octave_tolerance": 0.1,  # Ratio distance from 2x / 0.5x
    "tempo_octave_similarity": 0.7,  # Doubled or halved tempo feels similar
    "tempo_linear_range_bpm": 50,  # BPM difference at which similarity hits 0
    # Key and mode
    "key_same_tonic_other_mode": 0.7,  # e.g. C major vs C minor
    "key_max_fifths_distance": 6,
    "key_mode_mismatch_factor": 0.8,
    # Time signature
    "meter_kinship_similarity": 0.7,  # 3/4 vs 6/8
    "meter_mismatch_similarity": 0.3,
    # Loudness range in dB
    "loudness_floor_db": -60.0,
    "loudness_ceiling_db": 0.0,
    # Duration bands in seconds
    "duration_bands": ((10, 1.0), (30, 0.8), (60, 0.6)),
    "duration_decay_seconds": 300,
    # Era
    "era_max_decades": 5,
    # Missing optional metadata is unknown, not dissimilar
    "neutral_similarity": 0.5,
}

# Pitch classes ordered around the circle of fifths:
# C, G, D, A, E, B, F#, C#, G#, D#, A#, F
CIRCLE_OF_FIFTHS = (0, 7, 2, 9, 4, 11, 6, 1, 8, 3, 10, 5)

METER_KINSHIP = frozenset({3, 6})


def _build_circle_distance_matrix() -> tuple[tuple[int, ...], ...]:
    position = {pitch: index for index, pitch in enumerate(CIRCLE_OF_FIFTHS)}
    rows = []
    for first in range(12):
        row = []
        for second in range(12):
            clockwise = abs(position[first] - position[second])
            row.append(min(clockwise, 12 - clockwise))
        rows.append(tuple(row))
    return tuple(rows)


CIRCLE_DISTANCE_MATRIX = _build_circle_distance_matrix()


def continuous_similarity(value1: float, value2: float) -> float:
    """Similarity of two features already normalized to [0, 1]."""
    return 1 - abs(value1 - value2)


def tempo_similarity(bpm1: float, bpm2: float) -> float:
    """Tempo similarity with octave awareness.

    120 BPM and 240 BPM are perceived as related, so a ratio close to 2 (or
    0.5) earns a fixed similarity instead of the linear falloff. Both tempos
    must be positive; FeatureVector enforces this at construction.
    """
    ratio = max(bpm1, bpm2) / min(bpm1, bpm2)
    tolerance = SIMILARITY_CONFIG["tempo_octave_tolerance"]

    if abs(ratio - 2.0) < tolerance or abs(ratio - 0.5) < tolerance:
        return SIMILARITY_CONFIG["tempo_octave_similarity"]

    diff = abs(bpm1 - bpm2)
    return max(0.0, 1 - diff / SIMILARITY_CONFIG["tempo_linear_range_bpm"])


def key_similarity(key1: int, mode1: int, key2: int, mode2: int) -> float:
    """Harmonic similarity using circle-of-fifths distance."""
    if key1 == key2 and mode1 == mode2:
        return 1.0

    if key1 == key2:
        return SIMILARITY_CONFIG["key_same_tonic_other_mode"]

    distance = CIRCLE_DISTANCE_MATRIX[key1][key2]
    similarity = 1 - distance / SIMILARITY_CONFIG["key_max_fifths_distance"]

    if mode1 != mode2:
        similarity *= SIMILARITY_CONFIG["key_mode_mismatch_factor"]
    return similarity


def time_signature_similarity(signature1: int, signature2: int) -> float:
    if signature1 == signature2:
        return 1.0
    if {signature1, signature2} == METER_KINSHIP:
        return SIMILARITY_CONFIG["meter_kinship_similarity"]
    return SIMILARITY_CONFIG["meter_mismatch_similarity"]


def loudness_similarity(db1: float, db2: float) -> float:
    """Similarity of two loudness values after mapping [-60, 0] dB onto [0, 1]."""
    floor = SIMILARITY_CONFIG["loudness_floor_db"]
    span = SIMILARITY_CONFIG["loudness_ceiling_db"] - floor
    norm1 = (db1 - floor) / span
    norm2 = (db2 - floor) / span
    return 1 - abs(norm1 - norm2)


def duration_similarity(duration1_ms: int, duration2_ms: int) -> float:
    """Banded duration similarity with linear decay past one minute apart."""
    diff_seconds = abs(duration1_ms - duration2_ms) / 1000

    for limit_seconds, similarity in SIMILARITY_CONFIG["duration_bands"]:
        if diff_seconds < limit_seconds:
            return similarity

    return max(0.0, 1 - diff_seconds / SIMILARITY_CONFIG["duration_decay_seconds"])


def genre_similarity(
    genres1: Iterable[str] | None, genres2: Iterable[str] | None
) -> float:
    """Jaccard index of two genre sets, neutral when either side is unknown."""
    set1 = {genre.casefold() for genre in genres1 or ()}
    set2 = {genre.casefold() for genre in genres2 or ()}

    if not set1 or not set2:
        return SIMILARITY_CONFIG["neutral_similarity"]

    return len(set1 & set2) / len(set1 | set2)


def artist_similarity(artist1: str | None, artist2: str | None) -> float:
    """Exact, case-sensitive artist match, neutral when either side is unknown."""
    if not artist1 or not artist2:
        return SIMILARITY_CONFIG["neutral_similarity"]
    return 1.0 if artist1 == artist2 else 0.0


def decade_of(year: int) -> int:
    return year // 10 * 10


def era_similarity(year1: int | None, year2: int | None) -> float:
    """Decade-bucketed release era similarity, neutral when a year is unknown."""
    if not year1 or not year2:
        return SIMILARITY_CONFIG["neutral_similarity"]

    decade1, decade2 = decade_of(year1), decade_of(year2)
    if decade1 == decade2:
        return 1.0

    decades_apart = abs(decade1 - decade2) / 10
    return max(0.0, 1 - decades_apart / SIMILARITY_CONFIG["era_max_decades"])
