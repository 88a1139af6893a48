"""Domain layer test fixtures - pure feature vectors with no dependencies.

Fast creation, no external dependencies, function-scoped for isolation.
"""

import pytest

from tests.fixtures.models import make_features
from tunematch.domain.entities import FeatureVector


@pytest.fixture
def identical_song():
    """Upbeat pop song with every optional field populated."""
    return make_features()


@pytest.fixture
def similar_song():
    """A close variant: a fifth away in key, ten seconds longer, shared genre."""
    return make_features(
        valence=0.82,
        energy=0.68,
        danceability=0.78,
        tempo=118.0,
        acousticness=0.28,
        key=7,
        loudness=-6.0,
        duration_ms=210000,
        genres=["pop", "synth-pop"],
        artist="Similar Artist",
        release_year=2021,
    )


@pytest.fixture
def opposite_song():
    """Slow, acoustic, minor-key classical piece from another era."""
    return make_features(
        valence=0.2,
        energy=0.3,
        danceability=0.25,
        tempo=60.0,
        acousticness=0.9,
        key=6,
        mode=0,
        time_signature=3,
        loudness=-15.0,
        duration_ms=400000,
        genres=["classical", "piano"],
        artist="Different Artist",
        release_year=1980,
    )


@pytest.fixture
def minimal_song():
    """Only the nine mandatory features."""
    return FeatureVector(
        valence=0.8,
        energy=0.7,
        danceability=0.75,
        tempo=120.0,
        acousticness=0.3,
        key=0,
        mode=1,
        time_signature=4,
        loudness=-5.0,
        duration_ms=200000,
    )
