"""Song-related domain entities.

Pure song representations and the feature vector consumed by the scoring
engine, with zero external dependencies beyond attrs.
"""

from collections.abc import Iterable
from typing import Any

import attrs
from attrs import define, field, validators


def _to_genres(value: Iterable[str] | None) -> tuple[str, ...] | None:
    """Normalize genres to an ordered tuple, keeping None as "unknown"."""
    if value is None:
        return None
    return tuple(value)


@define(frozen=True, slots=True)
class FeatureVector:
    """Immutable audio and metadata description of one song.

    The nine mandatory fields are assumed populated by the caller. Only the
    fields the scoring math would fail on are validated: tempo must be
    positive, key must index the pitch-class table, mode must be 0 or 1.
    """

    # High-level features (layer 1)
    valence: float
    energy: float
    danceability: float
    tempo: float = field(validator=validators.gt(0))
    acousticness: float = field(kw_only=True)

    # Musical structure (layer 2)
    key: int = field(kw_only=True, validator=[validators.ge(0), validators.le(11)])
    mode: int = field(kw_only=True, validator=validators.in_((0, 1)))
    time_signature: int = field(kw_only=True)
    loudness: float = field(kw_only=True)
    duration_ms: int = field(kw_only=True)

    # Metadata (layer 3)
    genres: tuple[str, ...] | None = field(
        default=None, kw_only=True, converter=_to_genres
    )
    artist: str | None = field(default=None, kw_only=True)
    release_year: int | None = field(default=None, kw_only=True)

    @property
    def has_genres(self) -> bool:
        """Whether genre information is available."""
        return bool(self.genres)

    def with_metadata(self, **changes: Any) -> "FeatureVector":
        """Create a new vector with updated fields."""
        return attrs.evolve(self, **changes)


@define(frozen=True, slots=True)
class SongRecord:
    """A song as fetched from a music platform, with its feature vector."""

    platform: str
    song_id: str
    title: str
    artist: str
    features: FeatureVector
    album: str | None = None
    release_year: int | None = None
    duration_ms: int | None = None
    popularity: int | None = None
    explicit: bool = False
    preview_url: str | None = None
    external_url: str | None = None
    image_url: str | None = None


@define(frozen=True, slots=True)
class SearchPage:
    """One page of search results from a feature source."""

    songs: tuple[SongRecord, ...] = field(factory=tuple, converter=tuple)
    total: int = 0
    limit: int = 20
    offset: int = 0
    has_more: bool = False

    def with_songs(self, songs: Iterable[SongRecord]) -> "SearchPage":
        """Create a new page with the given songs."""
        return attrs.evolve(self, songs=tuple(songs))
