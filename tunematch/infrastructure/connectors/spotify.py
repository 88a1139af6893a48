"""Spotify feature source with domain model conversion.

This module provides a FeatureSource for the Spotify Web API using the spotipy
library (https://spotipy.readthedocs.io/). It authenticates with the
client-credentials flow, combines a track with its audio features and its
primary artist's genres, and converts the result to a SongRecord.

Blocking spotipy calls run in a worker thread. Transient failures are retried
with exponential backoff; permanent failures are translated into the
UpstreamError hierarchy so callers never see spotipy or requests exceptions.
"""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from attrs import define, field
import backoff
import requests
import spotipy
from spotipy.oauth2 import SpotifyClientCredentials

from tunematch.config import get_logger, resilient_operation
from tunematch.config.settings import APIConfig, CredentialsConfig
from tunematch.domain.entities import FeatureVector, SearchPage, SongRecord
from tunematch.domain.errors import (
    RateLimitedError,
    SongNotFoundError,
    UpstreamError,
    UpstreamTimeoutError,
)

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="spotify")

PLATFORM = "spotify"

# Spotify API batch limits
AUDIO_FEATURES_BATCH = 100
ARTISTS_BATCH = 50


def _is_permanent(error: Exception) -> bool:
    """Client errors other than throttling are not worth retrying."""
    if isinstance(error, spotipy.SpotifyException):
        status = error.http_status or 0
        return 400 <= status < 500 and status != 429
    return False


def _retry_after(error: spotipy.SpotifyException) -> float | None:
    headers = error.headers or {}
    value = headers.get("Retry-After") or headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


@contextmanager
def translate_errors(song_id: str | None = None) -> Iterator[None]:
    """Map spotipy and requests failures onto UpstreamError subclasses."""
    try:
        yield
    except spotipy.SpotifyException as e:
        if e.http_status == 404:
            raise SongNotFoundError(
                f"Spotify has no song {song_id}", platform=PLATFORM, song_id=song_id
            ) from e
        if e.http_status == 429:
            raise RateLimitedError(
                "Spotify rate limit exceeded",
                platform=PLATFORM,
                song_id=song_id,
                retry_after=_retry_after(e),
            ) from e
        raise UpstreamError(
            f"Spotify request failed ({e.http_status}): {e.msg}",
            platform=PLATFORM,
            song_id=song_id,
        ) from e
    except requests.exceptions.Timeout as e:
        raise UpstreamTimeoutError(
            "Spotify request timed out", platform=PLATFORM, song_id=song_id
        ) from e
    except requests.exceptions.RequestException as e:
        raise UpstreamError(
            f"Spotify request failed: {e}", platform=PLATFORM, song_id=song_id
        ) from e


def _release_year(album: dict[str, Any]) -> int | None:
    release_date = album.get("release_date") or ""
    try:
        return int(release_date[:4])
    except ValueError:
        return None


def convert_spotify_song(
    track: dict[str, Any],
    audio_features: dict[str, Any],
    genres: list[str] | None = None,
) -> SongRecord:
    """Convert Spotify track, audio-features and genre data to a SongRecord.

    Raises:
        ValueError: If the audio features cannot form a valid FeatureVector
            (Spotify reports key -1 or tempo 0 when detection failed).
    """
    album = track.get("album") or {}
    artists = track.get("artists") or []
    artist_name = artists[0]["name"] if artists else ""
    release_year = _release_year(album)
    images = album.get("images") or []

    features = FeatureVector(
        valence=audio_features["valence"],
        energy=audio_features["energy"],
        danceability=audio_features["danceability"],
        tempo=audio_features["tempo"],
        acousticness=audio_features["acousticness"],
        key=audio_features["key"],
        mode=audio_features["mode"],
        time_signature=audio_features["time_signature"],
        loudness=audio_features["loudness"],
        duration_ms=audio_features.get("duration_ms") or track.get("duration_ms", 0),
        genres=[genre.lower() for genre in genres] if genres else None,
        artist=artist_name or None,
        release_year=release_year,
    )

    return SongRecord(
        platform=PLATFORM,
        song_id=track["id"],
        title=track.get("name", ""),
        artist=artist_name,
        features=features,
        album=album.get("name"),
        release_year=release_year,
        duration_ms=track.get("duration_ms"),
        popularity=track.get("popularity"),
        explicit=bool(track.get("explicit", False)),
        preview_url=track.get("preview_url"),
        external_url=(track.get("external_urls") or {}).get("spotify"),
        image_url=images[0]["url"] if images else None,
    )


@define(slots=True)
class SpotifyFeatureSource:
    """Client-credentials Spotify client implementing FeatureSourceProtocol."""

    credentials: CredentialsConfig = field(factory=CredentialsConfig)
    api: APIConfig = field(factory=APIConfig)
    client: spotipy.Spotify | None = field(default=None, repr=False)

    def __attrs_post_init__(self) -> None:
        if self.client is None:
            logger.debug("Initializing Spotify client")
            self.client = spotipy.Spotify(
                auth_manager=SpotifyClientCredentials(
                    client_id=self.credentials.spotify_client_id,
                    client_secret=self.credentials.spotify_client_secret,
                ),
                requests_timeout=self.api.spotify_request_timeout,
                retries=0,
                status_retries=0,
            )

    async def _request(self, method: str, *args: Any, **kwargs: Any) -> Any:
        """Run a blocking spotipy call in a thread, retrying transient failures."""

        @backoff.on_exception(
            backoff.expo,
            (spotipy.SpotifyException, requests.exceptions.RequestException),
            max_tries=self.api.spotify_retry_count,
            giveup=_is_permanent,
            jitter=backoff.full_jitter,
            factor=self.api.spotify_retry_base_delay,
            max_value=self.api.spotify_retry_max_delay,
        )
        async def attempt() -> Any:
            return await asyncio.to_thread(getattr(self.client, method), *args, **kwargs)

        return await attempt()

    @staticmethod
    def _check_platform(platform: str) -> None:
        if platform != PLATFORM:
            raise ValueError(f"Unsupported platform: {platform}")

    @resilient_operation("spotify_fetch_song")
    async def fetch_by_id(self, platform: str, song_id: str) -> SongRecord:
        """Fetch a track, its audio features and its primary artist's genres."""
        self._check_platform(platform)

        with translate_errors(song_id):
            track = await self._request("track", song_id, market=self.api.spotify_market)
            features = await self._request("audio_features", [song_id])
            audio_features = features[0] if features else None
            if not track or not audio_features:
                raise SongNotFoundError(
                    f"No audio features for Spotify song {song_id}",
                    platform=PLATFORM,
                    song_id=song_id,
                )

            genres: list[str] = []
            artists = track.get("artists") or []
            if artists and artists[0].get("id"):
                artist = await self._request("artist", artists[0]["id"])
                genres = (artist or {}).get("genres", [])

        try:
            return convert_spotify_song(track, audio_features, genres)
        except ValueError as e:
            raise SongNotFoundError(
                f"Unusable audio features for Spotify song {song_id}: {e}",
                platform=PLATFORM,
                song_id=song_id,
            ) from e

    @resilient_operation("spotify_search")
    async def search(self, query: str, limit: int = 20, offset: int = 0) -> SearchPage:
        """Search tracks, keeping only those with usable audio features."""
        limit = max(1, min(limit, self.api.search_max_limit))

        with translate_errors():
            response = await self._request(
                "search",
                q=query,
                type="track",
                limit=limit,
                offset=offset,
                market=self.api.spotify_market,
            )
            tracks_page = (response or {}).get("tracks") or {}
            tracks = [track for track in tracks_page.get("items") or [] if track]

            features_by_id = await self._audio_features([t["id"] for t in tracks])
            artist_ids = {
                t["artists"][0]["id"]
                for t in tracks
                if t.get("artists") and t["artists"][0].get("id")
            }
            genres_by_artist = await self._artist_genres(sorted(artist_ids))

        songs = []
        for track in tracks:
            audio_features = features_by_id.get(track["id"])
            if not audio_features:
                logger.debug(f"Skipping {track['id']}: no audio features")
                continue
            artists = track.get("artists") or []
            genres = genres_by_artist.get(artists[0].get("id")) if artists else None
            try:
                songs.append(convert_spotify_song(track, audio_features, genres))
            except ValueError as e:
                logger.debug(f"Skipping {track['id']}: {e}")

        total = tracks_page.get("total", len(songs))
        return SearchPage(
            songs=songs,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(tracks) < total,
        )

    async def _audio_features(self, track_ids: list[str]) -> dict[str, dict[str, Any]]:
        results: dict[str, dict[str, Any]] = {}
        for i in range(0, len(track_ids), AUDIO_FEATURES_BATCH):
            batch = track_ids[i : i + AUDIO_FEATURES_BATCH]
            for features in await self._request("audio_features", batch) or []:
                if features and features.get("id"):
                    results[features["id"]] = features
        return results

    async def _artist_genres(self, artist_ids: list[str]) -> dict[str, list[str]]:
        results: dict[str, list[str]] = {}
        batch_size = min(ARTISTS_BATCH, self.api.spotify_batch_size)
        for i in range(0, len(artist_ids), batch_size):
            batch = artist_ids[i : i + batch_size]
            response = await self._request("artists", batch) or {}
            for artist in response.get("artists") or []:
                if artist and artist.get("id"):
                    results[artist["id"]] = artist.get("genres", [])
        return results
