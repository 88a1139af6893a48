"""Tests for the Spotify feature source with a mocked spotipy client."""

from unittest.mock import Mock

import pytest
import requests
import spotipy

from tunematch.config.settings import APIConfig, CredentialsConfig
from tunematch.domain.errors import (
    RateLimitedError,
    SongNotFoundError,
    UpstreamError,
    UpstreamTimeoutError,
)
from tunematch.infrastructure.connectors.spotify import (
    SpotifyFeatureSource,
    convert_spotify_song,
)


def track_payload(track_id="trk1", artist_id="art1", **overrides):
    payload = {
        "id": track_id,
        "name": f"Track {track_id}",
        "artists": [{"id": artist_id, "name": "Artist One"}],
        "album": {
            "name": "Album",
            "release_date": "2019-06-01",
            "images": [{"url": "https://img.example/cover.jpg"}],
        },
        "duration_ms": 215000,
        "popularity": 55,
        "explicit": False,
        "preview_url": None,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }
    payload.update(overrides)
    return payload


def features_payload(track_id="trk1", **overrides):
    payload = {
        "id": track_id,
        "valence": 0.6,
        "energy": 0.8,
        "danceability": 0.7,
        "tempo": 124.0,
        "acousticness": 0.1,
        "key": 5,
        "mode": 0,
        "time_signature": 4,
        "loudness": -4.5,
        "duration_ms": 215000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client():
    client = Mock()
    client.track.return_value = track_payload()
    client.audio_features.return_value = [features_payload()]
    client.artist.return_value = {"id": "art1", "genres": ["Indie Pop", "Electropop"]}
    return client


def make_source(client, **api_overrides):
    api = APIConfig(**{"spotify_retry_count": 1, "spotify_retry_base_delay": 0.001, **api_overrides})
    return SpotifyFeatureSource(credentials=CredentialsConfig(), api=api, client=client)


class TestConvertSpotifySong:
    def test_full_conversion(self):
        song = convert_spotify_song(track_payload(), features_payload(), ["Indie Pop"])

        assert song.platform == "spotify"
        assert song.song_id == "trk1"
        assert song.artist == "Artist One"
        assert song.release_year == 2019
        assert song.image_url == "https://img.example/cover.jpg"
        assert song.features.genres == ("indie pop",)
        assert song.features.artist == "Artist One"
        assert song.features.release_year == 2019
        assert song.features.key == 5
        assert song.features.mode == 0

    def test_missing_metadata(self):
        track = track_payload(artists=[], album={})
        song = convert_spotify_song(track, features_payload(), [])

        assert song.features.genres is None
        assert song.features.artist is None
        assert song.release_year is None
        assert song.image_url is None

    def test_undetected_key_rejected(self):
        with pytest.raises(ValueError):
            convert_spotify_song(track_payload(), features_payload(key=-1))


class TestFetchById:
    @pytest.mark.asyncio
    async def test_fetch(self, client):
        song = await make_source(client).fetch_by_id("spotify", "trk1")

        assert song.features.genres == ("indie pop", "electropop")
        client.track.assert_called_once_with("trk1", market="US")
        client.audio_features.assert_called_once_with(["trk1"])
        client.artist.assert_called_once_with("art1")

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, client):
        with pytest.raises(ValueError, match="Unsupported platform"):
            await make_source(client).fetch_by_id("deezer", "trk1")

    @pytest.mark.asyncio
    async def test_missing_audio_features(self, client):
        client.audio_features.return_value = [None]

        with pytest.raises(SongNotFoundError):
            await make_source(client).fetch_by_id("spotify", "trk1")

    @pytest.mark.asyncio
    async def test_unusable_audio_features(self, client):
        client.audio_features.return_value = [features_payload(tempo=0)]

        with pytest.raises(SongNotFoundError, match="Unusable"):
            await make_source(client).fetch_by_id("spotify", "trk1")

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        client.track.side_effect = spotipy.SpotifyException(404, -1, "not found")

        with pytest.raises(SongNotFoundError) as exc_info:
            await make_source(client).fetch_by_id("spotify", "gone")

        assert exc_info.value.song_id == "gone"
        assert exc_info.value.platform == "spotify"

    @pytest.mark.asyncio
    async def test_rate_limited(self, client):
        client.track.side_effect = spotipy.SpotifyException(
            429, -1, "too many", headers={"Retry-After": "7"}
        )

        with pytest.raises(RateLimitedError) as exc_info:
            await make_source(client).fetch_by_id("spotify", "trk1")

        assert exc_info.value.retry_after == 7.0

    @pytest.mark.asyncio
    async def test_server_error(self, client):
        client.track.side_effect = spotipy.SpotifyException(503, -1, "unavailable")

        with pytest.raises(UpstreamError, match="503"):
            await make_source(client).fetch_by_id("spotify", "trk1")

    @pytest.mark.asyncio
    async def test_timeout(self, client):
        client.track.side_effect = requests.exceptions.ReadTimeout("slow")

        with pytest.raises(UpstreamTimeoutError):
            await make_source(client).fetch_by_id("spotify", "trk1")

    @pytest.mark.asyncio
    async def test_connection_error(self, client):
        client.track.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(UpstreamError):
            await make_source(client).fetch_by_id("spotify", "trk1")

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self, client):
        client.track.side_effect = [
            spotipy.SpotifyException(502, -1, "bad gateway"),
            track_payload(),
        ]

        song = await make_source(client, spotify_retry_count=3).fetch_by_id(
            "spotify", "trk1"
        )

        assert song.song_id == "trk1"
        assert client.track.call_count == 2

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self, client):
        client.track.side_effect = spotipy.SpotifyException(404, -1, "not found")

        with pytest.raises(SongNotFoundError):
            await make_source(client, spotify_retry_count=3).fetch_by_id("spotify", "x")

        assert client.track.call_count == 1


class TestSearch:
    @pytest.fixture
    def search_client(self, client):
        client.search.return_value = {
            "tracks": {
                "items": [
                    track_payload("t1", "a1"),
                    track_payload("t2", "a2"),
                    track_payload("t3", "a1"),
                ],
                "total": 40,
            }
        }
        client.audio_features.return_value = [
            features_payload("t1"),
            None,
            features_payload("t3", key=-1),
        ]
        client.artists.return_value = {
            "artists": [
                {"id": "a1", "genres": ["House"]},
                {"id": "a2", "genres": []},
            ]
        }
        return client

    @pytest.mark.asyncio
    async def test_search_skips_unusable_tracks(self, search_client):
        page = await make_source(search_client).search("house", limit=3, offset=0)

        assert [song.song_id for song in page.songs] == ["t1"]
        assert page.songs[0].features.genres == ("house",)
        assert page.total == 40
        assert page.has_more is True
        search_client.artists.assert_called_once_with(["a1", "a2"])

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, search_client):
        page = await make_source(search_client).search("house", limit=500)

        assert page.limit == 50
        assert search_client.search.call_args.kwargs["limit"] == 50

    @pytest.mark.asyncio
    async def test_empty_results(self, client):
        client.search.return_value = {"tracks": {"items": [], "total": 0}}

        page = await make_source(client).search("nothing")

        assert page.songs == ()
        assert page.has_more is False
        client.audio_features.assert_not_called()
