"""Shared fixtures: controllable clock and in-memory key-value store."""

from unittest.mock import AsyncMock

import pytest

from tests.fixtures.models import FakeClock, make_song
from tunematch.domain.entities import SearchPage
from tunematch.domain.errors import SongNotFoundError
from tunematch.infrastructure.persistence.stores import InMemoryKeyValueStore


@pytest.fixture
def clock():
    """Clock frozen at a fixed UTC instant; call ``advance`` to move it."""
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    """In-memory store sharing the test clock."""
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def catalogue():
    """Songs known to the fake feature source, keyed by id."""
    return {
        "song-a": make_song("song-a"),
        "song-b": make_song("song-b", title="Second"),
    }


@pytest.fixture
def fake_source(catalogue):
    """Feature source backed by ``catalogue``; unknown ids raise SongNotFoundError."""
    source = AsyncMock()

    async def fetch_by_id(platform, song_id):
        if song_id not in catalogue:
            raise SongNotFoundError(
                f"No song {song_id}", platform=platform, song_id=song_id
            )
        return catalogue[song_id]

    async def search(query, limit=20, offset=0):
        songs = list(catalogue.values())[offset : offset + limit]
        return SearchPage(
            songs=songs,
            total=len(catalogue),
            limit=limit,
            offset=offset,
            has_more=offset + len(songs) < len(catalogue),
        )

    source.fetch_by_id.side_effect = fetch_by_id
    source.search.side_effect = search
    return source
