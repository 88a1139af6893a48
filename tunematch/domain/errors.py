"""Domain error taxonomy.

Upstream errors describe why a song's features could not be resolved and are
always surfaced to the caller. Cache store errors are only raised by
administrative cache operations; the scoring path absorbs them.
"""


class TunematchError(Exception):
    """Base class for all application errors."""


class UpstreamError(TunematchError):
    """A feature source could not produce a record."""

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        song_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.platform = platform
        self.song_id = song_id


class SongNotFoundError(UpstreamError):
    """The platform has no song (or no audio features) for the given id."""


class RateLimitedError(UpstreamError):
    """The platform throttled the request."""

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        song_id: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, platform=platform, song_id=song_id)
        self.retry_after = retry_after


class UpstreamTimeoutError(UpstreamError):
    """The platform did not answer in time."""


class CacheStoreError(TunematchError):
    """A key-value store failure surfaced by an administrative cache operation."""
