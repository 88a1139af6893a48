"""Application use cases."""

from .match_songs import MatchSongsCommand, MatchSongsResult, MatchSongsUseCase

__all__ = ["MatchSongsCommand", "MatchSongsResult", "MatchSongsUseCase"]
