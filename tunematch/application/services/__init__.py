"""Application services."""

from .matching_service import MatchingService

__all__ = ["MatchingService"]
