"""Core domain entities representing songs and cache bookkeeping."""

# Cache entities
from .cache import CacheEntry, ResultCacheStats, SourceCacheStats

# Shared utilities
from .shared import ensure_utc, utc_now

# Song entities
from .song import FeatureVector, SearchPage, SongRecord

__all__ = [
    # Cache entities
    "CacheEntry",
    "ResultCacheStats",
    "SourceCacheStats",
    # Song entities
    "FeatureVector",
    "SearchPage",
    "SongRecord",
    # Shared utilities
    "ensure_utc",
    "utc_now",
]
