"""Result and source caches layered over a key-value store."""

from .result_cache import ResultCache, pair_key
from .source_cache import SourceCache

__all__ = ["ResultCache", "SourceCache", "pair_key"]
