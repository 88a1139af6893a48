"""Domain repository interfaces."""

from .interfaces import FeatureSourceProtocol, KeyValueStoreProtocol

__all__ = ["FeatureSourceProtocol", "KeyValueStoreProtocol"]
