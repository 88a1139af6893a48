"""Connectors to external music platforms."""

from .spotify import SpotifyFeatureSource

__all__ = ["SpotifyFeatureSource"]
