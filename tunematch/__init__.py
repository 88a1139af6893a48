"""Tunematch - musical similarity scoring with cached feature lookups."""
