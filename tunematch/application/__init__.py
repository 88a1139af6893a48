"""Application layer: scoring entry point and use cases."""
