"""Infrastructure adapters: caches, stores, connectors and the CLI."""
