"""Persistence adapters: SQL schema, store decorators and key-value stores."""
