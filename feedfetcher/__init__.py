"""Fetch feed entries through pluggable strategies, store them in SQLite and track batches of fetches."""

__version__ = "0.1.0"