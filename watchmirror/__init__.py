"""Searchable mirror of watched folders, kept in sync from watcher notifications."""

__version__ = "1.0.0"
