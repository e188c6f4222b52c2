"""Outliner for Scrivener-style binder projects."""

__version__ = "0.1.0"
