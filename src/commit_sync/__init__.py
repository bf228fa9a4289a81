"""Commit Sync - deliver local git history to an achievement tracking service."""

__version__ = "0.1.0"
