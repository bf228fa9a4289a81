"""Command-line interface for Commit Sync."""
