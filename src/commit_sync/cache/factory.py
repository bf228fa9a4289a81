"""Construct the configured commit cache backend."""

from commit_sync.config import CacheBackend, CacheConfig

from .base import CommitCache
from .file import FileCommitCache
from .sqlite import SqliteCommitCache


def create_commit_cache(config: CacheConfig) -> CommitCache:
    """Build a commit cache for the configured backend.

    Args:
        config: Cache configuration

    Returns:
        A fresh CommitCache instance (storage is created on first write)
    """
    if config.backend == CacheBackend.SQLITE:
        return SqliteCommitCache(config.directory)
    return FileCommitCache(config.directory)
