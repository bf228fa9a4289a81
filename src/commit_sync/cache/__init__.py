"""Local commit cache.

Records which commit hashes were already delivered for each repository
so later runs skip them.

Backends:
- FileCommitCache: One newline-delimited text file per repository
- SqliteCommitCache: A single SQLite database via async SQLAlchemy
"""

from .base import CacheStats, CommitCache
from .factory import create_commit_cache
from .file import FileCommitCache, cache_file_stem
from .sqlite import SqliteCommitCache

__all__ = [
    "CacheStats",
    "CommitCache",
    "FileCommitCache",
    "SqliteCommitCache",
    "cache_file_stem",
    "create_commit_cache",
]
