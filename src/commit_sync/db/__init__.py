"""Database module for the SQLite commit cache backend."""

from commit_sync.db.engine import (
    create_engine,
    create_session_factory,
    create_tables,
    session_scope,
)
from commit_sync.db.models import Base, CachedCommit

__all__ = [
    # Models
    "Base",
    "CachedCommit",
    # Engine
    "create_engine",
    "create_session_factory",
    "create_tables",
    "session_scope",
]
