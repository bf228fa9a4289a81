"""SQLite backend for the commit cache.

Stores every repository's hashes in one `cached_commits` table. The
database file is only created on the first write; reads against a
missing file behave as an empty cache.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from commit_sync.db import (
    CachedCommit,
    create_engine,
    create_session_factory,
    create_tables,
    session_scope,
)
from commit_sync.logging import get_logger

from .base import CommitCache

logger = get_logger(__name__)

DATABASE_FILENAME = "commits.db"


class SqliteCommitCache(CommitCache):
    """Commit cache stored in a SQLite database via async SQLAlchemy.

    Usage:
        cache = SqliteCommitCache(cache_dir)
        await cache.add("acme/widgets", ["abc123"])
        await cache.close()
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache.

        Args:
            cache_dir: Directory holding the database file
        """
        super().__init__()
        self._cache_dir = Path(cache_dir).expanduser()
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._tables_ready = False

    @property
    def database_path(self) -> Path:
        """Path of the SQLite database file."""
        return self._cache_dir / DATABASE_FILENAME

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._engine = create_engine(f"sqlite+aiosqlite:///{self.database_path}")
            self._session_factory = create_session_factory(self._engine)
        return self._session_factory

    def _exists(self) -> bool:
        return self._tables_ready or self.database_path.exists()

    async def init(self) -> None:
        """Create the cache directory and table."""
        if self._tables_ready:
            return
        await asyncio.to_thread(self._cache_dir.mkdir, mode=0o700, parents=True, exist_ok=True)
        self._sessions()
        assert self._engine is not None
        await create_tables(self._engine)
        self._tables_ready = True

    # -------------------------------------------------------------------------
    # Storage primitives
    # -------------------------------------------------------------------------

    async def _load(self, label: str) -> list[str]:
        if not self._exists():
            return []
        await self.init()

        stmt = (
            select(CachedCommit.hash)
            .where(CachedCommit.repository_label == label)
            .order_by(CachedCommit.id)
        )
        async with session_scope(self._sessions()) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def _append(self, label: str, hashes: list[str]) -> None:
        logger.debug("Inserting {} hashes for {}", len(hashes), label)
        async with session_scope(self._sessions()) as session:
            await session.execute(
                insert(CachedCommit),
                [{"repository_label": label, "hash": h} for h in hashes],
            )

    async def _remove(self, label: str) -> None:
        if not self._exists():
            return
        await self.init()
        async with session_scope(self._sessions()) as session:
            await session.execute(
                delete(CachedCommit).where(CachedCommit.repository_label == label)
            )

    async def _remove_all(self) -> None:
        if not self._exists():
            return
        await self.init()
        async with session_scope(self._sessions()) as session:
            await session.execute(delete(CachedCommit))

    async def _stored_counts(self) -> dict[str, int]:
        if not self._exists():
            return {}
        await self.init()

        stmt = (
            select(CachedCommit.repository_label, func.count(CachedCommit.id))
            .group_by(CachedCommit.repository_label)
            .order_by(CachedCommit.repository_label)
        )
        async with session_scope(self._sessions()) as session:
            result = await session.execute(stmt)
            return {label: count for label, count in result.all()}

    async def close(self) -> None:
        """Dispose the engine and close all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._tables_ready = False
