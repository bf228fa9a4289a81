"""Base commit cache with an in-memory mirror.

Subclasses provide durable storage primitives; this class implements
the cache operations on top of them and keeps one lazily loaded hash
set per repository so repeated lookups within a run stay in memory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from commit_sync.exceptions import CacheError
from commit_sync.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CacheStats:
    """Aggregate counts for one or all cached repositories."""

    repositories: int = 0
    """Repositories with recorded hashes."""

    commits: int = 0
    """Total recorded hashes."""

    repo_stats: dict[str, int] = field(default_factory=dict)
    """Hash count per repository label."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "repositories": self.repositories,
            "commits": self.commits,
            "repo_stats": dict(self.repo_stats),
        }


class CommitCache(ABC):
    """Durable record of commit hashes already delivered per repository.

    Usage:
        cache = FileCommitCache(cache_dir)
        if not await cache.has("acme/widgets", commit.hash):
            ...
        await cache.add("acme/widgets", [commit.hash])

    Not safe for concurrent use by multiple processes.
    """

    def __init__(self) -> None:
        self._mirror: dict[str, set[str]] = {}

    # -------------------------------------------------------------------------
    # Storage primitives
    # -------------------------------------------------------------------------

    @abstractmethod
    async def init(self) -> None:
        """Ensure backing storage exists. Safe to call repeatedly."""

    @abstractmethod
    async def _load(self, label: str) -> list[str]:
        """Read recorded hashes for a repository ([] when none stored)."""

    @abstractmethod
    async def _append(self, label: str, hashes: list[str]) -> None:
        """Persist new hashes for a repository in a single write."""

    @abstractmethod
    async def _remove(self, label: str) -> None:
        """Remove stored hashes for one repository (absent is not an error)."""

    @abstractmethod
    async def _remove_all(self) -> None:
        """Remove stored hashes for every repository."""

    @abstractmethod
    async def _stored_counts(self) -> dict[str, int]:
        """Hash count for every repository with stored hashes."""

    # -------------------------------------------------------------------------
    # Cache operations
    # -------------------------------------------------------------------------

    async def _hashes(self, label: str) -> set[str]:
        """Get the mirrored hash set, loading it on first access."""
        hashes = self._mirror.get(label)
        if hashes is None:
            hashes = set(await self._load(label))
            self._mirror[label] = hashes
        return hashes

    async def add(self, label: str, hashes: Iterable[str]) -> list[str]:
        """Record hashes as delivered.

        Only hashes not already recorded are written, in one write, so
        repeated calls with overlapping input leave the same stored content.

        Args:
            label: Repository label
            hashes: Commit hashes to record

        Returns:
            The hashes that were newly written
        """
        incoming = list(dict.fromkeys(hashes))
        if not incoming:
            return []

        try:
            await self.init()
            existing = await self._hashes(label)
            new_hashes = [h for h in incoming if h not in existing]
            if not new_hashes:
                return []

            logger.debug(
                "Caching {} new hashes for {} ({} already cached)",
                len(new_hashes),
                label,
                len(existing),
            )
            await self._append(label, new_hashes)
        except CacheError:
            raise
        except Exception as e:
            raise CacheError(f"Failed to add commits to cache: {e}") from e

        existing.update(new_hashes)
        return new_hashes

    async def has(self, label: str, commit_hash: str) -> bool:
        """Check whether a hash was recorded for a repository."""
        try:
            return commit_hash in await self._hashes(label)
        except CacheError:
            raise
        except Exception as e:
            raise CacheError(f"Failed to read cache: {e}") from e

    async def list(self, label: str) -> list[str]:
        """List all recorded hashes for a repository."""
        # Read from storage: it keeps insertion order, the mirror does not
        try:
            hashes = await self._load(label)
        except CacheError:
            raise
        except Exception as e:
            raise CacheError(f"Failed to read cache: {e}") from e

        self._mirror.setdefault(label, set(hashes))
        return hashes

    async def clear(self, label: str | None = None) -> None:
        """Forget recorded hashes for one repository, or for all of them.

        Args:
            label: Repository to clear; None clears every repository
        """
        try:
            if label is not None:
                await self._remove(label)
                self._mirror.pop(label, None)
            else:
                await self._remove_all()
                self._mirror.clear()
        except CacheError:
            raise
        except Exception as e:
            raise CacheError(f"Failed to clear cache: {e}") from e

    async def get_stats(self, label: str | None = None) -> CacheStats:
        """Count recorded hashes for one or all repositories."""
        try:
            if label is not None:
                count = len(await self._hashes(label))
                return CacheStats(repositories=1, commits=count, repo_stats={label: count})

            repo_stats = await self._stored_counts()
            return CacheStats(
                repositories=len(repo_stats),
                commits=sum(repo_stats.values()),
                repo_stats=repo_stats,
            )
        except CacheError:
            raise
        except Exception as e:
            raise CacheError(f"Failed to get cache stats: {e}") from e

    async def close(self) -> None:
        """Release any resources held by the backend."""
