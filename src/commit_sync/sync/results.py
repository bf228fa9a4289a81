"""Result objects for sync operations.

Structured results provide consistent interfaces for monitoring,
error handling, and CLI output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from commit_sync.schemas import Achievement, CommitError, CommitRecord


class SyncStatus(str, Enum):
    """How a single repository sync ended."""

    COMPLETED = "completed"
    """New commits were delivered."""

    NO_COMMITS = "no_commits"
    """The branch had no commits to read."""

    ALL_CACHED = "all_cached"
    """Every collected commit was already delivered."""

    DRY_RUN = "dry_run"
    """Commits were collected and listed, nothing was sent."""

    FAILED = "failed"
    """The sync aborted with an error."""


@dataclass
class SyncResult:
    """Result of syncing one repository.

    Populated incrementally while batches are delivered, so a partial
    result is still meaningful when the run aborts.
    """

    repository: str
    """Repository label."""

    branch: str
    """Branch the commits were read from."""

    status: SyncStatus = SyncStatus.COMPLETED

    collected: int = 0
    """Commits read from git."""

    skipped_cached: int = 0
    """Commits dropped because the cache already had them."""

    pending: list[CommitRecord] = field(default_factory=list)
    """Commits selected for delivery (or listed, on a dry run)."""

    delivered_hashes: list[str] = field(default_factory=list)
    """Hashes confirmed by the service, in delivery order."""

    batches_completed: int = 0
    total_batches: int = 0

    achievements: list[Achievement] = field(default_factory=list)
    """Achievements reported across all batches."""

    commit_errors: list[CommitError] = field(default_factory=list)
    """Per-commit errors reported across all batches."""

    error: Exception | None = None
    """Exception if the sync failed."""

    @property
    def success(self) -> bool:
        """Check if the sync completed without errors."""
        return self.error is None

    @property
    def delivered(self) -> int:
        """Number of commits confirmed by the service."""
        return len(self.delivered_hashes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "success": self.success,
            "status": self.status.value,
            "repository": self.repository,
            "branch": self.branch,
            "collected": self.collected,
            "skipped_cached": self.skipped_cached,
            "pending": len(self.pending),
            "delivered": self.delivered,
            "batches_completed": self.batches_completed,
            "total_batches": self.total_batches,
            "achievements": [a.to_wire() for a in self.achievements],
            "commit_errors": [e.to_wire() for e in self.commit_errors],
        }

        if self.status == SyncStatus.DRY_RUN:
            result["commits"] = [
                {
                    "hash": c.hash,
                    "author": c.author,
                    "date": c.date,
                    "subject": c.subject,
                }
                for c in self.pending
            ]

        if self.error:
            result["error"] = str(self.error)
            result["error_type"] = type(self.error).__name__

        return result

    @classmethod
    def from_error(cls, repository: str, error: Exception, branch: str = "") -> SyncResult:
        """Create a result representing a failed sync."""
        return cls(repository=repository, branch=branch, status=SyncStatus.FAILED, error=error)


@dataclass
class RepoSyncResult:
    """Result of syncing one configured repository, with timing."""

    path: str
    """Local checkout path."""

    result: SyncResult

    started_at: datetime
    completed_at: datetime

    @property
    def duration_seconds(self) -> float:
        """Time taken to sync this repository."""
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            **self.result.to_dict(),
            "path": self.path,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 2),
        }


@dataclass
class MultiRepoSyncResult:
    """Result of syncing every enrolled repository."""

    repo_results: list[RepoSyncResult] = field(default_factory=list)

    duration_seconds: float = 0.0
    """Total time taken for all syncs."""

    @property
    def repos_succeeded(self) -> int:
        """Number of repositories that synced without errors."""
        return sum(1 for r in self.repo_results if r.result.success)

    @property
    def repos_failed(self) -> int:
        """Number of repositories whose sync aborted."""
        return sum(1 for r in self.repo_results if not r.result.success)

    @property
    def total_delivered(self) -> int:
        """Commits delivered across all repositories."""
        return sum(r.result.delivered for r in self.repo_results)

    @property
    def total_achievements(self) -> int:
        """Achievements reported across all repositories."""
        return sum(len(r.result.achievements) for r in self.repo_results)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": {
                "total_repos": len(self.repo_results),
                "repos_succeeded": self.repos_succeeded,
                "repos_failed": self.repos_failed,
                "total_delivered": self.total_delivered,
                "total_achievements": self.total_achievements,
                "duration_seconds": round(self.duration_seconds, 2),
            },
            "repositories": [r.to_dict() for r in self.repo_results],
        }
