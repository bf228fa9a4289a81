"""Factory functions for creating test data.

This module provides factory functions for:
- CommitRecord schemas
- Delivery endpoint response bodies (including stored achievement rows)
- A scripted stand-in for the delivery client

Design principles:
- Factories provide sensible defaults that can be overridden
- Response factories return dicts shaped like the service's JSON
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from commit_sync.exceptions import DeliveryError
from commit_sync.schemas import BatchResult, CommitRecord, RepositoryInfo

# Import test constants
from tests.conftest import REPO_LABEL


# -----------------------------------------------------------------------------
# Schema Factories
# -----------------------------------------------------------------------------
def make_commit(
    index: int = 0,
    *,
    repository_label: str = REPO_LABEL,
    branch: str = "main",
    **overrides: Any,
) -> CommitRecord:
    """Create a CommitRecord with a deterministic 40-character hash.

    Args:
        index: Distinguishes commits (used in hash and message)
        repository_label: Label attached to the record
        branch: Branch name
        **overrides: Additional field overrides
    """
    fields: dict[str, Any] = {
        "repository_label": repository_label,
        "hash": f"{index:040x}",
        "message": f"Commit number {index}\n\nBody for commit {index}.",
        "author": "Test Author",
        "date": f"2024-01-{(index % 28) + 1:02d} 10:00:00 +0000",
        "branch": branch,
    }
    fields.update(overrides)
    return CommitRecord(**fields)


def make_commits(count: int, *, start: int = 0, **overrides: Any) -> list[CommitRecord]:
    """Create `count` commits with consecutive indexes."""
    return [make_commit(start + i, **overrides) for i in range(count)]


# -----------------------------------------------------------------------------
# Response Factories
# -----------------------------------------------------------------------------
def make_batch_response(
    processed_count: int,
    *,
    achievements: list[dict[str, Any]] | None = None,
    errors: list[dict[str, Any]] | None = None,
    processed_hashes: list[str] | None = None,
) -> dict[str, Any]:
    """Create a delivery endpoint response body."""
    body: dict[str, Any] = {
        "processedCount": processed_count,
        "achievements": achievements or [],
    }
    if errors is not None:
        body["errors"] = errors
    if processed_hashes is not None:
        body["processedHashes"] = processed_hashes
    return body


def make_stored_achievement(achievement_id: str = "a1", title: str = "Shipped") -> dict[str, Any]:
    """Create an achievement the way the service returns it: its stored row.

    Uses `title` rather than `description`, a plain string `source`, and
    extra columns the client does not model.
    """
    return {
        "id": achievement_id,
        "title": title,
        "summary": f"{title} for the team",
        "source": "llm",
        "impact": 2,
        "impactSource": "llm",
        "eventStart": "2024-03-01T00:00:00.000Z",
        "eventEnd": None,
        "projectId": None,
    }


# -----------------------------------------------------------------------------
# Delivery Stand-in
# -----------------------------------------------------------------------------
class ScriptedSender:
    """Batch sender that replays a script of outcomes.

    Each call to send_batch consumes the next outcome: an Exception is
    raised, a BatchResult is returned, and None means "processed the
    whole batch". Once the script runs out every call succeeds.
    """

    def __init__(self, outcomes: Sequence[BatchResult | Exception | None] = ()) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[list[str]] = []

    async def send_batch(
        self,
        repository: RepositoryInfo,
        commits: Sequence[CommitRecord],
    ) -> BatchResult:
        self.calls.append([c.hash for c in commits])
        outcome = self._outcomes.pop(0) if self._outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return BatchResult(processed_count=len(commits))
        return outcome


def delivery_failure(status_code: int = 503) -> DeliveryError:
    """A retryable delivery error as raised by DeliveryClient."""
    return DeliveryError(
        f"API error (status {status_code}): unavailable",
        status_code=status_code,
        body="unavailable",
    )
