"""Multi-Repository Sync - sync every enrolled checkout.

Runs the SyncOrchestrator for each enabled repository in Settings,
one after another. A failing repository is recorded and the next one
proceeds.
"""

from __future__ import annotations

import time
from datetime import datetime

from commit_sync.config import RepositoryConfig, Settings
from commit_sync.exceptions import (
    BatchRetryExhaustedError,
    CommitSyncError,
    ResponseFormatError,
)
from commit_sync.logging import get_logger

from .orchestrator import SyncOptions, SyncOrchestrator
from .results import MultiRepoSyncResult, RepoSyncResult, SyncResult

logger = get_logger(__name__)


class MultiRepoSync:
    """Syncs all enrolled repositories sequentially.

    Usage:
        cache = create_commit_cache(settings.cache)
        multi = MultiRepoSync(SyncOrchestrator(settings, cache), settings)
        result = await multi.sync_all()
    """

    def __init__(self, orchestrator: SyncOrchestrator, settings: Settings) -> None:
        """Initialize the multi-repo sync.

        Args:
            orchestrator: Orchestrator used for each repository
            settings: Application settings (source of enrolled repositories)
        """
        self._orchestrator = orchestrator
        self._settings = settings

    async def sync_all(
        self,
        repositories: list[RepositoryConfig] | None = None,
        *,
        dry_run: bool = False,
        use_cache: bool = True,
    ) -> MultiRepoSyncResult:
        """Sync every enabled repository.

        Args:
            repositories: Repositories to sync (defaults to Settings.repositories).
                Disabled entries are skipped.
            dry_run: Collect and list commits without delivering
            use_cache: Skip commits already recorded in the cache

        Returns:
            MultiRepoSyncResult with one entry per repository attempted
        """
        start_time = time.monotonic()
        result = MultiRepoSyncResult()

        repo_list = repositories if repositories is not None else self._settings.repositories
        enabled = [repo for repo in repo_list if repo.enabled]
        if len(enabled) < len(repo_list):
            logger.info("Skipping {} disabled repositories", len(repo_list) - len(enabled))

        for repo in enabled:
            options = SyncOptions(
                path=repo.path.expanduser(),
                branch=repo.branch,
                max_commits=repo.max_commits,
                repository_label=repo.label,
                dry_run=dry_run,
                use_cache=use_cache,
            )
            repo_start = datetime.now()
            logger.info("Starting sync for {}", repo.path)

            try:
                sync_result = await self._orchestrator.run(options)
            except (BatchRetryExhaustedError, ResponseFormatError) as e:
                logger.error("Failed to sync {}: {}", repo.path, e)
                sync_result = e.partial_result or SyncResult.from_error(
                    repo.label or str(repo.path), e
                )
            except CommitSyncError as e:
                # Log error but continue with other repos
                logger.error("Failed to sync {}: {}", repo.path, e)
                sync_result = SyncResult.from_error(repo.label or str(repo.path), e)
            else:
                logger.info(
                    "Completed sync for {}: status={}, delivered={}",
                    sync_result.repository,
                    sync_result.status.value,
                    sync_result.delivered,
                )

            result.repo_results.append(
                RepoSyncResult(
                    path=str(repo.path),
                    result=sync_result,
                    started_at=repo_start,
                    completed_at=datetime.now(),
                )
            )

        result.duration_seconds = time.monotonic() - start_time

        logger.info(
            "Multi-repo sync complete: repos={}, succeeded={}, failed={}, delivered={} ({:.1f}s)",
            len(result.repo_results),
            result.repos_succeeded,
            result.repos_failed,
            result.total_delivered,
            result.duration_seconds,
        )
        return result
