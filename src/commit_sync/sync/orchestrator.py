"""Sync Orchestrator - collect, filter, deliver and record one repository.

Runs the full pipeline for a single local checkout:
1. Check the API credential (skipped on dry runs)
2. Resolve repository info, branch and label
3. Collect commits from git
4. Drop commits the cache says were already delivered
5. Deliver the rest in batches, recording each confirmed batch in the cache
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import httpx

from commit_sync.cache import CommitCache
from commit_sync.config import CredentialStatus, Settings
from commit_sync.delivery import BatchDeliveryEngine, DeliveryClient, RetryPolicy, SleepFunc
from commit_sync.exceptions import BatchRetryExhaustedError, CredentialError, ResponseFormatError
from commit_sync.git import (
    collect_git_commits,
    get_current_git_user,
    get_repository_info,
    get_repository_name,
)
from commit_sync.logging import LogContext, get_logger
from commit_sync.schemas import CommitRecord, RepositoryInfo

from .results import SyncResult, SyncStatus

logger = get_logger(__name__)


@dataclass
class SyncOptions:
    """Per-run overrides for a single repository sync.

    Unset values fall back to the repository (current branch, label from
    the remote URL) or to Settings.
    """

    path: Path = Path(".")
    """Path inside the local checkout."""

    branch: str | None = None
    max_commits: int | None = None
    repository_label: str | None = None
    api_url: str | None = None

    dry_run: bool = False
    """Collect and list commits without touching the cache or network."""

    batch_size: int | None = None
    use_cache: bool = True

    mine: bool = False
    """Only collect commits authored by the configured git user."""


class SyncOrchestrator:
    """Runs the commit sync pipeline for one repository.

    Usage:
        cache = create_commit_cache(settings.cache)
        orchestrator = SyncOrchestrator(settings, cache)
        result = await orchestrator.run(SyncOptions(path=Path("~/src/app")))
        await cache.close()

    The cache is owned by the caller. Pass cache=None to disable caching
    for every run.
    """

    def __init__(
        self,
        settings: Settings,
        cache: CommitCache | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            settings: Application settings
            cache: Commit cache (None disables caching)
            transport: Optional httpx transport for the delivery client
            sleep: Replacement for asyncio.sleep between retries
        """
        self._settings = settings
        self._cache = cache
        self._transport = transport
        self._sleep = sleep

    def _check_credentials(self) -> None:
        status = self._settings.credential_status()
        if status == CredentialStatus.MISSING:
            raise CredentialError("Not authenticated: no API token is configured")
        if status == CredentialStatus.EXPIRED:
            raise CredentialError("Authentication token has expired, please log in again")

    async def run(self, options: SyncOptions) -> SyncResult:
        """Sync one repository.

        Args:
            options: Run options

        Returns:
            SyncResult describing what was collected and delivered

        Raises:
            CredentialError: If the token is missing or expired (not on dry runs)
            GitCollectionError: If repository info or commits cannot be read
            CacheError: If the cache cannot be read or written
            BatchRetryExhaustedError: If a batch fails on every attempt.
                Batches confirmed earlier stay cached and are reported in
                the exception's partial_result.
            ResponseFormatError: If an accepted batch's response cannot be
                read. Carries partial_result the same way.
        """
        if not options.dry_run:
            self._check_credentials()

        repository = await get_repository_info(options.path)
        branch = options.branch or repository.current_branch
        label = options.repository_label or get_repository_name(repository.remote_url)

        with LogContext(repo=label):
            return await self._run_repository(options, repository, branch, label)

    async def _run_repository(
        self,
        options: SyncOptions,
        repository: RepositoryInfo,
        branch: str,
        label: str,
    ) -> SyncResult:
        result = SyncResult(repository=label, branch=branch)
        max_commits = options.max_commits or self._settings.default_max_commits

        author = await get_current_git_user(options.path) if options.mine else None
        logger.info("Collecting up to {} commits from {} ({})", max_commits, label, branch)
        commits = await collect_git_commits(
            branch,
            max_commits,
            label,
            path=options.path,
            author=author,
        )
        result.collected = len(commits)

        if not commits:
            logger.info("No commits found on {}", branch)
            result.status = SyncStatus.NO_COMMITS
            return result

        if options.dry_run:
            logger.info("Dry run: {} commits would be sent", len(commits))
            result.pending = commits
            result.status = SyncStatus.DRY_RUN
            return result

        cache = self._cache if options.use_cache else None
        pending = await self._filter_cached(cache, label, commits)
        result.skipped_cached = len(commits) - len(pending)
        result.pending = pending

        if not pending:
            logger.info("All {} commits have already been processed", len(commits))
            result.status = SyncStatus.ALL_CACHED
            return result

        await self._deliver(options, repository, label, pending, cache, result)
        return result

    async def _filter_cached(
        self,
        cache: CommitCache | None,
        label: str,
        commits: list[CommitRecord],
    ) -> list[CommitRecord]:
        """Keep only the commits the cache has not recorded."""
        if cache is None:
            return commits

        pending = [c for c in commits if not await cache.has(label, c.hash)]
        if len(pending) < len(commits):
            logger.info(
                "Found {} new commits ({} already cached)",
                len(pending),
                len(commits) - len(pending),
            )
        return pending

    async def _deliver(
        self,
        options: SyncOptions,
        repository: RepositoryInfo,
        label: str,
        commits: list[CommitRecord],
        cache: CommitCache | None,
        result: SyncResult,
    ) -> None:
        """Deliver commits batch by batch, writing each batch back to the cache."""
        batching = self._settings.batching
        batch_size = options.batch_size or batching.max_commits_per_batch
        api_url = options.api_url or self._settings.api_base_url
        policy = RetryPolicy.from_config(batching, sleep=self._sleep)

        client = DeliveryClient(
            api_url,
            self._settings.api_token,
            timeout=self._settings.http_timeout_seconds,
            transport=self._transport,
        )
        async with client:
            engine = BatchDeliveryEngine(client, batch_size=batch_size, retry_policy=policy)
            try:
                async for delivered in engine.stream(repository, commits):
                    result.total_batches = delivered.batch.total
                    hashes = delivered.delivered_hashes
                    if delivered.result.processed_hashes is None:
                        logger.debug(
                            "Batch {}: no processed hashes echoed, assuming first {} of {}",
                            delivered.batch.number,
                            delivered.result.processed_count,
                            len(delivered.batch),
                        )

                    if cache is not None and hashes:
                        await cache.add(label, hashes)

                    result.delivered_hashes.extend(hashes)
                    result.batches_completed += 1
                    result.achievements.extend(delivered.result.achievements)
                    result.commit_errors.extend(delivered.result.errors)

                    for achievement in delivered.result.achievements:
                        logger.info("Achievement: {}", achievement.display_name)
                    for error in delivered.result.errors:
                        logger.warning("Commit {} failed: {}", error.commit, error.error)
            except (BatchRetryExhaustedError, ResponseFormatError) as e:
                if e.total_batches is not None:
                    result.total_batches = e.total_batches
                result.status = SyncStatus.FAILED
                result.error = e
                e.partial_result = result
                raise

        result.status = SyncStatus.COMPLETED
        logger.info(
            "Delivered {} commits in {} batches ({} achievements, {} errors)",
            result.delivered,
            result.batches_completed,
            len(result.achievements),
            len(result.commit_errors),
        )
