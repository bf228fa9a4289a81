"""Batch delivery engine.

Splits an ordered commit list into fixed-size batches and delivers them
one at a time, retrying failed batches according to a RetryPolicy.
Results stream to the caller as each batch completes, so the caller can
act on a batch (e.g. cache its hashes) before the next one is sent.
"""

from __future__ import annotations

import math
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from commit_sync.exceptions import BatchRetryExhaustedError, DeliveryError, ResponseFormatError
from commit_sync.logging import LogContext, get_logger
from commit_sync.schemas import BatchResult, CommitRecord, RepositoryInfo

from .retry import RetryPolicy

logger = get_logger(__name__)


class BatchSender(Protocol):
    """Anything that can deliver one batch (DeliveryClient in production)."""

    async def send_batch(
        self,
        repository: RepositoryInfo,
        commits: Sequence[CommitRecord],
    ) -> BatchResult: ...


@dataclass(frozen=True)
class CommitBatch:
    """A contiguous, order-preserving slice of the commits to deliver."""

    number: int
    """1-based position of this batch."""

    total: int
    """Number of batches in the run."""

    commits: tuple[CommitRecord, ...]

    @property
    def hashes(self) -> list[str]:
        """Commit hashes in submission order."""
        return [c.hash for c in self.commits]

    def __len__(self) -> int:
        return len(self.commits)


@dataclass(frozen=True)
class DeliveredBatch:
    """A batch the service confirmed, with its result."""

    batch: CommitBatch
    result: BatchResult
    attempts: int

    @property
    def delivered_hashes(self) -> list[str]:
        """Hashes of the commits the service reports as processed.

        Uses the hashes echoed by the service when present (restricted
        to this batch). Otherwise assumes the service processed the first
        `processed_count` commits of the batch in submission order.
        """
        if self.result.processed_hashes is not None:
            echoed = set(self.result.processed_hashes)
            return [h for h in self.batch.hashes if h in echoed]
        return self.batch.hashes[: self.result.processed_count]


def partition_commits(
    commits: Sequence[CommitRecord],
    batch_size: int,
) -> list[CommitBatch]:
    """Split commits into ceil(N / batch_size) contiguous batches.

    Every batch holds exactly batch_size commits except possibly the
    last, which holds the remainder.

    Raises:
        ValueError: If batch_size is less than 1
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    total = math.ceil(len(commits) / batch_size)
    return [
        CommitBatch(
            number=index + 1,
            total=total,
            commits=tuple(commits[start : start + batch_size]),
        )
        for index, start in enumerate(range(0, len(commits), batch_size))
    ]


class BatchDeliveryEngine:
    """Delivers commits in bounded batches with per-batch retry.

    Usage:
        engine = BatchDeliveryEngine(client, batch_size=10, retry_policy=policy)

        async for delivered in engine.stream(repository, commits):
            await cache.add(label, delivered.delivered_hashes)

    Exactly one batch is in flight at a time. If a batch fails on every
    attempt, stream() raises BatchRetryExhaustedError. If the service
    accepts a batch but the response cannot be read, ResponseFormatError
    is raised without a retry. Batches yielded before either error stay
    delivered.
    """

    def __init__(
        self,
        sender: BatchSender,
        *,
        batch_size: int = 10,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            sender: Delivers a single batch
            batch_size: Maximum commits per batch
            retry_policy: Retry policy (default: 3 attempts, 1s fixed delay)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._sender = sender
        self._batch_size = batch_size
        self._retry_policy = retry_policy or RetryPolicy()

    @property
    def batch_size(self) -> int:
        """Maximum commits per batch."""
        return self._batch_size

    @property
    def retry_policy(self) -> RetryPolicy:
        """Retry policy applied to every batch."""
        return self._retry_policy

    async def stream(
        self,
        repository: RepositoryInfo,
        commits: Sequence[CommitRecord],
    ) -> AsyncIterator[DeliveredBatch]:
        """Deliver commits batch by batch, yielding each confirmed batch.

        Args:
            repository: Repository context sent with every batch
            commits: Commits in submission order

        Yields:
            DeliveredBatch for each batch, in order

        Raises:
            BatchRetryExhaustedError: If a batch fails max_attempts times
            ResponseFormatError: If an accepted batch's response is unreadable
        """
        batches = partition_commits(commits, self._batch_size)
        policy = self._retry_policy

        logger.info("Processing {} commits in {} batches", len(commits), len(batches))
        logger.debug(
            "Batch config: size={}, max_attempts={}, strategy={}, base_delay={}ms",
            self._batch_size,
            policy.max_attempts,
            policy.strategy.value,
            policy.base_delay_ms,
        )

        for batch in batches:
            delivered = await self._deliver(repository, batch)
            yield delivered

    async def _deliver(self, repository: RepositoryInfo, batch: CommitBatch) -> DeliveredBatch:
        """Deliver one batch, retrying until it succeeds or attempts run out."""
        with LogContext(batch=f"{batch.number}/{batch.total}"):
            return await self._attempt_batch(repository, batch)

    async def _attempt_batch(
        self,
        repository: RepositoryInfo,
        batch: CommitBatch,
    ) -> DeliveredBatch:
        policy = self._retry_policy
        logger.info("Processing batch {}/{} ({} commits)...", batch.number, batch.total, len(batch))

        last_error: DeliveryError | None = None
        for attempt in range(1, policy.max_attempts + 1):
            if attempt > 1:
                waited = await policy.wait(attempt)
                logger.warning(
                    "Retry attempt {}/{} for batch {} (waited {:.1f}s)",
                    attempt,
                    policy.max_attempts,
                    batch.number,
                    waited,
                )

            try:
                result = await self._sender.send_batch(repository, batch.commits)
            except DeliveryError as e:
                last_error = e
                logger.warning(
                    "Error processing batch {} (attempt {}/{}): {}",
                    batch.number,
                    attempt,
                    policy.max_attempts,
                    e,
                )
                continue
            except ResponseFormatError as e:
                # Accepted by the service, so a resend would duplicate it
                e.batch_number = batch.number
                e.total_batches = batch.total
                logger.error(
                    "Batch {} was accepted but its response is unreadable: {}",
                    batch.number,
                    e,
                )
                raise

            if attempt > 1:
                logger.info(
                    "Successfully processed batch {} after {} attempts",
                    batch.number,
                    attempt,
                )
            logger.debug(
                "Batch {} results: {} processed, {} achievements, {} errors",
                batch.number,
                result.processed_count,
                len(result.achievements),
                len(result.errors),
            )
            return DeliveredBatch(batch=batch, result=result, attempts=attempt)

        assert last_error is not None
        logger.error(
            "Failed to process batch {}/{} after {} attempts: {}",
            batch.number,
            batch.total,
            policy.max_attempts,
            last_error,
        )
        raise BatchRetryExhaustedError(
            batch_number=batch.number,
            total_batches=batch.total,
            attempts=policy.max_attempts,
            last_error=last_error,
        )
