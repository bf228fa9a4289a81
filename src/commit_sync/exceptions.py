"""Commit Sync exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from commit_sync.sync.results import SyncResult


class CommitSyncError(Exception):
    """Base exception for commit sync errors."""

    pass


class GitCollectionError(CommitSyncError):
    """Raised when commits or repository info cannot be read from git."""

    pass


class GitCommandError(GitCollectionError):
    """Raised when a git subprocess exits with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"git {' '.join(args)} failed: {detail}")
        self.git_args = args
        self.returncode = returncode
        self.stderr = stderr


class CacheError(CommitSyncError):
    """Raised when the commit cache cannot be read or written."""

    pass


class CredentialError(CommitSyncError):
    """Raised when the API token is missing or expired."""

    pass


class DeliveryError(CommitSyncError):
    """Raised when a single delivery attempt fails.

    Covers both non-success HTTP responses (status_code set) and
    transport failures (status_code is None). These are retried.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class BatchRetryExhaustedError(DeliveryError):
    """Raised when a batch fails on every allowed attempt.

    Results already yielded for earlier batches remain valid. When the
    orchestrator re-raises it, `partial_result` carries what was delivered
    before the failure.
    """

    def __init__(
        self,
        batch_number: int,
        total_batches: int,
        attempts: int,
        last_error: Exception,
    ) -> None:
        super().__init__(
            f"Maximum retries ({attempts}) exceeded for batch "
            f"{batch_number}/{total_batches}. Last error: {last_error}",
            status_code=getattr(last_error, "status_code", None),
            body=getattr(last_error, "body", None),
        )
        self.batch_number = batch_number
        self.total_batches = total_batches
        self.attempts = attempts
        self.last_error = last_error
        self.partial_result: SyncResult | None = None


class ResponseFormatError(CommitSyncError):
    """Raised when the service accepts a batch but its response cannot be read.

    The service has already processed the batch, so this is never retried;
    a resend would be processed a second time. The engine fills in
    `batch_number` and `total_batches`; the orchestrator attaches
    `partial_result` like it does for BatchRetryExhaustedError.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.batch_number: int | None = None
        self.total_batches: int | None = None
        self.partial_result: SyncResult | None = None
