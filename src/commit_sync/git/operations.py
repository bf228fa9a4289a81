"""Async git operations for commit collection.

Runs the git binary as a subprocess and parses its output into
CommitRecord / RepositoryInfo models.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from commit_sync.exceptions import GitCollectionError, GitCommandError
from commit_sync.logging import get_logger
from commit_sync.schemas import CommitRecord, RepositoryInfo

logger = get_logger(__name__)

# Reserved separator bytes. Commit messages may contain quotes and
# newlines, so records and fields are delimited with control characters.
RECORD_SEPARATOR = "\x00"
FIELD_SEPARATOR = "\x1f"

LOG_FORMAT = "%H%x1f%B%x1f%an%x1f%ai%x00"

SSH_REMOTE_PATTERN = re.compile(r"^git@[^:]+:([^/]+)/(.+?)(?:\.git)?/?$")
HTTP_REMOTE_PATTERN = re.compile(r"^https?://[^/]+/([^/]+)/(.+?)(?:\.git)?/?$")
UNSAFE_CHARS_PATTERN = re.compile(r"[^a-zA-Z0-9-]")


async def run_git(*args: str, cwd: str | Path = ".") -> str:
    """Run a git command and return its stdout.

    Args:
        *args: Arguments after `git`
        cwd: Working directory for the command

    Returns:
        Decoded stdout

    Raises:
        GitCommandError: If git is missing or exits non-zero
    """
    logger.debug("Running git {} (cwd={})", " ".join(args), cwd)
    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
        raise GitCommandError(list(args), -1, str(e)) from e

    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        raise GitCommandError(
            list(args),
            process.returncode or -1,
            stderr.decode("utf-8", errors="replace"),
        )
    return stdout.decode("utf-8", errors="replace")


async def get_repository_info(path: str | Path = ".") -> RepositoryInfo:
    """Get information about a local git checkout.

    Args:
        path: Path inside the checkout

    Returns:
        RepositoryInfo with remote URL, current branch and path

    Raises:
        GitCollectionError: If no origin remote is configured or path
            is not a repository
    """
    try:
        remote_url = (await run_git("config", "--get", "remote.origin.url", cwd=path)).strip()
        current_branch = (await run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=path)).strip()
    except GitCommandError as e:
        raise GitCollectionError(f"Failed to get repository info: {e}") from e

    return RepositoryInfo(
        remote_url=remote_url,
        current_branch=current_branch,
        local_path=str(path),
    )


async def get_current_git_user(path: str | Path = ".") -> str:
    """Get the configured git user name.

    Raises:
        GitCollectionError: If user.name is not configured
    """
    try:
        return (await run_git("config", "user.name", cwd=path)).strip()
    except GitCommandError as e:
        raise GitCollectionError(f"Failed to get git user name: {e}") from e


def get_repository_name(remote_url: str) -> str:
    """Derive an owner/name label from a remote URL.

    Handles SSH (git@host:owner/repo.git) and HTTPS
    (https://host/owner/repo.git) remotes. Anything else is returned
    with unsafe characters replaced by underscores.

    Args:
        remote_url: The origin remote URL

    Returns:
        Repository label
    """
    for pattern in (SSH_REMOTE_PATTERN, HTTP_REMOTE_PATTERN):
        match = pattern.match(remote_url.strip())
        if match:
            return f"{match.group(1)}/{match.group(2)}"
    return UNSAFE_CHARS_PATTERN.sub("_", remote_url)


def parse_git_log(output: str, repository_label: str, branch: str) -> list[CommitRecord]:
    """Parse `git log` output produced with LOG_FORMAT.

    Args:
        output: Raw stdout of git log
        repository_label: Label attached to every record
        branch: Branch the log was read from

    Returns:
        Commit records in output order

    Raises:
        GitCollectionError: If any entry does not have four non-empty fields.
            The whole parse fails rather than skipping the entry.
    """
    commits: list[CommitRecord] = []

    for entry in output.split(RECORD_SEPARATOR):
        if not entry.strip():
            continue

        fields = [field.strip() for field in entry.split(FIELD_SEPARATOR)]
        if len(fields) < 4 or not all(fields[:4]):
            raise GitCollectionError(f"Invalid log entry format: {entry!r}")

        hash_, message, author, date = fields[:4]
        commits.append(
            CommitRecord(
                repository_label=repository_label,
                hash=hash_,
                message=message,
                author=author,
                date=date,
                branch=branch,
            )
        )

    return commits


async def collect_git_commits(
    branch: str,
    max_commits: int,
    repository_label: str,
    *,
    path: str | Path = ".",
    author: str | None = None,
) -> list[CommitRecord]:
    """Collect commits on a branch, oldest first.

    Args:
        branch: Branch (or any revision) to read
        max_commits: Maximum number of commits to return
        repository_label: Label attached to every record
        path: Path inside the checkout
        author: Only include commits by this author (optional)

    Returns:
        Up to max_commits CommitRecords, oldest first

    Raises:
        GitCollectionError: If git fails or the output cannot be parsed
    """
    args = [
        "log",
        "--reverse",
        f"--max-count={max_commits}",
        f"--pretty=format:{LOG_FORMAT}",
    ]
    if author:
        args.append(f"--author={author}")
    # A branch name starting with "-" must not be read as an option
    args += ["--end-of-options", branch]

    try:
        output = await run_git(*args, cwd=path)
        commits = parse_git_log(output, repository_label, branch)
    except GitCollectionError as e:
        raise GitCollectionError(f"Failed to extract commits: {e}") from e

    logger.debug("Collected {} commits from {} ({})", len(commits), repository_label, branch)
    return commits
