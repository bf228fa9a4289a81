"""Git commit collection.

This module provides:
- collect_git_commits: Read a branch's history as CommitRecords
- get_repository_info: Remote URL and current branch of a checkout
- get_repository_name: Default repository label from a remote URL
"""

from .operations import (
    collect_git_commits,
    get_current_git_user,
    get_repository_info,
    get_repository_name,
    parse_git_log,
    run_git,
)

__all__ = [
    "collect_git_commits",
    "get_current_git_user",
    "get_repository_info",
    "get_repository_name",
    "parse_git_log",
    "run_git",
]
