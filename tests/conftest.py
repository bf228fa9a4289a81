"""Pytest configuration and shared fixtures.

Usage Guide:
- For commit records: use make_commit / make_commits from tests.factories
- For anything that reads Settings: the autouse isolated_settings fixture
  points the YAML config at a missing file and clears the settings cache
- For real git repositories: use the git_repo fixture (skipped without git)
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

from commit_sync.config import get_settings
from commit_sync.schemas import RepositoryInfo

# -----------------------------------------------------------------------------
# Test Constants
# -----------------------------------------------------------------------------

REPO_LABEL = "acme/widgets"
REMOTE_URL = "git@github.com:acme/widgets.git"
API_URL = "https://api.test"
API_TOKEN = "test-token-123"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


# -----------------------------------------------------------------------------
# Settings Isolation
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep tests away from the user's config file and environment."""
    for var in (
        "COMMIT_SYNC_API_TOKEN",
        "COMMIT_SYNC_API_TOKEN_EXPIRES_AT",
        "COMMIT_SYNC_API_BASE_URL",
        "COMMIT_SYNC_LOG_LEVEL",
        "COMMIT_SYNC_DEFAULT_MAX_COMMITS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("COMMIT_SYNC_CONFIG_FILE", str(tmp_path / "missing-config.yml"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# Sample Data Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def repository_info() -> RepositoryInfo:
    """Repository context sent with delivery requests."""
    return RepositoryInfo(
        remote_url=REMOTE_URL,
        current_branch="main",
        local_path="/src/widgets",
    )


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Directory for commit cache files (not created up front)."""
    return tmp_path / "cache" / "commits"


# -----------------------------------------------------------------------------
# Git Fixtures
# -----------------------------------------------------------------------------
def _git(cwd: Path, *args: str) -> str:
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    ).stdout


def commit_file(repo: Path, name: str, message: str) -> str:
    """Create a file, commit it, and return the new commit hash."""
    (repo / name).write_text(f"{name}\n")
    _git(repo, "add", name)
    _git(repo, "commit", "-q", "-m", message)
    return _git(repo, "rev-parse", "HEAD").strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """An empty git repository on branch main with an origin remote."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    repo = tmp_path / "widgets"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(repo, "config", "user.name", "Test Author")
    _git(repo, "config", "user.email", "author@example.com")
    _git(repo, "config", "commit.gpgsign", "false")
    _git(repo, "remote", "add", "origin", REMOTE_URL)
    return repo
