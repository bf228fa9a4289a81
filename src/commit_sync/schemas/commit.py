"""Pydantic schemas for collected commits and their repository."""

from pydantic import ConfigDict, Field

from .base import SchemaBase


class RepositoryInfo(SchemaBase):
    """The local checkout commits were collected from.

    Sent with every delivery request as context.
    """

    model_config = ConfigDict(frozen=True)

    remote_url: str = Field(alias="remoteUrl", description="origin remote URL")
    current_branch: str = Field(alias="currentBranch", description="Checked-out branch")
    local_path: str = Field(alias="path", description="Local checkout path")


class CommitRecord(SchemaBase):
    """A single commit read from git log.

    `hash` is the natural key within a repository. Records are immutable
    once produced by the collector.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=False)

    repository_label: str = Field(alias="repository", description="Repository label")
    hash: str = Field(description="Full commit SHA")
    message: str = Field(description="Full commit message (subject and body)")
    author: str = Field(description="Author name")
    date: str = Field(description="Author date as printed by git (%ai)")
    branch: str = Field(description="Branch the commit was read from")

    @property
    def short_hash(self) -> str:
        """Abbreviated hash for display."""
        return self.hash[:7]

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]
