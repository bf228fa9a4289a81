"""Pydantic schemas for the commit delivery endpoint."""

from pydantic import AliasChoices, ConfigDict, Field

from .base import SchemaBase
from .commit import CommitRecord, RepositoryInfo


class DeliveryPayload(SchemaBase):
    """Request body for one batch."""

    repository: RepositoryInfo
    commits: list[CommitRecord]


class AchievementSource(SchemaBase):
    """Where the service found an achievement."""

    type: str = Field(default="commit")
    hash: str | None = None
    pr_number: int | None = Field(default=None, alias="prNumber")


class Achievement(SchemaBase):
    """An achievement the service derived from delivered commits.

    Opaque to this tool beyond display, so every field is optional and
    unknown fields are kept. The service may return its stored achievement
    row instead of the documented shape: `title` in place of `description`,
    `eventStart` in place of `date`, and `source` as a plain string such
    as "llm".
    """

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    description: str | None = Field(
        default=None,
        validation_alias=AliasChoices("description", "title"),
    )
    date: str | None = Field(
        default=None,
        validation_alias=AliasChoices("date", "eventStart"),
    )
    source: AchievementSource | str | None = None

    @property
    def display_name(self) -> str:
        """Text shown for the achievement in logs and CLI output."""
        if self.description:
            return self.description
        return str(self.id) if self.id is not None else "(untitled)"


class CommitError(SchemaBase):
    """A per-commit error reported by the service."""

    commit: str
    error: str


class BatchResult(SchemaBase):
    """The service's report of what it did with one batch."""

    processed_count: int = Field(alias="processedCount", ge=0)
    achievements: list[Achievement] = Field(default_factory=list)
    errors: list[CommitError] = Field(default_factory=list)
    processed_hashes: list[str] | None = Field(
        default=None,
        alias="processedHashes",
        description="Exact hashes processed, when the service echoes them",
    )
