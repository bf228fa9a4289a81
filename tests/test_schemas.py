"""Tests for the wire schemas."""

import pytest
from pydantic import ValidationError

from commit_sync.schemas import (
    Achievement,
    AchievementSource,
    BatchResult,
    CommitRecord,
    DeliveryPayload,
    RepositoryInfo,
)
from tests.factories import make_commit, make_stored_achievement


class TestCommitRecord:
    """Tests for CommitRecord."""

    def test_serializes_by_alias(self):
        """The repository label goes over the wire as 'repository'."""
        commit = make_commit(1)

        data = commit.to_wire()

        assert data["repository"] == commit.repository_label
        assert "repository_label" not in data

    def test_message_whitespace_preserved(self):
        """Commit messages are kept exactly as git printed them."""
        commit = CommitRecord(
            repository_label="acme/widgets",
            hash="a" * 40,
            message="  Subject\n\n  indented body\n",
            author="Alice",
            date="2024-01-01 10:00:00 +0000",
            branch="main",
        )

        assert commit.message == "  Subject\n\n  indented body\n"

    def test_subject_and_short_hash(self):
        """subject is the first line and short_hash the first 7 characters."""
        commit = make_commit(1)

        assert commit.subject == "Commit number 1"
        assert commit.short_hash == commit.hash[:7]

    def test_frozen(self):
        """Collected records are immutable."""
        commit = make_commit(1)

        with pytest.raises(ValidationError):
            commit.hash = "b" * 40


class TestDeliveryPayload:
    """Tests for DeliveryPayload."""

    def test_wire_shape(self, repository_info: RepositoryInfo):
        """Repository context uses camelCase keys."""
        payload = DeliveryPayload(repository=repository_info, commits=[make_commit(1)])

        data = payload.to_wire()

        assert set(data["repository"]) == {"remoteUrl", "currentBranch", "path"}
        assert len(data["commits"]) == 1


class TestBatchResult:
    """Tests for BatchResult."""

    def test_from_wire(self):
        """camelCase fields and achievement titles are accepted."""
        result = BatchResult.from_wire(
            {
                "processedCount": 2,
                "achievements": [{"id": "a1", "title": "First commit"}],
                "processedHashes": ["abc", "def"],
            }
        )

        assert result.processed_count == 2
        assert result.achievements[0].description == "First commit"
        assert result.processed_hashes == ["abc", "def"]

    def test_negative_count_rejected(self):
        """processedCount cannot be negative."""
        with pytest.raises(ValidationError):
            BatchResult.from_wire({"processedCount": -1})


class TestAchievement:
    """Tests for Achievement."""

    def test_documented_shape(self):
        """description, date and a structured source are parsed."""
        achievement = Achievement.from_wire(
            {
                "id": "a1",
                "description": "Fixed the login flow",
                "date": "2024-02-01",
                "source": {"type": "commit", "hash": "abc"},
            }
        )

        assert achievement.description == "Fixed the login flow"
        assert isinstance(achievement.source, AchievementSource)
        assert achievement.source.hash == "abc"

    def test_stored_row_shape(self):
        """A stored row with title, eventStart and a string source is accepted."""
        achievement = Achievement.from_wire(make_stored_achievement("a2", "Shipped widgets"))

        assert achievement.description == "Shipped widgets"
        assert achievement.date == "2024-03-01T00:00:00.000Z"
        assert achievement.source == "llm"

    def test_unknown_fields_kept(self):
        """Fields the client does not model survive serialization."""
        achievement = Achievement.from_wire(make_stored_achievement())

        data = achievement.to_wire()

        assert data["summary"] == "Shipped for the team"
        assert data["impactSource"] == "llm"

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            ({"id": "a1", "title": "Shipped"}, "Shipped"),
            ({"id": "a1"}, "a1"),
            ({"id": 7, "title": None}, "7"),
            ({}, "(untitled)"),
        ],
    )
    def test_display_name(self, data: dict, expected: str):
        """display_name falls back from description to id."""
        assert Achievement.from_wire(data).display_name == expected

    def test_batch_with_stored_rows(self):
        """A batch result whose achievements are stored rows parses."""
        result = BatchResult.from_wire(
            {
                "processedCount": 1,
                "achievements": [make_stored_achievement()],
            }
        )

        assert result.processed_count == 1
        assert result.achievements[0].display_name == "Shipped"
