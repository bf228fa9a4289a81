"""SQLAlchemy ORM models for the SQLite commit cache."""

from datetime import datetime

from sqlalchemy import DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class CachedCommit(Base):
    """A commit hash already delivered for a repository."""

    __tablename__ = "cached_commits"
    __table_args__ = (
        UniqueConstraint("repository_label", "hash", name="uq_cached_commit_repo_hash"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    repository_label: Mapped[str] = mapped_column(String(500), index=True)
    hash: Mapped[str] = mapped_column(String(64))
    cached_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    def __repr__(self) -> str:
        return f"<CachedCommit {self.repository_label}@{self.hash[:7]}>"
