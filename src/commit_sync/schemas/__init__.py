"""Pydantic schemas for Commit Sync.

This module provides the wire models exchanged with the service.
"""

from .base import SchemaBase
from .commit import CommitRecord, RepositoryInfo
from .delivery import (
    Achievement,
    AchievementSource,
    BatchResult,
    CommitError,
    DeliveryPayload,
)

__all__ = [
    # Base
    "SchemaBase",
    # Commits
    "CommitRecord",
    "RepositoryInfo",
    # Delivery
    "Achievement",
    "AchievementSource",
    "BatchResult",
    "CommitError",
    "DeliveryPayload",
]
