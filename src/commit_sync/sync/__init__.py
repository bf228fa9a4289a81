"""Commit sync pipeline.

Components:
- SyncOrchestrator: Collect, filter, deliver and record one repository
- MultiRepoSync: Run the orchestrator for every enrolled repository
- Result types for CLI output and monitoring
"""

from .multi_repo import MultiRepoSync
from .orchestrator import SyncOptions, SyncOrchestrator
from .results import MultiRepoSyncResult, RepoSyncResult, SyncResult, SyncStatus

__all__ = [
    "MultiRepoSync",
    "MultiRepoSyncResult",
    "RepoSyncResult",
    "SyncOptions",
    "SyncOrchestrator",
    "SyncResult",
    "SyncStatus",
]
