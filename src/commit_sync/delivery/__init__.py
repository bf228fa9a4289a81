"""Batched commit delivery.

Components:
- DeliveryClient: httpx client for the commit delivery endpoint
- BatchDeliveryEngine: Streams per-batch results with bounded retry
- RetryPolicy: Fixed or exponential delay with optional jitter
"""

from .batching import (
    BatchDeliveryEngine,
    BatchSender,
    CommitBatch,
    DeliveredBatch,
    partition_commits,
)
from .client import COMMITS_ENDPOINT, DeliveryClient
from .retry import RetryPolicy, SleepFunc

__all__ = [
    # Engine
    "BatchDeliveryEngine",
    "BatchSender",
    "CommitBatch",
    "DeliveredBatch",
    "partition_commits",
    # Client
    "COMMITS_ENDPOINT",
    "DeliveryClient",
    # Retry
    "RetryPolicy",
    "SleepFunc",
]
