"""Resilience components: endpoint failure tracking and backoff."""

from rpcpool.resilience.failure_tracker import (
    FailureRecord,
    FailureTracker,
    compute_backoff,
)

__all__ = [
    "FailureRecord",
    "FailureTracker",
    "compute_backoff",
]
