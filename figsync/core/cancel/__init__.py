"""Cooperative cancellation for long-running traversals."""

from .lib import (
    POLL_INTERVAL,
    CancellationToken,
    OperationCancelled,
    check,
    run_cancellable,
)

__all__ = [
    "CancellationToken",
    "OperationCancelled",
    "POLL_INTERVAL",
    "check",
    "run_cancellable",
]
