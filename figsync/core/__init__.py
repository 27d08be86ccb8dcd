"""Core utilities shared across figsync modules."""

from .cancel import CancellationToken, OperationCancelled
from .log import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
    "CancellationToken",
    "OperationCancelled",
]
