"""Structural validation of node graphs."""

from figsync.validation.lib import (
    GraphIntegrityError,
    ValidationError,
    ensure_valid,
    is_valid,
    validate_document,
    validate_nodes,
)

__all__ = [
    "ValidationError",
    "GraphIntegrityError",
    "validate_document",
    "validate_nodes",
    "ensure_valid",
    "is_valid",
]
