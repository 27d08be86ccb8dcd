"""figsync: layout translation and atomic build planning for design documents."""

from figsync.graph import Document, Node, Page
from figsync.pipeline import PipelineResult, SyncPipeline
from figsync.validation import GraphIntegrityError, ValidationError, validate_document

__all__ = [
    # Graph
    "Document",
    "Page",
    "Node",
    # Pipeline
    "SyncPipeline",
    "PipelineResult",
    # Validation
    "validate_document",
    "ValidationError",
    "GraphIntegrityError",
]
