"""Sync pipeline: validation, classification, layout and hierarchy build.

Example usage:
    >>> from figsync.parser import load_document
    >>> from figsync.pipeline import SyncPipeline
    >>> result = SyncPipeline().run(load_document("app.json"))
    >>> result.stats.artifacts_built
    4
"""

from .lib import PipelineResult, PipelineStats, ProgressCallback, SyncPipeline

__all__ = [
    "SyncPipeline",
    "PipelineResult",
    "PipelineStats",
    "ProgressCallback",
]
