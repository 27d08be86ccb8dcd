"""Atomic hierarchy: tiers, build order and artifact deduplication.

Example usage:
    >>> from figsync.hierarchy import HierarchyResolver
    >>> plan = HierarchyResolver("Assets/UI").build(document)
    >>> [len(tier) for tier in plan.order]
    [3, 2, 1]
"""

from .lib import (
    DEFAULT_ARTIFACT_ROOT,
    ArtifactRegistry,
    HierarchyResolver,
    ProgressCallback,
    build_order,
    collect_units,
    determine_tier,
    resolve_hierarchy,
)
from .models import Artifact, BuildPlan, BuildUnit, EmittedNode

__all__ = [
    # Resolver
    "HierarchyResolver",
    "ArtifactRegistry",
    "resolve_hierarchy",
    "ProgressCallback",
    "DEFAULT_ARTIFACT_ROOT",
    # Planning
    "determine_tier",
    "collect_units",
    "build_order",
    # Models
    "BuildUnit",
    "EmittedNode",
    "Artifact",
    "BuildPlan",
]
