"""Build units, emitted trees and artifacts of the atomic hierarchy."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from figsync.graph import Geometry, Node, NodeKind, NodeLayout, Page, Tier


@dataclass
class BuildUnit:
    """One subtree built into an artifact.

    Attributes:
        node: Root of the subtree (page top-level node or component definition).
        page: Page the root lives on.
        tier: Resolved hierarchy tier.
    """

    node: Node
    page: Page
    tier: Tier

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def is_definition(self) -> bool:
        return self.node.is_component


class EmittedNode(BaseModel):
    """Node of an emitted artifact tree.

    Reference nodes carry only the instance's own geometry and layout plus
    the artifact they point at; they have no children.
    """

    name: str
    source_id: str
    kind: NodeKind = NodeKind.FRAME
    geometry: Geometry = Field(default_factory=Geometry)
    layout: NodeLayout | None = None
    is_reference: bool = False
    artifact_ref: str | None = None
    children: list["EmittedNode"] = Field(default_factory=list)

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    @property
    def reference_count(self) -> int:
        return sum(1 for node in self.walk() if node.is_reference)


class Artifact(BaseModel):
    """A built unit, addressable by its reference."""

    ref: str
    unit_id: str
    tier: Tier
    component_id: str | None = None
    root: EmittedNode


class BuildPlan(BaseModel):
    """Result of a hierarchy build.

    Attributes:
        order: Tiers of unit ids in build order, lowest tier first.
        artifacts: Artifacts in the order they were built.
        skipped: Unit ids not built (skip tier or already registered).
    """

    order: list[list[str]] = Field(default_factory=list)
    artifacts: list[Artifact] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @property
    def references_emitted(self) -> int:
        return sum(artifact.root.reference_count for artifact in self.artifacts)

    def artifact_for(self, unit_id: str) -> Artifact | None:
        for artifact in self.artifacts:
            if artifact.unit_id == unit_id:
                return artifact
        return None


__all__ = ["BuildUnit", "EmittedNode", "Artifact", "BuildPlan"]
