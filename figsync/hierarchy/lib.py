"""Atomic hierarchy resolution.

Assigns every build unit a tier, orders units lowest tier first and
builds them one by one. After a component definition is built, its
artifact is registered; later units that contain an instance of that
component get a lightweight reference in place of the instance subtree.

Emitted children are matched back to their logical nodes by name among
the logical parent's children. Duplicate sibling names can match the
wrong node; `match_by_id=True` matches by source id instead.
"""

import logging
from collections.abc import Callable

from figsync.core.cancel import CancellationToken, check
from figsync.graph import Document, Node, Page, Tier

from .models import Artifact, BuildPlan, BuildUnit, EmittedNode

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_ROOT = "Assets/Prefabs/Figma"

ProgressCallback = Callable[[float, BuildUnit], None]


# =============================================================================
# Tiers and Build Order
# =============================================================================


def determine_tier(node: Node, page_tier: Tier | None = None) -> Tier:
    """Resolve the hierarchy tier of a build unit root.

    An explicit node tier wins, then a non-screen page tier. Otherwise the
    tier is inferred from the subtree's depth and instance count.

    Example:
        >>> determine_tier(Node(id="1", name="Dot"))
        <Tier.ATOM: 1>
    """
    if node.tier is not None:
        return node.tier
    if page_tier is not None and page_tier != Tier.SCREEN:
        return page_tier

    depth = node.max_depth()
    instances = node.instance_count()
    if depth <= 2 and instances == 0:
        return Tier.ATOM
    if depth <= 4 and instances <= 3:
        return Tier.MOLECULE
    if depth <= 6:
        return Tier.ORGANISM
    return Tier.SCREEN


def collect_units(document: Document) -> list[BuildUnit]:
    """Top-level nodes of selected pages plus every component definition.

    Units are returned in document order, each node at most once.
    """
    units: list[BuildUnit] = []
    seen: set[str] = set()

    def add(node: Node, page: Page) -> None:
        if node.id not in seen:
            seen.add(node.id)
            units.append(BuildUnit(node, page, determine_tier(node, page.tier)))

    for page in document.pages:
        for root in page.children:
            if page.selected and root.visible:
                add(root, page)
            for node in root.walk():
                if node.is_component:
                    add(node, page)
    return units


def _referenced_components(unit: BuildUnit) -> set[str]:
    return {
        node.component_id
        for node in unit.node.walk()
        if node.is_instance and node.component_id and node is not unit.node
    }


def _order_tier(units: list[BuildUnit]) -> list[BuildUnit]:
    """Stable topological order: referenced definitions before their users."""
    definitions = {unit.id for unit in units if unit.is_definition}
    depends_on = {
        unit.id: (_referenced_components(unit) & definitions) - {unit.id}
        for unit in units
    }

    ordered: list[BuildUnit] = []
    placed: set[str] = set()
    remaining = list(units)
    while remaining:
        ready = next(
            (unit for unit in remaining if depends_on[unit.id] <= placed), None
        )
        if ready is None:
            ready = remaining[0]
            logger.warning(
                f"Reference cycle among {[unit.id for unit in remaining]}, "
                f"building '{ready.id}' first"
            )
        remaining.remove(ready)
        placed.add(ready.id)
        ordered.append(ready)
    return ordered


def build_order(units: list[BuildUnit]) -> list[list[BuildUnit]]:
    """Group units by ascending tier; skip-tier units are left out."""
    tiers = []
    for tier in sorted(set(unit.tier for unit in units)):
        if tier == Tier.SKIP:
            continue
        tiers.append(_order_tier([unit for unit in units if unit.tier == tier]))
    return tiers


# =============================================================================
# Artifact Registry
# =============================================================================


class ArtifactRegistry:
    """Maps component ids to the artifact built from their definition.

    The first registration of a component wins.
    """

    def __init__(self) -> None:
        self._by_component: dict[str, str] = {}

    def register(self, component_id: str, ref: str) -> bool:
        """Register an artifact; returns False if the component already has one."""
        if component_id in self._by_component:
            return False
        self._by_component[component_id] = ref
        return True

    def get(self, component_id: str | None) -> str | None:
        if component_id is None:
            return None
        return self._by_component.get(component_id)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._by_component

    def __len__(self) -> int:
        return len(self._by_component)


# =============================================================================
# Resolver
# =============================================================================


class HierarchyResolver:
    """Builds units in tier order and substitutes registered components.

    Example:
        >>> resolver = HierarchyResolver("Assets/UI")
        >>> plan = resolver.build(document)
        >>> plan.order
        [['1:1'], ['2:1']]
        >>> plan.artifacts[0].ref
        'Assets/UI/Atoms/Button'
    """

    def __init__(
        self,
        artifact_root: str = DEFAULT_ARTIFACT_ROOT,
        *,
        match_by_id: bool = False,
        cancel: CancellationToken | None = None,
    ):
        """Initialize the resolver.

        Args:
            artifact_root: Prefix of every artifact reference.
            match_by_id: Match emitted children to logical nodes by source id
                instead of by name.
            cancel: Token checked before each unit is built.
        """
        self.artifact_root = artifact_root.rstrip("/")
        self.match_by_id = match_by_id
        self.registry = ArtifactRegistry()
        self._cancel = cancel
        self._used_refs: set[str] = set()

    def build(
        self, document: Document, on_progress: ProgressCallback | None = None
    ) -> BuildPlan:
        """Build every unit of a document.

        Args:
            document: Classified and layout-resolved document.
            on_progress: Called after each unit with overall progress (0..1).

        Raises:
            OperationCancelled: If the token fires between units.
        """
        units = collect_units(document)
        tiers = build_order(units)
        plan = BuildPlan(order=[[unit.id for unit in tier] for tier in tiers])
        plan.skipped.extend(unit.id for unit in units if unit.tier == Tier.SKIP)

        total = sum(len(tier) for tier in tiers)
        done = 0
        for tier_units in tiers:
            if tier_units:
                logger.info(
                    f"Building {len(tier_units)} {tier_units[0].tier.name.lower()} "
                    "unit(s)"
                )
            for unit in tier_units:
                check(self._cancel)
                artifact = self.build_unit(unit, document)
                if artifact is None:
                    plan.skipped.append(unit.id)
                else:
                    plan.artifacts.append(artifact)
                done += 1
                if on_progress:
                    on_progress(done / total, unit)

        logger.info(
            f"Built {len(plan.artifacts)} artifact(s) with "
            f"{plan.references_emitted} reference(s)"
        )
        return plan

    def build_unit(
        self, unit: BuildUnit, document: Document | None = None
    ) -> Artifact | None:
        """Emit, rewrite and register one unit.

        Returns:
            The artifact, or None if the unit is a component that already has
            one.
        """
        node = unit.node
        if node.is_component and node.id in self.registry:
            logger.debug(f"Component '{node.id}' already built, skipping")
            return None

        root = self.emit(node)
        self.substitute(root, node)

        ref = self._allocate_ref(unit)
        component_id = None
        if node.is_component:
            component_id = node.id
            self.registry.register(component_id, ref)
        node.artifact_ref = ref

        if document is not None and node.id in document.components:
            info = document.components[node.id]
            info.artifact_ref = ref
            info.tier = unit.tier

        return Artifact(
            ref=ref,
            unit_id=node.id,
            tier=unit.tier,
            component_id=component_id,
            root=root,
        )

    def emit(self, node: Node) -> EmittedNode:
        """Emit a subtree; invisible children are dropped."""
        return EmittedNode(
            name=node.clean_name,
            source_id=node.id,
            kind=node.kind,
            geometry=node.geometry.model_copy(),
            layout=node.layout,
            children=[self.emit(child) for child in node.children if child.visible],
        )

    def substitute(self, emitted: EmittedNode, logical: Node) -> None:
        """Replace emitted instances of registered components with references."""
        for index, child in enumerate(emitted.children):
            source = self._match(logical, child)
            if source is None:
                continue

            ref = self.registry.get(source.component_id) if source.is_instance else None
            if ref is None:
                self.substitute(child, source)
                continue

            emitted.children[index] = EmittedNode(
                name=child.name,
                source_id=child.source_id,
                kind=child.kind,
                geometry=child.geometry,
                layout=child.layout,
                is_reference=True,
                artifact_ref=ref,
            )
            source.is_reference = True
            source.artifact_ref = ref

    def _match(self, logical: Node, emitted: EmittedNode) -> Node | None:
        for child in logical.children:
            if self.match_by_id:
                if child.id == emitted.source_id:
                    return child
            elif emitted.name in (child.clean_name, child.name):
                return child
        return None

    def _allocate_ref(self, unit: BuildUnit) -> str:
        base = f"{self.artifact_root}/{unit.tier.folder}/{unit.node.clean_name}"
        ref = base
        counter = 1
        while ref in self._used_refs:
            ref = f"{base}_{counter}"
            counter += 1
        self._used_refs.add(ref)
        return ref


def resolve_hierarchy(
    document: Document,
    artifact_root: str = DEFAULT_ARTIFACT_ROOT,
    *,
    match_by_id: bool = False,
    cancel: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> BuildPlan:
    """Build a document with a fresh resolver."""
    resolver = HierarchyResolver(artifact_root, match_by_id=match_by_id, cancel=cancel)
    return resolver.build(document, on_progress)


__all__ = [
    "DEFAULT_ARTIFACT_ROOT",
    "ProgressCallback",
    "determine_tier",
    "collect_units",
    "build_order",
    "ArtifactRegistry",
    "HierarchyResolver",
    "resolve_hierarchy",
]
