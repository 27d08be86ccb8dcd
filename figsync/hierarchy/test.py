"""Unit tests for atomic hierarchy resolution."""

import pytest

from figsync.core.cancel import CancellationToken, OperationCancelled
from figsync.graph import ComponentInfo, Document, Geometry, Node, NodeKind, Page, Tier

from .lib import (
    ArtifactRegistry,
    HierarchyResolver,
    build_order,
    collect_units,
    determine_tier,
    resolve_hierarchy,
)

ROOT = "Assets/UI"


def _chain(depth: int, node_id: str = "n") -> Node:
    """A node whose deepest descendant sits `depth` levels below it."""
    node = Node(id=f"{node_id}-{depth}", name="Leaf")
    for level in range(depth - 1, -1, -1):
        node = Node(id=f"{node_id}-{level}", name=f"Level{level}", children=[node])
    return node


def _instance(node_id: str, component_id: str, name: str = "Button") -> Node:
    return Node(
        id=node_id,
        name=name,
        kind=NodeKind.INSTANCE,
        is_instance=True,
        component_id=component_id,
        geometry=Geometry(x=10, y=20, width=120, height=40),
        children=[Node(id=f"{node_id}-label", name="Label", kind=NodeKind.TEXT)],
    )


def _document() -> Document:
    """Button definition on the atoms page, used twice on a home screen."""
    button = Node(
        id="c:btn",
        name="Button",
        kind=NodeKind.COMPONENT,
        is_component=True,
        children=[Node(id="c:btn-label", name="Label", kind=NodeKind.TEXT)],
    )
    home = Node(
        id="home",
        name="Home",
        children=[
            _instance("i1", "c:btn"),
            Node(id="card", name="Card", children=[_instance("i2", "c:btn")]),
            Node(id="hidden", name="Hidden", visible=False),
        ],
    )
    return Document(
        name="App",
        pages=[
            Page(id="p1", name="Atoms", tier=Tier.ATOM, children=[button]),
            Page(id="p2", name="Screens", children=[home]),
        ],
        components={"c:btn": ComponentInfo(node_id="c:btn", name="Button")},
    )


# =============================================================================
# Tier Determination
# =============================================================================


class TestDetermineTier:
    """Tests for tier inference."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "depth, expected",
        [
            (0, Tier.ATOM),
            (2, Tier.ATOM),
            (3, Tier.MOLECULE),
            (4, Tier.MOLECULE),
            (6, Tier.ORGANISM),
            (7, Tier.SCREEN),
        ],
    )
    def test_depth_thresholds(self, depth, expected):
        """Depth alone picks the tier when there are no instances."""
        assert determine_tier(_chain(depth)) == expected

    @pytest.mark.unit
    def test_instances_raise_tier(self):
        """A shallow subtree with instances is not an atom."""
        root = Node(id="r", name="Row", children=[_instance("i", "c")])
        assert determine_tier(root) == Tier.MOLECULE

        crowded = Node(
            id="r", name="Row", children=[_instance(f"i{i}", "c") for i in range(4)]
        )
        assert determine_tier(crowded) == Tier.ORGANISM

    @pytest.mark.unit
    def test_explicit_tier_wins(self):
        """Node tier beats page tier, which beats inference."""
        node = _chain(7)
        assert determine_tier(node, Tier.MOLECULE) == Tier.MOLECULE

        node.tier = Tier.SKIP
        assert determine_tier(node, Tier.MOLECULE) == Tier.SKIP

    @pytest.mark.unit
    def test_screen_page_tier_falls_back_to_inference(self):
        """Ordinary pages default to screen and defer to inference."""
        assert determine_tier(_chain(1), Tier.SCREEN) == Tier.ATOM


# =============================================================================
# Units and Build Order
# =============================================================================


class TestBuildOrder:
    """Tests for unit collection and ordering."""

    @pytest.mark.unit
    def test_collect_units(self):
        """Page roots and component definitions, once each, in document order."""
        units = collect_units(_document())

        assert [unit.id for unit in units] == ["c:btn", "home"]
        assert units[0].is_definition
        assert units[0].tier == Tier.ATOM
        assert units[1].tier == Tier.MOLECULE

    @pytest.mark.unit
    def test_unselected_page_keeps_definitions(self):
        """Roots of unselected pages are not built, definitions on them are."""
        document = _document()
        for page in document.pages:
            page.selected = False

        assert [unit.id for unit in collect_units(document)] == ["c:btn"]

    @pytest.mark.unit
    def test_nested_definition_is_a_unit(self):
        """Definitions nested inside page roots are collected too."""
        nested = Node(id="c:chip", name="Chip", is_component=True)
        board = Node(id="board", name="Board", children=[nested])
        page = Page(id="p", children=[board])

        units = collect_units(Document(pages=[page]))

        assert [unit.id for unit in units] == ["board", "c:chip"]

    @pytest.mark.unit
    def test_lowest_tier_first(self):
        """Tiers ascend regardless of document order."""
        document = _document()
        document.pages.reverse()

        order = build_order(collect_units(document))

        assert [[unit.id for unit in tier] for tier in order] == [["c:btn"], ["home"]]

    @pytest.mark.unit
    def test_referenced_definitions_first_within_tier(self):
        """A definition used by another unit of the same tier is built first."""
        icon = Node(id="c:icon", name="Icon", is_component=True, tier=Tier.ATOM)
        badge = Node(
            id="c:badge",
            name="Badge",
            is_component=True,
            tier=Tier.ATOM,
            children=[_instance("i", "c:icon", name="Icon")],
        )
        dot = Node(id="c:dot", name="Dot", is_component=True, tier=Tier.ATOM)
        page = Page(id="p", children=[badge, dot, icon])

        order = build_order(collect_units(Document(pages=[page])))

        assert [unit.id for unit in order[0]] == ["c:dot", "c:icon", "c:badge"]

    @pytest.mark.unit
    def test_skip_tier_left_out(self):
        """Skip-tier units take no part in the order."""
        document = _document()
        document.pages[1].children[0].tier = Tier.SKIP

        plan = resolve_hierarchy(document, ROOT)

        assert plan.order == [["c:btn"]]
        assert "home" in plan.skipped
        assert plan.artifact_for("home") is None


# =============================================================================
# Registry
# =============================================================================


class TestArtifactRegistry:
    """Tests for the component registry."""

    @pytest.mark.unit
    def test_first_registration_wins(self):
        registry = ArtifactRegistry()

        assert registry.register("c", "A/Atoms/One")
        assert not registry.register("c", "A/Atoms/Two")
        assert registry.get("c") == "A/Atoms/One"
        assert len(registry) == 1

    @pytest.mark.unit
    def test_missing(self):
        registry = ArtifactRegistry()
        assert registry.get("c") is None
        assert registry.get(None) is None
        assert "c" not in registry


# =============================================================================
# Resolver
# =============================================================================


class TestHierarchyResolver:
    """Tests for building and substitution."""

    @pytest.mark.unit
    def test_instances_become_references(self):
        """Both button instances on the screen point at the atom artifact."""
        document = _document()

        plan = HierarchyResolver(ROOT).build(document)

        assert plan.order == [["c:btn"], ["home"]]
        assert [a.ref for a in plan.artifacts] == [
            "Assets/UI/Atoms/Button",
            "Assets/UI/Molecules/Home",
        ]
        home = plan.artifact_for("home").root
        direct = home.children[0]
        nested = home.children[1].children[0]
        for reference in (direct, nested):
            assert reference.is_reference
            assert reference.artifact_ref == "Assets/UI/Atoms/Button"
            assert reference.children == []
        assert direct.geometry == Geometry(x=10, y=20, width=120, height=40)
        assert plan.references_emitted == 2

    @pytest.mark.unit
    def test_logical_nodes_annotated(self):
        """Definitions and substituted instances carry the artifact reference."""
        document = _document()

        resolve_hierarchy(document, ROOT)

        assert document.find_node("c:btn").artifact_ref == "Assets/UI/Atoms/Button"
        instance = document.find_node("i2")
        assert instance.is_reference
        assert instance.artifact_ref == "Assets/UI/Atoms/Button"
        info = document.components["c:btn"]
        assert info.artifact_ref == "Assets/UI/Atoms/Button"
        assert info.tier == Tier.ATOM

    @pytest.mark.unit
    def test_invisible_children_not_emitted(self):
        document = _document()

        plan = resolve_hierarchy(document, ROOT)

        names = [child.name for child in plan.artifact_for("home").root.children]
        assert names == ["Button", "Card"]

    @pytest.mark.unit
    def test_build_twice_single_artifact(self):
        """Re-building a registered component yields no second artifact."""
        document = _document()
        resolver = HierarchyResolver(ROOT)
        unit = collect_units(document)[0]

        first = resolver.build_unit(unit, document)
        second = resolver.build_unit(unit, document)

        assert first is not None
        assert second is None
        assert len(resolver.registry) == 1

    @pytest.mark.unit
    def test_unregistered_instance_emitted_in_full(self):
        """An instance of a component without an artifact keeps its content."""
        screen = Node(id="s", name="Screen", children=[_instance("i", "c:missing")])
        document = Document(pages=[Page(id="p", children=[screen])])

        plan = resolve_hierarchy(document, ROOT)

        emitted = plan.artifacts[0].root.children[0]
        assert not emitted.is_reference
        assert [child.name for child in emitted.children] == ["Label"]
        assert not document.find_node("i").is_reference

    @pytest.mark.unit
    def test_ref_collisions_get_suffix(self):
        page = Page(
            id="p",
            children=[Node(id="a", name="Home"), Node(id="b", name="Home")],
        )

        plan = resolve_hierarchy(Document(pages=[page]), ROOT)

        assert [a.ref for a in plan.artifacts] == [
            "Assets/UI/Atoms/Home",
            "Assets/UI/Atoms/Home_1",
        ]

    @pytest.mark.unit
    def test_duplicate_sibling_names(self):
        """Name matching takes the first same-named sibling; id matching does not."""

        def build(match_by_id: bool):
            item = Node(id="c:item", name="Item", is_component=True, tier=Tier.ATOM)
            plain = Node(id="plain", name="Item")
            used = _instance("used", "c:item", name="Item")
            screen = Node(id="s", name="List", tier=Tier.SCREEN, children=[plain, used])
            document = Document(pages=[Page(id="p", children=[item, screen])])
            return HierarchyResolver(ROOT, match_by_id=match_by_id).build(document)

        by_name = build(False).artifact_for("s").root
        by_id = build(True).artifact_for("s").root

        assert [child.is_reference for child in by_name.children] == [False, False]
        assert [child.is_reference for child in by_id.children] == [False, True]

    @pytest.mark.unit
    def test_progress_reported_per_unit(self):
        calls = []

        resolve_hierarchy(
            _document(), ROOT, on_progress=lambda p, unit: calls.append((p, unit.id))
        )

        assert calls == [(0.5, "c:btn"), (1.0, "home")]

    @pytest.mark.unit
    def test_cancellation(self):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            resolve_hierarchy(_document(), ROOT, cancel=token)
