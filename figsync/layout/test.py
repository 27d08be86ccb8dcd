"""Unit tests for layout translation."""

import pytest

from figsync.core.cancel import CancellationToken, OperationCancelled
from figsync.graph import (
    AnchorAlign,
    AxisAlign,
    ContainerLayout,
    Document,
    Geometry,
    HorizontalConstraint,
    LayoutMode,
    Node,
    Page,
    PlacementMode,
    Positioning,
    SelfSizing,
    SizingKind,
    SizingMode,
    VerticalConstraint,
)
from figsync.graph import Constraints as EdgeConstraints

from .alignment import (
    BASELINE_APPROXIMATED,
    make_spacers,
    map_axis_align,
    resolve_container,
)
from .constraints import (
    ABSOLUTE_WITHOUT_PARENT,
    DEGENERATE_PARENT,
    place_absolute,
    place_horizontal,
    place_vertical,
)
from .lib import LayoutTranslator, translate_document
from .sizing import FILL_OUTSIDE_LAYOUT, MAX_SIZE_SOFT_CAP, resolve_sizing


def _row(*children: Node, align: AxisAlign = AxisAlign.START, **kwargs) -> Node:
    return Node(
        id=kwargs.pop("id", "row"),
        geometry=Geometry(width=300, height=50),
        container=ContainerLayout(
            mode=kwargs.pop("mode", LayoutMode.HORIZONTAL),
            primary_align=align,
            item_spacing=12,
            **kwargs,
        ),
        children=list(children),
    )


def _child(node_id: str, **kwargs) -> Node:
    return Node(id=node_id, geometry=Geometry(width=40, height=20), **kwargs)


# =============================================================================
# Sizing
# =============================================================================


class TestSizing:
    """Tests for FIXED/HUG/FILL resolution."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "width,min_width,max_width,expected",
        [
            (120, None, None, 120),
            (120, 150, None, 150),
            (120, None, 100, 100),
            (120, 100, 200, 120),
            (0, 10, None, 10),
        ],
    )
    def test_fixed_is_clamped_stored_size(self, width, min_width, max_width, expected):
        """Fixed resolves to the stored size clamped to [min, max]."""
        node = Node(
            id="n",
            geometry=Geometry(width=width, height=10),
            sizing=SelfSizing(min_width=min_width, max_width=max_width),
        )
        for parent in (_row(node), None):
            directive = resolve_sizing(node, parent)
            assert directive.horizontal.kind == SizingKind.EXACT
            assert directive.horizontal.size == expected

    @pytest.mark.unit
    def test_fill_uses_grow_weight(self):
        node = _child("n", sizing=SelfSizing(horizontal=SizingMode.FILL, grow=3))
        directive = resolve_sizing(node, _row(node))
        assert directive.horizontal.kind == SizingKind.GROW
        assert directive.horizontal.weight == 3
        assert directive.vertical.kind == SizingKind.EXACT

    @pytest.mark.unit
    def test_fill_defaults_weight_one(self):
        node = _child("n", sizing=SelfSizing(vertical=SizingMode.FILL))
        directive = resolve_sizing(node, _row(node))
        assert directive.vertical.weight == 1

    @pytest.mark.unit
    def test_fill_max_is_soft_cap(self):
        """A max on a FILL axis becomes the preferred size and is tagged."""
        node = _child(
            "n", sizing=SelfSizing(horizontal=SizingMode.FILL, max_width=240)
        )
        tags: list[str] = []
        directive = resolve_sizing(node, _row(node), tags)
        assert directive.horizontal.preferred == 240
        assert tags == [MAX_SIZE_SOFT_CAP]

    @pytest.mark.unit
    def test_hug_is_content_driven(self):
        node = _child("n", sizing=SelfSizing(horizontal=SizingMode.HUG, min_width=8))
        directive = resolve_sizing(node, _row(node))
        assert directive.horizontal.kind == SizingKind.SHRINK
        assert directive.horizontal.content_driven is True
        assert directive.horizontal.min_size == 8

    @pytest.mark.unit
    def test_free_form_parent_collapses_to_stored_size(self):
        """Without a parent axis every mode becomes the stored size."""
        node = _child(
            "n",
            sizing=SelfSizing(horizontal=SizingMode.HUG, vertical=SizingMode.FILL),
        )
        parent = Node(id="free", children=[node])
        tags: list[str] = []
        directive = resolve_sizing(node, parent, tags)
        assert directive.horizontal.kind == SizingKind.EXACT
        assert directive.horizontal.size == 40
        assert directive.vertical.kind == SizingKind.EXACT
        assert directive.vertical.size == 20
        assert tags == [FILL_OUTSIDE_LAYOUT]

    @pytest.mark.unit
    def test_absolute_child_ignores_parent_layout(self):
        node = _child(
            "n",
            positioning=Positioning.ABSOLUTE,
            sizing=SelfSizing(horizontal=SizingMode.FILL),
        )
        directive = resolve_sizing(node, _row(node))
        assert directive.horizontal.kind == SizingKind.EXACT


# =============================================================================
# Alignment and space-between
# =============================================================================


class TestAlignment:
    """Tests for container alignment."""

    @pytest.mark.unit
    def test_map_axis_align(self):
        assert map_axis_align(AxisAlign.CENTER) == AnchorAlign.CENTER
        assert map_axis_align(AxisAlign.END) == AnchorAlign.END
        assert map_axis_align(AxisAlign.SPACE_BETWEEN) == AnchorAlign.START
        assert map_axis_align(None) == AnchorAlign.START

    @pytest.mark.unit
    def test_vertical_container_swaps_axes(self):
        node = _row(
            mode=LayoutMode.VERTICAL,
            align=AxisAlign.END,
            counter_align=AxisAlign.CENTER,
        )
        directive = resolve_container(node)
        assert directive.axis == "vertical"
        assert directive.vertical_align == AnchorAlign.END
        assert directive.horizontal_align == AnchorAlign.CENTER
        assert directive.spacing == 12

    @pytest.mark.unit
    def test_space_between_forces_start_and_zero_spacing(self):
        directive = resolve_container(_row(align=AxisAlign.SPACE_BETWEEN))
        assert directive.space_between is True
        assert directive.horizontal_align == AnchorAlign.START
        assert directive.spacing == 0

    @pytest.mark.unit
    def test_baseline_tagged(self):
        tags: list[str] = []
        directive = resolve_container(_row(counter_align=AxisAlign.BASELINE), tags)
        assert directive.vertical_align == AnchorAlign.START
        assert tags == [BASELINE_APPROXIMATED]

    @pytest.mark.unit
    def test_non_layout_has_no_directive(self):
        assert resolve_container(Node(id="free")) is None


class TestSpaceBetween:
    """Tests for spacer insertion."""

    @pytest.mark.unit
    @pytest.mark.parametrize("count", [0, 1, 2, 3, 6])
    def test_spacer_count(self, count):
        """N children get N-1 spacers; fewer than 2 get none."""
        children = [_child(f"c{i}") for i in range(count)]
        row = _row(*children, align=AxisAlign.SPACE_BETWEEN)
        translate_document(Document(pages=[Page(id="p", children=[row])]))
        assert len(row.layout.spacers) == max(count - 1, 0)

    @pytest.mark.unit
    def test_spacers_strictly_between_children(self):
        children = [_child("a"), _child("b"), _child("c")]
        row = _row(*children, align=AxisAlign.SPACE_BETWEEN)
        LayoutTranslator().translate(row)
        assert row.layout.child_order == ["a", "_spacer_1", "b", "_spacer_2", "c"]
        assert [(s.after_id, s.before_id) for s in row.layout.spacers] == [
            ("a", "b"),
            ("b", "c"),
        ]

    @pytest.mark.unit
    def test_spacer_sizing(self):
        spacers = make_spacers(
            _row(align=AxisAlign.SPACE_BETWEEN), [_child("a"), _child("b")]
        )
        sizing = spacers[0].sizing
        assert sizing.horizontal.kind == SizingKind.GROW
        assert sizing.horizontal.weight == 1
        assert sizing.horizontal.preferred == 0
        assert sizing.vertical.kind == SizingKind.EXACT
        assert sizing.vertical.size == 0

    @pytest.mark.unit
    def test_hidden_and_absolute_children_excluded(self):
        """Only visible flow children are separated by spacers."""
        row = _row(
            _child("a"),
            _child("hidden", visible=False),
            _child("badge", positioning=Positioning.ABSOLUTE),
            _child("b"),
            align=AxisAlign.SPACE_BETWEEN,
        )
        LayoutTranslator().translate(row)
        assert row.layout.child_order == ["a", "_spacer_1", "badge", "b"]
        assert row.find("hidden").layout is None

    @pytest.mark.unit
    def test_vertical_spacers_grow_vertically(self):
        spacers = make_spacers(
            _row(mode=LayoutMode.VERTICAL, align=AxisAlign.SPACE_BETWEEN),
            [_child("a"), _child("b")],
        )
        assert spacers[0].sizing.vertical.kind == SizingKind.GROW
        assert spacers[0].sizing.horizontal.size == 0


# =============================================================================
# Constraints
# =============================================================================


def _absolute(h: HorizontalConstraint, v: VerticalConstraint) -> tuple[Node, Node]:
    """A 40x20 absolute child at (30, 25) in a padded 200x100 parent at (10, 5)."""
    child = Node(
        id="abs",
        geometry=Geometry(x=40, y=30, width=40, height=20),
        positioning=Positioning.ABSOLUTE,
        constraints=EdgeConstraints(horizontal=h, vertical=v),
    )
    parent = Node(
        id="parent",
        geometry=Geometry(x=10, y=5, width=200, height=100),
        container=ContainerLayout(
            padding_left=10, padding_right=10, padding_top=5, padding_bottom=15
        ),
        children=[child],
    )
    return child, parent


class TestConstraints:
    """Tests for anchor and offset geometry."""

    @pytest.mark.unit
    @pytest.mark.parametrize("constraint", list(HorizontalConstraint))
    def test_horizontal_families_reproduce_source_box(self, constraint):
        """Every family resolves back to the source box at the original size."""
        child, parent = _absolute(constraint, VerticalConstraint.TOP)
        placement = place_absolute(child, parent, [])
        start, size = placement.horizontal.box(180)
        assert start == pytest.approx(20)
        assert size == pytest.approx(40)

    @pytest.mark.unit
    @pytest.mark.parametrize("constraint", list(VerticalConstraint))
    def test_vertical_families_reproduce_source_box(self, constraint):
        """In y-up terms the node's low edge is the distance from the bottom."""
        child, parent = _absolute(HorizontalConstraint.LEFT, constraint)
        placement = place_absolute(child, parent, [])
        start, size = placement.vertical.box(80)
        assert start == pytest.approx(80 - 20 - 20)
        assert size == pytest.approx(20)

    @pytest.mark.unit
    def test_pin_families(self):
        left = place_horizontal(HorizontalConstraint.LEFT, 20, 40, 180, [])
        assert (left.anchor_min, left.position, left.size) == (0, 40, 40)
        right = place_horizontal(HorizontalConstraint.RIGHT, 20, 40, 180, [])
        assert (right.anchor_min, right.position) == (1, -140)
        center = place_horizontal(HorizontalConstraint.CENTER, 20, 40, 180, [])
        assert (center.anchor_min, center.position) == (0.5, -50)

    @pytest.mark.unit
    def test_stretch_round_trip(self):
        """Stretch size follows parent resizes exactly; insets stay unchanged."""
        placement = place_horizontal(HorizontalConstraint.LEFT_RIGHT, 20, 40, 180, [])
        insets = (placement.inset_min, placement.inset_max)
        _, size = placement.box(180)
        for new_width in (100, 180, 260, 1000):
            start, resized = placement.box(new_width)
            assert resized - size == pytest.approx(new_width - 180)
            assert start == pytest.approx(20)
            assert (placement.inset_min, placement.inset_max) == insets

    @pytest.mark.unit
    def test_vertical_stretch_round_trip(self):
        placement = place_vertical(VerticalConstraint.TOP_BOTTOM, 10, 30, 100, [])
        _, size = placement.box(100)
        _, resized = placement.box(160)
        assert resized - size == pytest.approx(60)

    @pytest.mark.unit
    @pytest.mark.parametrize("margin", [0, 7, 25])
    def test_top_pin_inversion(self, margin):
        """Pin-to-top with margin m keeps a near-edge offset of m after the flip."""
        placement = place_vertical(VerticalConstraint.TOP, margin, 20, 100, [])
        assert placement.anchor_min == placement.anchor_max == 1.0
        assert placement.source_near == margin
        assert placement.inset_max == margin
        start, size = placement.box(100)
        assert 100 - (start + size) == pytest.approx(margin)

    @pytest.mark.unit
    def test_bottom_pin(self):
        placement = place_vertical(VerticalConstraint.BOTTOM, 60, 20, 100, [])
        assert placement.anchor_min == 0
        assert placement.inset_min == 20
        assert placement.position == 30

    @pytest.mark.unit
    def test_scale_fractions(self):
        placement = place_horizontal(HorizontalConstraint.SCALE, 45, 90, 180, [])
        assert (placement.anchor_min, placement.anchor_max) == (0.25, 0.75)
        assert placement.box(400) == (100, 200)

    @pytest.mark.unit
    def test_scale_under_zero_size_parent(self):
        tags: list[str] = []
        placement = place_vertical(VerticalConstraint.SCALE, 0, 10, 0, tags)
        assert (placement.anchor_min, placement.anchor_max) == (0, 0)
        assert tags == [DEGENERATE_PARENT]


# =============================================================================
# Translator
# =============================================================================


class TestLayoutTranslator:
    """Tests for the orchestration pass."""

    @pytest.mark.unit
    def test_root_absolute_is_placed_as_root(self):
        root = Node(id="root", positioning=Positioning.ABSOLUTE)
        LayoutTranslator().translate(root)
        assert root.layout.placement.mode == PlacementMode.ROOT
        assert ABSOLUTE_WITHOUT_PARENT in root.approximations

    @pytest.mark.unit
    def test_placement_modes(self):
        flow = _child("flow")
        free = Node(
            id="free",
            geometry=Geometry(x=15, y=40, width=10, height=10),
        )
        canvas = Node(
            id="canvas",
            geometry=Geometry(x=5, y=10, width=100, height=100),
            children=[free],
        )
        root = _row(flow, canvas)
        LayoutTranslator().translate(root)
        assert root.layout.placement.mode == PlacementMode.ROOT
        assert flow.layout.placement.mode == PlacementMode.FLOW
        assert flow.layout.placement.horizontal is None
        assert free.layout.placement.mode == PlacementMode.FREE
        assert free.layout.placement.horizontal.box(100) == (10, 10)
        assert free.layout.placement.vertical.source_near == 30

    @pytest.mark.unit
    def test_invisible_subtree_skipped(self):
        hidden = _child("hidden", visible=False, children=[_child("inner")])
        root = _row(hidden, _child("shown"))
        translator = LayoutTranslator()
        translator.translate(root)
        assert hidden.layout is None
        assert root.find("inner").layout is None
        assert translator.stats.nodes_resolved == 2
        assert translator.stats.nodes_skipped == 1

    @pytest.mark.unit
    def test_stats_count_approximations(self):
        node = _child("n", sizing=SelfSizing(horizontal=SizingMode.FILL, max_width=9))
        doc = Document(pages=[Page(id="p", children=[_row(node)])])
        stats = translate_document(doc)
        assert stats.approximations[MAX_SIZE_SOFT_CAP] == 1
        assert stats.approximation_count == 1

    @pytest.mark.unit
    def test_cancellation_between_nodes(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            LayoutTranslator(token).translate(_row(_child("a")))
