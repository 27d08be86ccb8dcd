"""Unit tests for the node graph."""

import pytest

from .annotations import AxisPlacement, SemanticRole
from .lib import (
    Color,
    Document,
    Geometry,
    Node,
    NodeKind,
    Page,
    Paint,
    PaintType,
    Tier,
    clean_name,
)


class TestCleanName:
    """Tests for identifier-safe name cleaning."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Button / Primary", "Button_Primary"),
            ("icon-close", "icon-close"),
            ("  padded  ", "padded"),
            ("a...b", "a_b"),
            ("", "Unnamed"),
            (None, "Unnamed"),
            ("///", "Unnamed"),
        ],
    )
    def test_clean_name(self, raw, expected):
        assert clean_name(raw) == expected

    @pytest.mark.unit
    def test_clean_name_filled_on_construction(self):
        node = Node(id="1", name="Card / Large")
        assert node.clean_name == "Card_Large"


class TestNodeStructure:
    """Tests for ownership and parent back-references."""

    @pytest.mark.unit
    def test_children_link_parent(self):
        child = Node(id="2", name="Title")
        root = Node(id="1", name="Card", children=[child])
        assert child.parent is root
        assert root.parent is None

    @pytest.mark.unit
    def test_add_child_links_parent(self):
        root = Node(id="1")
        child = root.add_child(Node(id="2"))
        assert child.parent is root
        assert root.children == [child]

    @pytest.mark.unit
    def test_identity_equality(self):
        """Nodes with identical fields are still distinct."""
        a = Node(id="1", name="Same")
        b = Node(id="1", name="Same")
        assert a != b
        assert a == a
        assert len({a, b}) == 2

    @pytest.mark.unit
    def test_walk_and_find(self):
        leaf = Node(id="3", visible=False)
        root = Node(id="1", children=[Node(id="2", children=[leaf])])
        assert [n.id for n in root.walk()] == ["1", "2", "3"]
        assert [n.id for n in root.walk(include_hidden=False)] == ["1", "2"]
        assert root.find("3") is leaf
        assert root.find("missing") is None

    @pytest.mark.unit
    def test_max_depth_and_instance_count(self):
        root = Node(
            id="1",
            children=[
                Node(id="2", is_instance=True, component_id="c"),
                Node(id="3", children=[Node(id="4", is_instance=True)]),
            ],
        )
        assert root.max_depth() == 2
        assert root.instance_count() == 2
        assert Node(id="solo", is_instance=True).instance_count() == 0


class TestDerivedSignals:
    """Tests for structural helper properties."""

    @pytest.mark.unit
    def test_image_fill(self):
        node = Node(id="1", fills=[Paint(type=PaintType.IMAGE, image_ref="abc")])
        assert node.has_image_fill
        assert not node.has_solid_fill

    @pytest.mark.unit
    def test_hidden_image_fill_ignored(self):
        node = Node(id="1", fills=[Paint(type=PaintType.IMAGE, visible=False)])
        assert not node.has_image_fill

    @pytest.mark.unit
    def test_text_child_and_content(self):
        node = Node(
            id="1",
            children=[Node(id="2", kind=NodeKind.TEXT, characters="Buy now")],
        )
        assert node.has_text_child
        assert node.text_content() == "Buy now"

    @pytest.mark.unit
    def test_background(self):
        assert Node(id="1", background_color=Color(r=1)).has_background
        assert Node(id="2", fills=[Paint(color=Color())]).has_background
        assert not Node(id="3").has_background

    @pytest.mark.unit
    def test_aspect_ratio(self):
        node = Node(id="1", geometry=Geometry(width=200, height=4))
        assert node.aspect_ratio == 50
        assert Node(id="2").aspect_ratio is None


class TestDocument:
    """Tests for Document helpers."""

    @pytest.mark.unit
    def test_iteration_and_lookup(self):
        definition = Node(id="10", name="Button", is_component=True)
        instance = Node(id="20", is_instance=True, component_id="10")
        doc = Document(
            pages=[
                Page(id="p1", name="Atoms", tier=Tier.ATOM, children=[definition]),
                Page(id="p2", name="Home", selected=False, children=[instance]),
            ]
        )
        assert [n.id for n in doc.iter_nodes()] == ["10", "20"]
        assert doc.find_node("20") is instance
        assert doc.component_definitions() == [definition]
        assert doc.instances_of("10") == [instance]
        assert [p.id for p in doc.selected_pages()] == ["p1"]
        assert doc.pages[0].component_count == 1

    @pytest.mark.unit
    def test_link_parents_after_edit(self):
        root = Node(id="1")
        child = Node(id="2")
        root.children.append(child)
        assert child.parent is None
        Document(pages=[Page(id="p", children=[root])]).link_parents()
        assert child.parent is root


class TestTier:
    """Tests for tier ordering and folders."""

    @pytest.mark.unit
    def test_order(self):
        assert Tier.SKIP < Tier.ATOM < Tier.MOLECULE < Tier.ORGANISM < Tier.SCREEN

    @pytest.mark.unit
    def test_folders(self):
        assert Tier.ATOM.folder == "Atoms"
        assert Tier.SCREEN.folder == "Screens"


class TestAnnotations:
    """Tests for annotation helpers."""

    @pytest.mark.unit
    def test_role_groups(self):
        assert SemanticRole.BUTTON.is_interactive
        assert SemanticRole.LABEL.is_text
        assert SemanticRole.AVATAR.is_image
        assert SemanticRole.SCROLL_VIEW.is_container
        assert not SemanticRole.ICON.is_interactive

    @pytest.mark.unit
    def test_fixed_placement_box(self):
        placement = AxisPlacement(
            constraint="LEFT", anchor_min=0, anchor_max=0, position=35, size=50
        )
        assert placement.box(100) == (10, 50)
        assert placement.box(400) == (10, 50)

    @pytest.mark.unit
    def test_stretch_placement_box(self):
        placement = AxisPlacement(
            constraint="LEFT_RIGHT",
            anchor_min=0,
            anchor_max=1,
            inset_min=10,
            inset_max=20,
        )
        assert placement.stretches
        assert placement.box(100) == (10, 70)
        assert placement.box(150) == (10, 120)
