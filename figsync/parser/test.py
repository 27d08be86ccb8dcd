"""Unit tests for the design-file mapper."""

import json

import pytest

from figsync.config import PageSelection, SyncSettings
from figsync.graph import (
    AxisAlign,
    HorizontalConstraint,
    LayoutMode,
    NodeKind,
    Positioning,
    SizingMode,
    TextAlignHorizontal,
    Tier,
    VerticalConstraint,
)

from .lib import ParseError, load_document, parse_document, parse_node


class TestParseDocument:
    """Tests for whole-document mapping."""

    @pytest.mark.unit
    def test_metadata(self, sample_document):
        assert sample_document.name == "Sample App"
        assert sample_document.file_key == "FILE123"
        assert sample_document.version == "42"
        assert sample_document.styles["S:1"].style_type == "FILL"

    @pytest.mark.unit
    def test_pages_get_tiers_from_names(self, sample_document):
        pages = sample_document.pages
        assert [page.name for page in pages] == ["Atoms", "Screens", "Archive"]
        assert [page.tier for page in pages] == [Tier.ATOM, Tier.SCREEN, Tier.SCREEN]
        assert all(page.selected for page in pages)

    @pytest.mark.unit
    def test_non_canvas_children_ignored(self, design_payload):
        design_payload["document"]["children"].append(
            {"id": "9:9", "name": "Stray", "type": "FRAME"}
        )
        assert len(parse_document(design_payload).pages) == 3

    @pytest.mark.unit
    def test_components_registered(self, sample_document):
        """Definitions record their page and tier; hidden ones are kept."""
        button = sample_document.components["1:1"]
        assert button.key == "k-btn"
        assert button.description == "Primary action"
        assert button.page_name == "Atoms"
        assert button.tier == Tier.ATOM

        icon = sample_document.find_node("1:3")
        assert icon is not None
        assert not icon.visible
        assert icon.is_component

    @pytest.mark.unit
    def test_invisible_nodes_dropped(self, sample_document):
        assert sample_document.find_node("2:7") is None

    @pytest.mark.unit
    def test_container_layout(self, sample_document):
        login = sample_document.find_node("2:1")
        assert login.container.mode == LayoutMode.VERTICAL
        assert login.container.primary_align == AxisAlign.SPACE_BETWEEN
        assert login.container.padding_top == 24
        assert login.scroll_vertical
        assert not login.scroll_horizontal

    @pytest.mark.unit
    def test_sizing_and_image_fill(self, sample_document):
        hero = sample_document.find_node("2:3")
        assert hero.kind == NodeKind.RECTANGLE
        assert hero.sizing.horizontal == SizingMode.FILL
        assert hero.sizing.vertical == SizingMode.FIXED
        assert hero.has_image_fill
        assert hero.image_hash == "img-hero"

    @pytest.mark.unit
    def test_instance_and_interaction(self, sample_document):
        instance = sample_document.find_node("2:4")
        assert instance.is_instance
        assert instance.component_id == "1:1"
        assert instance.has_action
        assert instance.action_destination == "2:9"

    @pytest.mark.unit
    def test_absolute_child(self, sample_document):
        badge = sample_document.find_node("2:6")
        assert badge.positioning == Positioning.ABSOLUTE
        assert badge.constraints.horizontal == HorizontalConstraint.RIGHT
        assert badge.constraints.vertical == VerticalConstraint.TOP
        assert badge.geometry.x == 315

    @pytest.mark.unit
    def test_text(self, sample_document):
        title = sample_document.find_node("2:2")
        assert title.characters == "Welcome back"
        assert title.text_style.font_size == 16
        assert title.text_style.align_horizontal == TextAlignHorizontal.CENTER
        assert title.text_style.color.r == 1

    @pytest.mark.unit
    def test_image_refs(self, sample_document):
        """Image fills and vector primitives are collected."""
        assert sample_document.image_refs == {
            "node:1:4": ["1:4"],
            "img-hero": ["2:3"],
        }

    @pytest.mark.unit
    def test_parents_linked(self, sample_document):
        label = sample_document.find_node("2:5")
        assert label.parent.id == "2:4"
        assert label.parent.parent.id == "2:1"
        assert sample_document.find_node("2:1").parent is None

    @pytest.mark.unit
    def test_page_selection(self, design_payload):
        """Explicit selections win; other pages follow only_selected_pages."""
        settings = SyncSettings(
            only_selected_pages=True,
            page_selections={"0:3": PageSelection("0:3", "Archive", tier=Tier.SKIP)},
        )

        document = parse_document(design_payload, settings)

        assert [page.selected for page in document.pages] == [False, False, True]
        assert document.pages[2].tier == Tier.SKIP
        assert document.image_refs == {}

    @pytest.mark.unit
    @pytest.mark.parametrize("payload", [None, [], {}, {"document": "x"}])
    def test_rejects_malformed_payload(self, payload):
        with pytest.raises(ParseError):
            parse_document(payload)


class TestParseNode:
    """Tests for single-node mapping edge cases."""

    @pytest.mark.unit
    def test_defaults(self):
        node = parse_node({"id": "1", "type": "WIDGET"})
        assert node.kind == NodeKind.UNKNOWN
        assert node.clean_name == "Unnamed"
        assert node.container.mode == LayoutMode.NONE
        assert node.geometry.width == 0

    @pytest.mark.unit
    def test_unknown_enum_values_fall_back(self):
        node = parse_node(
            {"id": "1", "type": "FRAME", "layoutMode": "GRID", "layoutWrap": "ODD"}
        )
        assert node.container.mode == LayoutMode.NONE

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, horizontal, vertical",
        [
            ({"horizontal": "MIN", "vertical": "MAX"}, "LEFT", "BOTTOM"),
            (
                {"horizontal": "STRETCH", "vertical": "STRETCH"},
                "LEFT_RIGHT",
                "TOP_BOTTOM",
            ),
            ({"horizontal": "SCALE", "vertical": "CENTER"}, "SCALE", "CENTER"),
        ],
    )
    def test_constraint_spellings(self, raw, horizontal, vertical):
        node = parse_node({"id": "1", "constraints": raw})
        assert node.constraints.horizontal.value == horizontal
        assert node.constraints.vertical.value == vertical

    @pytest.mark.unit
    def test_alignment_keywords(self):
        node = parse_node(
            {"id": "1", "primaryAxisAlignItems": "MAX", "counterAxisAlignItems": "MIN"}
        )
        assert node.container.primary_align == AxisAlign.END
        assert node.container.counter_align == AxisAlign.START

    @pytest.mark.unit
    def test_overflow_object_form(self):
        node = parse_node(
            {"id": "1", "overflowDirection": {"horizontal": True, "vertical": False}}
        )
        assert node.scroll_horizontal
        assert not node.scroll_vertical

    @pytest.mark.unit
    def test_legacy_transition(self):
        node = parse_node({"id": "1", "transitionNodeID": "5:5"})
        assert node.has_action
        assert node.action_destination == "5:5"

    @pytest.mark.unit
    def test_invisible_paints_dropped(self):
        node = parse_node(
            {
                "id": "1",
                "fills": [
                    {"type": "SOLID", "visible": False},
                    {"type": "NOISE"},
                    {"type": "GRADIENT_LINEAR", "gradientStops": [{"position": 0}]},
                ],
            }
        )
        assert [paint.type.value for paint in node.fills] == ["GRADIENT_LINEAR"]
        assert node.fills[0].gradient_stops == [{"position": 0}]

    @pytest.mark.unit
    def test_component_properties(self):
        node = parse_node(
            {
                "id": "1",
                "type": "INSTANCE",
                "componentId": "c",
                "componentProperties": {"State": {"type": "VARIANT", "value": "On"}},
            }
        )
        assert node.component_properties == {"State": "On"}

    @pytest.mark.unit
    def test_missing_id(self):
        with pytest.raises(ParseError, match="without id"):
            parse_node({"name": "Ghost"})


class TestLoadDocument:
    """Tests for reading payloads from disk."""

    @pytest.mark.unit
    def test_load(self, tmp_path, design_payload):
        path = tmp_path / "design.json"
        path.write_text(json.dumps(design_payload), encoding="utf-8")

        document = load_document(path)

        assert document.find_node("2:1").name == "Login"

    @pytest.mark.unit
    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ParseError, match="not valid JSON"):
            load_document(path)
