"""Unit tests for validation module."""

import pytest

from figsync.graph import ComponentInfo, Document, Node, Page
from figsync.validation import (
    GraphIntegrityError,
    ValidationError,
    ensure_valid,
    is_valid,
    validate_document,
)


def _doc(*roots: Node) -> Document:
    return Document(pages=[Page(id="p1", name="Screens", children=list(roots))])


class TestValidateDocument:
    """Tests for validate_document function."""

    @pytest.mark.unit
    def test_valid_tree(self):
        """Well-formed tree passes validation."""
        doc = _doc(Node(id="root", children=[Node(id="a"), Node(id="b")]))
        assert validate_document(doc) == []
        assert is_valid(doc) is True

    @pytest.mark.unit
    def test_duplicate_ids(self):
        """Duplicate IDs are detected across the tree."""
        doc = _doc(Node(id="root", children=[Node(id="dupe"), Node(id="dupe")]))
        errors = validate_document(doc)
        assert len(errors) == 1
        assert errors[0].error_type == "duplicate_id"
        assert errors[0].node_id == "dupe"

    @pytest.mark.unit
    def test_duplicate_ids_across_pages(self):
        doc = Document(
            pages=[
                Page(id="p1", children=[Node(id="x")]),
                Page(id="p2", children=[Node(id="x")]),
            ]
        )
        errors = validate_document(doc)
        assert [e.error_type for e in errors] == ["duplicate_id"]

    @pytest.mark.unit
    def test_cycle_reports_both_ids(self):
        """A child list that includes an ancestor is rejected with both ids."""
        a = Node(id="A")
        b = Node(id="B")
        root = Node(id="root", children=[a])
        a.add_child(b)
        b.children.append(root)  # B now owns its own ancestor

        errors = validate_document(_doc(root))
        cycles = [e for e in errors if e.error_type == "cycle"]
        assert len(cycles) == 1
        assert cycles[0].node_id == "root"
        assert cycles[0].related_ids == ["B"]

    @pytest.mark.unit
    def test_self_cycle(self):
        node = Node(id="loop")
        node.children.append(node)
        errors = validate_document(_doc(node))
        assert errors[0].error_type == "cycle"
        assert errors[0].related_ids == ["loop"]

    @pytest.mark.unit
    def test_shared_ownership(self):
        """The same node object under two parents is reported."""
        shared = Node(id="shared")
        doc = _doc(
            Node(id="left", children=[shared]),
            Node(id="right", children=[shared]),
        )
        errors = validate_document(doc)
        assert len(errors) == 1
        assert errors[0].error_type == "shared_ownership"
        assert errors[0].related_ids == ["left", "right"]

    @pytest.mark.unit
    def test_duplicate_component_keys(self):
        doc = _doc(Node(id="c1", is_component=True), Node(id="c2", is_component=True))
        doc.components = {
            "c1": ComponentInfo(node_id="c1", key="k"),
            "c2": ComponentInfo(node_id="c2", key="k"),
        }
        errors = validate_document(doc)
        assert [e.error_type for e in errors] == ["duplicate_component"]
        assert errors[0].related_ids == ["c1"]


class TestEnsureValid:
    """Tests for the fail-fast entry point."""

    @pytest.mark.unit
    def test_raises_with_offending_ids(self):
        a = Node(id="A")
        root = Node(id="R", children=[a])
        a.children.append(root)

        with pytest.raises(GraphIntegrityError) as excinfo:
            ensure_valid(_doc(root))
        assert excinfo.value.node_ids == ["A", "R"]
        assert "R" in str(excinfo.value)

    @pytest.mark.unit
    def test_passes_silently(self):
        ensure_valid(_doc(Node(id="ok")))


class TestValidationError:
    """Tests for ValidationError dataclass."""

    @pytest.mark.unit
    def test_defaults(self):
        error = ValidationError(node_id="n", message="m", error_type="cycle")
        assert error.related_ids == []
