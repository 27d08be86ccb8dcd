"""Node graph: documents, pages, nodes and the annotations written onto them.

Example usage:
    >>> from figsync.graph import Document, Page, Node, NodeKind
    >>> page = Page(id="0:1", name="Screens", children=[Node(id="1:1", name="Home")])
    >>> doc = Document(name="App", pages=[page])
    >>> doc.find_node("1:1").name
    'Home'
"""

from .annotations import (
    AnchorAlign,
    AxisPlacement,
    AxisSizing,
    Classification,
    ClassificationSource,
    Confidence,
    ContainerDirective,
    NodeLayout,
    Placement,
    PlacementMode,
    SemanticRole,
    SizingDirective,
    SizingKind,
    Spacer,
)
from .lib import (
    VECTOR_PRIMITIVES,
    AxisAlign,
    Color,
    ComponentInfo,
    Constraints,
    ContainerLayout,
    Document,
    Effect,
    EffectType,
    Geometry,
    HorizontalConstraint,
    LayoutMode,
    LayoutWrap,
    Node,
    NodeKind,
    Page,
    Paint,
    PaintType,
    Positioning,
    SelfSizing,
    SizingMode,
    StyleInfo,
    TextAlignHorizontal,
    TextAlignVertical,
    TextCase,
    TextDecoration,
    TextStyle,
    Tier,
    VerticalConstraint,
    clean_name,
)

__all__ = [
    # Entities
    "Document",
    "Page",
    "Node",
    "ComponentInfo",
    "StyleInfo",
    # Enums
    "Tier",
    "NodeKind",
    "VECTOR_PRIMITIVES",
    "LayoutMode",
    "LayoutWrap",
    "AxisAlign",
    "SizingMode",
    "Positioning",
    "HorizontalConstraint",
    "VerticalConstraint",
    "PaintType",
    "EffectType",
    "TextCase",
    "TextDecoration",
    "TextAlignHorizontal",
    "TextAlignVertical",
    # Value objects
    "Color",
    "Paint",
    "Effect",
    "Geometry",
    "ContainerLayout",
    "SelfSizing",
    "Constraints",
    "TextStyle",
    # Annotations
    "SemanticRole",
    "Confidence",
    "ClassificationSource",
    "Classification",
    "SizingKind",
    "AxisSizing",
    "SizingDirective",
    "AnchorAlign",
    "ContainerDirective",
    "Spacer",
    "AxisPlacement",
    "PlacementMode",
    "Placement",
    "NodeLayout",
    # Helpers
    "clean_name",
]
